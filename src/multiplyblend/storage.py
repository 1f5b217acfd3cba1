"""Working storage — the engine's private file area.

Each job gets its own namespace directory under the storage root, so
the fixed names (input.mp4, overlay.gif, output.mp4) never collide
across jobs. Names are bare file names; paths are refused.
"""

import asyncio
import shutil
import uuid
from pathlib import Path


INPUT_VIDEO = "input.mp4"
INPUT_OVERLAY = "overlay.gif"
OUTPUT_VIDEO = "output.mp4"


def _check_name(name: str) -> str:
    if not name or name in {".", ".."} or Path(name).name != name or "\\" in name:
        raise ValueError(f"Working file name must be a bare file name, got '{name}'")
    return name


class JobNamespace:
    """One job's directory inside working storage."""

    def __init__(self, path: Path, job_id: str):
        self.path = path
        self.job_id = job_id

    def file_path(self, name: str) -> Path:
        return self.path / _check_name(name)

    async def write_file(self, name: str, data: bytes) -> None:
        """Write (or overwrite) a working file. Runs off the event loop."""
        await asyncio.to_thread(self.file_path(name).write_bytes, data)

    async def read_file(self, name: str) -> bytes:
        """Read a working file. Raises FileNotFoundError if absent."""
        return await asyncio.to_thread(self.file_path(name).read_bytes)

    def exists(self, name: str) -> bool:
        return self.file_path(name).exists()

    def list_files(self) -> list[str]:
        if not self.path.exists():
            return []
        return sorted(p.name for p in self.path.iterdir() if p.is_file())

    def discard(self) -> None:
        """Delete the namespace and everything in it."""
        shutil.rmtree(self.path, ignore_errors=True)


class WorkingStorage:
    """Root directory holding one namespace per job."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def namespace(self, job_id: str | None = None) -> JobNamespace:
        """Create (or reopen) a job namespace. A new id is generated if omitted."""
        job_id = _check_name(job_id or uuid.uuid4().hex[:12])
        path = self.root / job_id
        path.mkdir(parents=True, exist_ok=True)
        return JobNamespace(path, job_id)
