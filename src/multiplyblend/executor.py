"""Job executor — run the filter graph and fold engine events into status."""

from dataclasses import replace

from .engine import Engine
from .status import Processing, StatusCell
from .storage import JobNamespace


def apply_progress(cell: StatusCell, progress: float) -> None:
    """Update only the progress of a running job; ignore stale events."""
    status = cell.value
    if isinstance(status, Processing):
        cell.set(replace(status, progress=progress))


def apply_log(cell: StatusCell, line: str) -> None:
    """Update only the log line of a running job; ignore stale events."""
    status = cell.value
    if isinstance(status, Processing):
        cell.set(replace(status, log=line))


async def run_job(
    engine: Engine,
    cell: StatusCell,
    args: list[str],
    namespace: JobNamespace,
) -> None:
    """Make sure the job shows as processing and wait for ffmpeg to finish.

    Success leaves the status as Processing; the caller decides what
    comes next. ExecError from the engine propagates unchanged.
    """
    # The compositor usually set this already; don't notify twice.
    if cell.value != Processing(progress=0.0, log=None):
        cell.set(Processing(progress=0.0, log=None))
    await engine.exec(args, namespace)
