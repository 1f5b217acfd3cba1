"""Output materialization — read the rendered mp4 and hand it out.

The rendered file is wrapped as an OutputArtifact with a revocable
blob: URL and a download filename derived from the source video name:

  "My Trip (2024).mov" -> "multiply_My_Trip_2024_.mp4"
"""

import re
import uuid
from dataclasses import dataclass

from .errors import ReadError
from .storage import OUTPUT_VIDEO, JobNamespace


OUTPUT_MIME_TYPE = "video/mp4"

FILENAME_PREFIX = "multiply_"

FILENAME_SUFFIX = ".mp4"

MAX_BASE_LENGTH = 40

# Used when nothing survives sanitizing (e.g. a name that is only ".mov").
FALLBACK_BASE = "video"


# ── Filename derivation ───────────────────────────────────────────


def safe_name(name: str) -> str:
    """Strip the extension, collapse disallowed runs to '_', cap at 40 chars."""
    base = re.sub(r"\.[^/.]+$", "", name)
    base = re.sub(r"[^a-zA-Z0-9_-]+", "_", base)
    return base[:MAX_BASE_LENGTH] or FALLBACK_BASE


def output_filename(source_name: str) -> str:
    return f"{FILENAME_PREFIX}{safe_name(source_name)}{FILENAME_SUFFIX}"


# ── Object URLs ───────────────────────────────────────────────────


class ObjectURLRegistry:
    """Issues revocable blob: references to in-memory byte buffers."""

    SCHEME = "blob:multiplyblend/"

    def __init__(self):
        self._objects: dict[str, tuple[bytes, str]] = {}

    def create(self, data: bytes, mime_type: str) -> str:
        url = f"{self.SCHEME}{uuid.uuid4()}"
        self._objects[url] = (data, mime_type)
        return url

    def resolve(self, url: str) -> tuple[bytes, str]:
        """Return (data, mime_type). KeyError if unknown or revoked."""
        return self._objects[url]

    def revoke(self, url: str) -> None:
        self._objects.pop(url, None)

    def revoke_all(self) -> None:
        self._objects.clear()

    def __contains__(self, url) -> bool:
        return url in self._objects

    def __len__(self) -> int:
        return len(self._objects)


@dataclass(frozen=True)
class OutputArtifact:
    data: bytes
    mime_type: str
    filename: str
    url: str


async def materialize(
    namespace: JobNamespace,
    registry: ObjectURLRegistry,
    source_name: str,
    output_name: str = OUTPUT_VIDEO,
) -> OutputArtifact:
    """Read the rendered output and wrap it as a downloadable artifact.

    Args:
        namespace: Job namespace ffmpeg wrote into.
        registry: Issues the artifact's URL.
        source_name: Display name of the original video, for the filename.
        output_name: Working name of the rendered file.

    Raises:
        ReadError: The output file is missing or unreadable.
    """
    try:
        data = await namespace.read_file(output_name)
    except FileNotFoundError as e:
        raise ReadError(f"Output file {output_name} was not produced") from e
    except OSError as e:
        raise ReadError(f"Could not read {output_name}: {e}") from e

    url = registry.create(data, OUTPUT_MIME_TYPE)
    return OutputArtifact(
        data=data,
        mime_type=OUTPUT_MIME_TYPE,
        filename=output_filename(source_name),
        url=url,
    )
