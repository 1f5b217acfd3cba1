"""Input staging — copy the two input buffers into a job namespace."""

from .errors import StageError
from .storage import INPUT_OVERLAY, INPUT_VIDEO, JobNamespace


async def stage_inputs(
    namespace: JobNamespace,
    video: bytes,
    overlay: bytes,
    video_name: str = INPUT_VIDEO,
    overlay_name: str = INPUT_OVERLAY,
) -> None:
    """Write the video and overlay under their working names.

    Existing files with the same names are overwritten. Nothing is
    checked about the media itself; ffmpeg reports bad input later.

    Raises:
        StageError: Either write failed. The job must not execute.
    """
    for name, data in ((video_name, video), (overlay_name, overlay)):
        try:
            await namespace.write_file(name, data)
        except (OSError, ValueError) as e:
            raise StageError(f"Could not stage {name}: {e}") from e
