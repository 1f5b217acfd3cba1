"""Filter graph — the one fixed ffmpeg command for a multiply blend.

The overlay is looped forever and scaled to the video's size with
scale2ref, then blended under the video with multiply at full opacity.
The video's audio is kept when there is one ("0:a?" never fails).
-shortest stops the output when the video ends.
"""

from .storage import INPUT_OVERLAY, INPUT_VIDEO, OUTPUT_VIDEO


FILTER_COMPLEX = (
    "[1:v][0:v]scale2ref=iw:ih[gifS][vid];"
    "[vid][gifS]blend=all_mode=multiply:all_opacity=1,format=yuv420p[outv]"
)

VIDEO_CODEC_ARGS = ["-c:v", "libx264", "-preset", "veryfast", "-crf", "18"]

AUDIO_CODEC_ARGS = ["-c:a", "aac", "-b:a", "192k"]


def build_args(
    video_name: str = INPUT_VIDEO,
    overlay_name: str = INPUT_OVERLAY,
    output_name: str = OUTPUT_VIDEO,
) -> list[str]:
    """Return the ffmpeg argument list (without the executable)."""
    return [
        "-i", video_name,
        "-stream_loop", "-1",
        "-i", overlay_name,
        "-filter_complex", FILTER_COMPLEX,
        "-map", "[outv]",
        "-map", "0:a?",
        *VIDEO_CODEC_ARGS,
        *AUDIO_CODEC_ARGS,
        "-shortest",
        output_name,
    ]
