"""Shared test fixtures for multiplyblend tests."""

import asyncio
import subprocess

import pytest
import imageio_ffmpeg
from PIL import Image

from multiplyblend.errors import ExecError, InitError
from multiplyblend.events import ListenerRegistry
from multiplyblend.storage import OUTPUT_VIDEO, WorkingStorage

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()

OVERLAY_COLOR = (255, 0, 0)


def _encode(out, *sources):
    subprocess.run(
        [
            _FFMPEG, "-y",
            *sources,
            "-shortest",
            "-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p",
            "-c:a", "aac", "-b:a", "32k",
            str(out),
        ],
        check=True,
        capture_output=True,
    )
    return out


@pytest.fixture
def source_video(tmp_path):
    """2-second white test video (160x120, 10fps) with a sine audio track."""
    return _encode(
        tmp_path / "source clip.mp4",
        "-f", "lavfi", "-i", "color=c=white:s=160x120:d=2:r=10",
        "-f", "lavfi", "-i", "sine=frequency=440:sample_rate=44100:duration=2",
    )


@pytest.fixture
def silent_video(tmp_path):
    """Same picture as source_video, but with no audio stream."""
    return _encode(
        tmp_path / "silent.mp4",
        "-f", "lavfi", "-i", "color=c=white:s=160x120:d=2:r=10",
    )


@pytest.fixture
def overlay_gif(tmp_path):
    """Small 3-frame looping GIF, every frame solid red."""
    out = tmp_path / "overlay.gif"
    frames = [Image.new("RGB", (40, 30), OVERLAY_COLOR) for _ in range(3)]
    frames[0].save(
        out, save_all=True, append_images=frames[1:], duration=100, loop=0,
    )
    return out


# ── Fake engine ───────────────────────────────────────────────────


class FakeEngine:
    """Stands in for multiplyblend.engine.Engine in orchestration tests.

    exec() replays scripted (event, payload) pairs, then either raises
    ExecError or writes a fake output.mp4 into the job namespace.
    """

    def __init__(
        self,
        root,
        fail_load=None,
        events=(),
        exec_error=None,
        output=b"fake mp4 bytes",
        write_output=True,
    ):
        self.storage = WorkingStorage(root)
        self._listeners = ListenerRegistry()
        self.fail_load = fail_load
        self.events = list(events)
        self.exec_error = exec_error
        self.output = output
        self.write_output = write_output
        self.ready = False
        self.terminated = False
        self.version = "ffmpeg version fake"
        self.load_calls = 0
        self.exec_calls = []
        self.staged = None

    def on(self, event, callback):
        return self._listeners.subscribe(event, callback)

    def emit(self, event, payload):
        self._listeners.emit(event, payload)

    async def load(self):
        self.load_calls += 1
        if self.fail_load:
            raise InitError(self.fail_load)
        self.ready = True

    async def exec(self, args, namespace):
        self.exec_calls.append((list(args), namespace))
        self.staged = {
            name: namespace.file_path(name).read_bytes()
            for name in namespace.list_files()
        }
        for event, payload in self.events:
            self.emit(event, payload)
            await asyncio.sleep(0)
        if self.exec_error:
            raise ExecError(self.exec_error, 1)
        if self.write_output:
            await namespace.write_file(OUTPUT_VIDEO, self.output)

    def terminate(self):
        # Listeners stay attached so tests can prove the compositor
        # cancelled its own subscriptions.
        self.terminated = True
        self.ready = False


@pytest.fixture
def make_engine(tmp_path):
    """Factory for FakeEngine instances rooted in tmp_path/storage."""
    def _make(**kwargs):
        return FakeEngine(tmp_path / "storage", **kwargs)
    return _make
