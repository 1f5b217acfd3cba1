"""Engine lifecycle — resolve ffmpeg, boot it once, run filter graphs.

The engine is an ffmpeg executable plus a private working-storage root.
load() resolves both and boots ffmpeg (`ffmpeg -version`) exactly once
per Engine instance; a failed load is final for that instance.

While a filter graph runs, ffmpeg's stderr is re-emitted line by line as
"log" events and its -progress output is turned into "progress" events
(a float in 0.0-1.0, measured against the first input's duration).
"""

import asyncio
import re
import shutil
import tempfile
from pathlib import Path

import imageio_ffmpeg

from .errors import EngineNotReadyError, ExecError, InitError
from .events import ListenerRegistry, Subscription
from .storage import JobNamespace, WorkingStorage


ENGINE_EVENTS = {"log", "progress"}

# Prepended to every filter graph: overwrite outputs, never read stdin,
# machine-readable progress on stdout, no interactive stats on stderr.
EXEC_PREFIX = ["-hide_banner", "-nostdin", "-y", "-progress", "pipe:1", "-nostats"]

_DURATION_RE = re.compile(r"Duration:\s*(\d+):(\d{2}):(\d{2}(?:\.\d+)?)")


# ── Output parsing ────────────────────────────────────────────────


def parse_duration(line: str) -> float | None:
    """Extract seconds from an ffmpeg 'Duration: HH:MM:SS.xx' log line."""
    match = _DURATION_RE.search(line)
    if not match:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


class ProgressTracker:
    """Turns ffmpeg log + progress lines into a 0.0-1.0 fraction.

    The total is the first Duration line ffmpeg logs, which belongs to
    input #0 (the video). The looped overlay never ends, so -shortest
    makes the output exactly as long as the video.
    """

    def __init__(self):
        self.duration = None
        self.last = None

    def feed_log(self, line: str) -> None:
        if self.duration is None:
            duration = parse_duration(line)
            if duration:
                self.duration = duration

    def feed_progress(self, line: str) -> float | None:
        """Return a new fraction when the line moves progress, else None."""
        key, sep, value = line.strip().partition("=")
        if not sep:
            return None

        fraction = None
        if key == "progress" and value == "end":
            fraction = 1.0
        elif key in ("out_time_us", "out_time_ms") and self.duration:
            # Both keys carry microseconds.
            try:
                micros = int(value)
            except ValueError:
                return None
            fraction = min(1.0, max(0.0, micros / 1_000_000 / self.duration))

        if fraction is None or fraction == self.last:
            return None
        self.last = fraction
        return fraction


# ── Engine ────────────────────────────────────────────────────────


class Engine:
    """Single ffmpeg engine handle.

    Construct one, await load(), then hand it to a Compositor. States:
    new -> loading -> ready | failed, and terminated after terminate().
    """

    def __init__(self, ffmpeg: str | None = None, work_dir: str | Path | None = None):
        self._ffmpeg_setting = ffmpeg
        self._work_dir_setting = work_dir
        self._listeners = ListenerRegistry()
        self._state = "new"
        self._owns_root = False
        self._process = None
        self.ffmpeg = None
        self.storage = None
        self.version = None

    @classmethod
    def from_config(cls, config: dict) -> "Engine":
        engine = config["engine"]
        return cls(ffmpeg=engine["ffmpeg"], work_dir=engine["work_dir"])

    @property
    def state(self) -> str:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state == "ready"

    @property
    def running(self) -> bool:
        return self._process is not None

    def on(self, event: str, callback) -> Subscription:
        """Register a listener for "log" or "progress" events."""
        if event not in ENGINE_EVENTS:
            raise ValueError(
                f"Unknown engine event '{event}'. Valid: {sorted(ENGINE_EVENTS)}"
            )
        return self._listeners.subscribe(event, callback)

    # ── Lifecycle ─────────────────────────────────────────────────

    async def load(self) -> None:
        """Resolve engine resources and boot ffmpeg.

        Raises:
            InitError: ffmpeg or the storage root could not be resolved,
                ffmpeg failed to boot, or this handle already failed.
        """
        if self._state == "ready":
            return
        if self._state == "loading":
            raise InitError("Engine is already loading")
        if self._state == "failed":
            raise InitError("Engine failed to load earlier; create a new Engine to retry")
        if self._state == "terminated":
            raise InitError("Engine was terminated; create a new Engine")

        self._state = "loading"
        try:
            self.ffmpeg = self._resolve_ffmpeg()
            self.storage = self._resolve_storage()
            self.version = await self._boot()
        except InitError:
            self._state = "failed"
            self._remove_owned_root()
            raise
        self._state = "ready"

    def terminate(self) -> None:
        """Teardown: kill a running ffmpeg, drop listeners, free storage."""
        process = self._process
        if process is not None and process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        self._listeners.clear()
        self._remove_owned_root()
        self._state = "terminated"

    def _resolve_ffmpeg(self) -> str:
        setting = self._ffmpeg_setting
        if setting:
            found = shutil.which(setting)
            if found is None and Path(setting).is_file():
                found = setting
            if found is None:
                raise InitError(f"ffmpeg executable not found: {setting}")
            return found

        try:
            return imageio_ffmpeg.get_ffmpeg_exe()
        except RuntimeError as e:
            raise InitError(f"No bundled ffmpeg available: {e}") from e

    def _resolve_storage(self) -> WorkingStorage:
        setting = self._work_dir_setting
        if setting:
            root = Path(setting)
            try:
                root.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise InitError(f"Cannot create working storage at {root}: {e}") from e
            return WorkingStorage(root)

        try:
            root = Path(tempfile.mkdtemp(prefix="multiplyblend-"))
        except OSError as e:
            raise InitError(f"Cannot create working storage: {e}") from e
        self._owns_root = True
        return WorkingStorage(root)

    def _remove_owned_root(self) -> None:
        if self._owns_root and self.storage is not None:
            shutil.rmtree(self.storage.root, ignore_errors=True)
            self._owns_root = False

    async def _boot(self) -> str:
        """Run `ffmpeg -version`; return the first banner line."""
        try:
            process = await asyncio.create_subprocess_exec(
                self.ffmpeg, "-version",
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise InitError(f"Could not start ffmpeg: {e}") from e

        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            detail = stderr.decode(errors="replace").strip()
            raise InitError(
                f"ffmpeg failed to boot: {detail or f'exit code {process.returncode}'}"
            )
        lines = stdout.decode(errors="replace").splitlines()
        return lines[0].strip() if lines else "ffmpeg"

    # ── Execution ─────────────────────────────────────────────────

    async def exec(self, args: list[str], namespace: JobNamespace) -> None:
        """Run ffmpeg with args inside a job namespace until it exits.

        Raises:
            EngineNotReadyError: load() has not succeeded.
            ExecError: ffmpeg could not start, or exited non-zero. The
                message is ffmpeg's last stderr line, unmodified.
        """
        if not self.ready:
            raise EngineNotReadyError("Engine is not loaded")
        if self._process is not None:
            raise ExecError("Engine is already running a job")

        tracker = ProgressTracker()
        try:
            process = await asyncio.create_subprocess_exec(
                self.ffmpeg, *EXEC_PREFIX, *args,
                cwd=str(namespace.path),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExecError(f"Could not start ffmpeg: {e}") from e

        self._process = process
        pumps = [
            asyncio.ensure_future(self._pump_log(process.stderr, tracker)),
            asyncio.ensure_future(self._pump_progress(process.stdout, tracker)),
        ]
        try:
            last_line, _ = await asyncio.gather(*pumps)
            returncode = await process.wait()
        except BaseException:
            # A failing listener (or cancellation) must not leave ffmpeg
            # running or the other pump still emitting.
            for pump in pumps:
                pump.cancel()
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
            await process.wait()
            await asyncio.gather(*pumps, return_exceptions=True)
            raise
        finally:
            self._process = None

        if returncode != 0:
            raise ExecError(last_line or f"ffmpeg exited with code {returncode}", returncode)

    async def _pump_log(self, stream, tracker: ProgressTracker) -> str | None:
        """Emit each stderr line as a log event; return the last one."""
        last_line = None
        async for raw in stream:
            line = raw.decode(errors="replace").rstrip("\r\n")
            if not line.strip():
                continue
            tracker.feed_log(line)
            last_line = line
            self._listeners.emit("log", line)
        return last_line

    async def _pump_progress(self, stream, tracker: ProgressTracker) -> None:
        async for raw in stream:
            fraction = tracker.feed_progress(raw.decode(errors="replace"))
            if fraction is not None:
                self._listeners.emit("progress", fraction)
