"""Compositor — orchestrates one blend job at a time.

Owns the status cell and drives the stages in order:

  initialize(): load engine, attach log/progress listeners -> Ready
  run():        stage inputs -> build args -> execute -> materialize -> Done

Any exception raised during a run, from a stage or from a status
observer, ends the run in Error(message). Nothing is retried; a
new run() starts from a fresh job namespace.
"""

from dataclasses import dataclass
from pathlib import Path

from .engine import Engine
from .errors import InitError, RunRejectedError
from .executor import apply_log, apply_progress, run_job
from .filtergraph import build_args
from .output import ObjectURLRegistry, OutputArtifact, materialize
from .staging import stage_inputs
from .status import (
    Done, Error, LoadingEngine, Processing, Ready, StatusCell, can_run,
)
from .storage import JobNamespace


@dataclass(frozen=True)
class InputFile:
    """An input byte buffer plus the name it was selected under."""

    name: str
    data: bytes

    @classmethod
    def from_path(cls, path: str | Path) -> "InputFile":
        path = Path(path)
        return cls(name=path.name, data=path.read_bytes())


@dataclass(frozen=True)
class JobInput:
    video: InputFile
    overlay: InputFile


class Compositor:
    def __init__(self, engine: Engine, registry: ObjectURLRegistry | None = None):
        self.engine = engine
        self.registry = registry if registry is not None else ObjectURLRegistry()
        self.cell = StatusCell(LoadingEngine())
        self.video: InputFile | None = None
        self.overlay: InputFile | None = None
        self._subscriptions = []
        self._namespace: JobNamespace | None = None

    @property
    def status(self):
        return self.cell.value

    @property
    def can_run(self) -> bool:
        return can_run(self.status, self.video is not None, self.overlay is not None)

    def subscribe(self, callback):
        """Observe status changes. Returns a cancellable Subscription."""
        return self.cell.subscribe(callback)

    def select_video(self, video: InputFile | None) -> None:
        self.video = video

    def select_overlay(self, overlay: InputFile | None) -> None:
        self.overlay = overlay

    async def initialize(self) -> bool:
        """Load the engine. Returns True when the status reaches Ready."""
        self.cell.set(LoadingEngine())
        try:
            await self.engine.load()
        except InitError as e:
            self.cell.set(Error(str(e) or "Engine failed to load"))
            return False

        self._subscriptions = [
            self.engine.on("log", lambda line: apply_log(self.cell, line)),
            self.engine.on("progress", lambda value: apply_progress(self.cell, value)),
        ]
        self.cell.set(Ready())
        return True

    async def run(self) -> OutputArtifact | None:
        """Run one blend job with the selected inputs.

        Returns:
            The artifact on success, None when the job ended in Error.

        Raises:
            RunRejectedError: Inputs missing, engine not ready, or a job
                is already processing. Status is left untouched.
        """
        if not self.can_run or not self.engine.ready:
            raise RunRejectedError(self._rejection_reason())

        job = JobInput(video=self.video, overlay=self.overlay)
        self.cell.set(Processing(progress=0.0))
        try:
            namespace = self._fresh_namespace()
            await stage_inputs(namespace, job.video.data, job.overlay.data)
            await run_job(self.engine, self.cell, build_args(), namespace)
            artifact = await materialize(namespace, self.registry, job.video.name)
        except Exception as e:
            self.cell.set(Error(str(e) or type(e).__name__))
            return None

        self.cell.set(Done(url=artifact.url, filename=artifact.filename))
        return artifact

    def close(self) -> None:
        """Teardown: detach listeners first, then stop the engine."""
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions = []
        self.engine.terminate()
        self.registry.revoke_all()

    def _fresh_namespace(self) -> JobNamespace:
        # Previous job's files are only kept until the next run starts.
        if self._namespace is not None:
            self._namespace.discard()
        self._namespace = self.engine.storage.namespace()
        return self._namespace

    def _rejection_reason(self) -> str:
        status = self.status
        if isinstance(status, LoadingEngine):
            return "Engine is still loading"
        if isinstance(status, Processing):
            return "A job is already processing"
        if not self.engine.ready:
            return "Engine is not ready"
        if self.video is None:
            return "No video selected"
        return "No overlay selected"
