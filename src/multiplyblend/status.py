"""Job status machine.

Status values are frozen dataclasses. StatusCell holds exactly one of
them and replaces it wholesale on every transition:

  LoadingEngine -> Ready | Error
  Ready -> Processing
  Processing -> Processing (progress/log) | Done | Error
  Done, Error -> Processing (only through a new run)
"""

from dataclasses import dataclass

from .events import ListenerRegistry, Subscription


@dataclass(frozen=True)
class LoadingEngine:
    kind = "loading-engine"


@dataclass(frozen=True)
class Ready:
    kind = "ready"


@dataclass(frozen=True)
class Processing:
    progress: float = 0.0
    log: str | None = None
    kind = "processing"


@dataclass(frozen=True)
class Done:
    url: str
    filename: str
    kind = "done"


@dataclass(frozen=True)
class Error:
    message: str
    kind = "error"


JobStatus = LoadingEngine | Ready | Processing | Done | Error


def can_run(status: JobStatus, has_video: bool, has_overlay: bool) -> bool:
    """Run eligibility: both inputs present, engine loaded, no job running."""
    return (
        has_video
        and has_overlay
        and not isinstance(status, (Processing, LoadingEngine))
    )


class StatusCell:
    """The single observable status value."""

    def __init__(self, initial: JobStatus | None = None):
        self._value = initial if initial is not None else LoadingEngine()
        self._listeners = ListenerRegistry()

    @property
    def value(self) -> JobStatus:
        return self._value

    def set(self, value: JobStatus) -> None:
        self._value = value
        self._listeners.emit("change", value)

    def subscribe(self, callback) -> Subscription:
        """Call callback(status) after every transition."""
        return self._listeners.subscribe("change", callback)
