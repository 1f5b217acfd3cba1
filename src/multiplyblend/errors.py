"""Error taxonomy for a blend job.

Every stage raises a subclass of MultiplyBlendError. The compositor
catches them at the run() boundary and turns them into an error status.
"""


class MultiplyBlendError(Exception):
    """Base class for all job errors."""


class InitError(MultiplyBlendError):
    """Engine resources could not be resolved or the engine failed to boot."""


class EngineNotReadyError(InitError):
    """The engine was used before load() completed successfully."""


class StageError(MultiplyBlendError):
    """An input could not be written to working storage."""


class ExecError(MultiplyBlendError):
    """ffmpeg reported a processing failure.

    The message is ffmpeg's own error line, unmodified.
    """

    def __init__(self, message: str, returncode: int | None = None):
        super().__init__(message)
        self.returncode = returncode


class ReadError(MultiplyBlendError):
    """The expected output file is missing from working storage."""


class RunRejectedError(MultiplyBlendError):
    """run() was called while the job is not eligible to start."""
