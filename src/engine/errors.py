"""Error taxonomy shared by the waveform engine."""


class WaveformError(Exception):
    """Base class for all engine errors."""


class DecodeFailure(WaveformError):
    """Neither the native nor the fallback decode path could read the source."""

    def __init__(self, message: str, *, native_error: Exception | None = None,
                 fallback_error: Exception | None = None) -> None:
        super().__init__(message)
        self.native_error = native_error
        self.fallback_error = fallback_error


class SessionUnavailable(WaveformError):
    """The analysis node is not ready (or already torn down)."""
