"""Error taxonomy for the self-update pipeline."""

from __future__ import annotations


class UpdateError(Exception):
    """Base class for update failures.

    ``code`` carries a short machine-readable reason (HTTP status, exit
    code or exception class name) when one is known.
    """

    def __init__(self, message: str, code: str | int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, code={self.code!r})"


class LocalReadError(UpdateError):
    """Raised when the local manifest is missing or unparsable."""


class NetworkError(UpdateError):
    """Raised when an update request fails or returns a non-success status."""


class RetryExhausted(UpdateError):
    """Raised when every attempt of a retried operation has failed."""

    def __init__(self, last_error: BaseException, attempts: int) -> None:
        message = getattr(last_error, "message", None) or str(last_error) or type(last_error).__name__
        code = getattr(last_error, "code", None)
        super().__init__(f"gave up after {attempts} attempts: {message}", code=code)
        self.last_error = last_error
        self.attempts = attempts


class VcsError(UpdateError):
    """Raised when a git command of the update sequence fails."""


class ArchiveError(UpdateError):
    """Raised when downloading, extracting or copying the release archive fails."""


class InstallError(UpdateError):
    """Raised when reinstalling dependencies fails."""
