"""Exceptions raised by the concat_file pipeline."""

from __future__ import annotations


class ConcatFileError(Exception):
    """Base exception for concat_file errors."""


class ValidationError(ConcatFileError, ValueError):
    """Raised when a target or fragment declaration is malformed."""


class ConfigurationError(ConcatFileError):
    """Raised when configuration values are invalid."""


class ManifestError(ConcatFileError):
    """Raised when a manifest file cannot be read or has an invalid shape."""


class ContentResolutionError(ConcatFileError):
    """Raised when no content can be produced for a fragment.

    Carries the fragment name and every locator that was attempted so the
    failing declaration can be identified from the message alone.
    """

    def __init__(
        self,
        message: str,
        *,
        fragment: str | None = None,
        locators: tuple[str, ...] = (),
    ) -> None:
        """Initialize with the failing fragment and attempted locators."""
        super().__init__(message)
        self.fragment = fragment
        self.locators = locators


class PipelineError(ConcatFileError):
    """Terminal failure for a single target, raised by the executor."""

    def __init__(
        self,
        message: str,
        stage_name: str | None,
        underlying_error: Exception | None = None,
        *,
        target: str | None = None,
    ) -> None:
        """Initialize with stage identity and the underlying cause."""
        self.stage_name = stage_name
        self.underlying_error = underlying_error
        self.target = target
        prefix = f"[{target}] " if target else ""
        where = f" (stage: {stage_name})" if stage_name else ""
        super().__init__(f"{prefix}{message}{where}")


class InvariantViolationError(ConcatFileError):
    """Raised when a pipeline or sync invariant is broken."""

    def __init__(self, message: str, *, stage_name: str | None = None) -> None:
        """Initialize with an optional stage name for context."""
        self.stage_name = stage_name
        super().__init__(message)
