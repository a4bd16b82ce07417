"""
Custom exceptions for dotfetch.

This module defines domain-specific exceptions that separate fatal
configuration problems from the per-channel and per-download failures the
orchestrator records and skips past.
"""


class DotfetchError(Exception):
    """
    Base exception for all dotfetch errors.

    All custom exceptions in dotfetch inherit from this class so callers can
    catch every application-specific error in one place.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(DotfetchError):
    """
    Exception raised when configuration is invalid or missing.

    Configuration errors are fatal: they are raised before any network or
    filesystem activity and terminate the run.
    """

    pass


class ConfigFileError(ConfigurationError):
    """Exception raised when the configuration file cannot be read or parsed."""

    pass


class ConfigValidationError(ConfigurationError):
    """Exception raised when configuration validation fails."""

    pass


# =============================================================================
# Version Resolution Errors
# =============================================================================


class ResolutionError(DotfetchError):
    """Base exception for failures while resolving a channel to a version."""

    pass


class ChannelResolutionError(ResolutionError):
    """Exception raised when no two-part version can be derived for a channel."""

    def __init__(
        self, message: str, channel: str | None = None, details: str | None = None
    ) -> None:
        super().__init__(message, details)
        self.channel = channel


class MetadataFetchError(ResolutionError):
    """
    Exception raised when a latest.version document cannot be fetched.

    Attributes:
        url: The metadata URL that was requested.
    """

    def __init__(
        self, message: str, url: str | None = None, details: str | None = None
    ) -> None:
        super().__init__(message, details)
        self.url = url


class UnknownContentTypeError(ResolutionError):
    """
    Exception raised when a metadata response has an unexpected content type.

    Attributes:
        content_type: The Content-Type header the server returned.
        url: The metadata URL that was requested.
    """

    def __init__(
        self,
        message: str,
        content_type: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message, details=f"Content-Type: {content_type}")
        self.content_type = content_type
        self.url = url


# =============================================================================
# Download Errors
# =============================================================================


class DownloadError(DotfetchError):
    """
    Base exception for download-related errors.

    Attributes:
        url: The URL that was being downloaded when the error occurred.
    """

    def __init__(
        self, message: str, url: str | None = None, details: str | None = None
    ) -> None:
        super().__init__(message, details)
        self.url = url


class ArtifactDownloadError(DownloadError):
    """Exception raised when an artifact download fails after all retries."""

    pass
