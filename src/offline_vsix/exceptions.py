"""
Custom exceptions for the offline-vsix application.

This module defines domain-specific exceptions that categorize failures of the
resolve-and-fetch pipeline so that one bad extension can be reported without
aborting the rest of a batch.
"""

from typing import Iterable, Optional


class OfflineVsixError(Exception):
    """
    Base exception for all offline-vsix errors.

    All custom exceptions in offline-vsix inherit from this class to allow
    for easy catching of all application-specific errors.
    """

    def __init__(self, message: str, details: Optional[str] = None) -> None:
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


class ConfigurationError(OfflineVsixError):
    """
    Exception raised when configuration is invalid or missing.

    This includes:
    - Unreadable settings files
    - Invalid setting values
    - Unreadable or malformed extension list files
    """

    pass


class ConfigFileError(ConfigurationError):
    """Exception raised when the settings file cannot be read or is invalid."""

    def __init__(
        self, message: str, path: Optional[str] = None, details: Optional[str] = None
    ) -> None:
        super().__init__(message, details)
        self.path = path


class ExtensionListError(ConfigFileError):
    """Exception raised when the extension list (extensions.json) cannot be used."""

    pass


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(OfflineVsixError):
    """
    Exception raised when validation fails.

    Attributes:
        field: The name of the field that failed validation.
        value: The value that failed validation.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
        self.value = value


class InvalidIdentifierError(ValidationError):
    """Exception raised when an extension identifier is not `publisher.name`."""

    pass


class VersionError(ValidationError):
    """Exception raised when a version string is not `major.minor.patch`."""

    pass


class UnsafeFileNameError(ValidationError):
    """
    Exception raised when a value cannot be used inside a local file name.

    This covers marketplace values that are empty, `.` or `..`, absolute,
    or contain a null byte or a path separator.
    """

    pass


# =============================================================================
# Metadata Query Errors
# =============================================================================


class QueryError(OfflineVsixError):
    """
    Base exception for marketplace metadata query failures.

    Attributes:
        identifier: The `publisher.name` that was being queried.
        url: The query endpoint.
    """

    def __init__(
        self,
        message: str,
        identifier: Optional[str] = None,
        url: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.identifier = identifier
        self.url = url


class QueryTransportError(QueryError):
    """
    Exception raised when the query could not be delivered.

    This includes:
    - DNS resolution failures
    - Connection refused errors
    - SSL/TLS errors
    - Proxy errors
    """

    pass


class QueryTimeoutError(QueryTransportError):
    """Exception raised when the marketplace did not answer within the timeout."""

    pass


class QueryHTTPError(QueryError):
    """
    Exception raised when the marketplace answers with a non-success status.

    Attributes:
        status_code: The HTTP status code returned by the server.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        identifier: Optional[str] = None,
        url: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, identifier, url, details)
        self.status_code = status_code


class MalformedResponseError(QueryError):
    """Exception raised when the query response does not have the expected shape."""

    pass


# =============================================================================
# Resolution Errors
# =============================================================================


class ResolutionError(OfflineVsixError):
    """
    Base exception for failures to pick a (platform, version) target.

    Attributes:
        identifier: The `publisher.name` being resolved.
    """

    def __init__(
        self,
        message: str,
        identifier: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.identifier = identifier


class UnsupportedPlatformError(ResolutionError):
    """
    Exception raised when a requested platform has no published build.

    Attributes:
        platform: The requested platform string.
        available: Platforms that do have a published build.
    """

    def __init__(
        self,
        message: str,
        platform: Optional[str] = None,
        available: Optional[Iterable[str]] = None,
        identifier: Optional[str] = None,
    ) -> None:
        available_list = sorted(available or [])
        details = (
            f"available: {', '.join(available_list)}" if available_list else None
        )
        super().__init__(message, identifier, details)
        self.platform = platform
        self.available = available_list


class NoResolvableTargetError(ResolutionError):
    """Exception raised when the version map is empty or nothing in it applies."""

    pass


# =============================================================================
# Fetch Errors
# =============================================================================


class FetchError(OfflineVsixError):
    """
    Base exception for artifact download failures.

    Attributes:
        url: The URL that was being downloaded when the error occurred.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url


class FetchTransportError(FetchError):
    """Exception raised for network-level download failures."""

    pass


class FetchTimeoutError(FetchTransportError):
    """Exception raised when a download did not complete within the timeout."""

    pass


class FetchHTTPError(FetchError):
    """
    Exception raised for HTTP-related download failures.

    Attributes:
        status_code: The HTTP status code returned by the server.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, url, details)
        self.status_code = status_code


class DecodeError(FetchError):
    """Exception raised when a gzip-encoded body cannot be decompressed."""

    pass


class FileWriteError(FetchError):
    """
    Exception raised when a downloaded artifact cannot be written to disk.

    Attributes:
        path: The destination file path.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        url: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, url, details)
        self.path = path


# =============================================================================
# File System Errors
# =============================================================================


class DestinationError(OfflineVsixError):
    """
    Exception raised when the destination directory cannot be created.

    This error is fatal for a run: without a destination nothing can be saved.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.path = path
