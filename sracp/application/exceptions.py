"""
Core business exceptions for the sracp application.

This module defines a hierarchy of custom exceptions to allow for granular
error handling and clear separation of failure domains.
"""

from typing import List


class SracpError(Exception):
    """Base exception for all component-specific errors."""
    pass


# --- Configuration Errors ---

class ConfigurationError(SracpError):
    """Raised for errors related to application configuration."""
    pass


# --- Infrastructure Errors ---

class InfrastructureError(SracpError):
    """Base class for errors related to external systems (network, API, etc.)."""
    pass


class RequestBuildError(InfrastructureError):
    """Raised when the multipart request body cannot be assembled."""
    pass


class TransportError(InfrastructureError):
    """Raised when the request to the Name Resolver API cannot be completed."""
    pass


class ProtocolError(InfrastructureError):
    """Base class for responses that break the Name Resolver API contract."""
    pass


class ResolverStatusError(ProtocolError):
    """Raised when the Name Resolver API answers with a non-200 status."""

    def __init__(self, status_code: int, reason: str):
        super().__init__(
            f"encountered error from Name Resolver API: {status_code} {reason}"
        )
        self.status_code = status_code
        self.reason = reason


class ContentTypeError(ProtocolError):
    """Raised when the response is not served as application/json."""
    pass


class UndecodableResponseError(ProtocolError):
    """Raised when the body matches neither known response shape."""
    pass


class ResolverError(ProtocolError):
    """Raised when the API replies with a single top-level error object."""

    def __init__(self, status: int, message: str):
        super().__init__(
            f"encountered error from Name Resolver API: {status}: {message}"
        )
        self.status = status
        self.message = message


class DownloadError(InfrastructureError):
    """Raised when a file download fails."""
    pass


class CredentialError(InfrastructureError):
    """Raised when the credential file cannot be read."""
    pass


class StorageError(InfrastructureError):
    """Base class for failed reads against an object URL."""

    def __init__(self, url: str, status_code: int):
        super().__init__(f"{url} answered with HTTP {status_code}")
        self.url = url
        self.status_code = status_code


class UnauthorizedError(StorageError):
    """The object exists but the caller may not read it (401/403)."""


class ObjectNotFoundError(StorageError):
    """The object does not exist (404)."""


class MethodNotSupportedError(StorageError):
    """The storage service refused the HTTP method (405)."""


class StorageServerError(StorageError):
    """The storage service failed on its side (5xx)."""


class UnexpectedStatusError(StorageError):
    """Any other non-success status."""


# --- Domain/Business Logic Errors ---

class DomainError(SracpError):
    """Base class for errors related to business logic failures."""
    pass


class ResolutionError(DomainError):
    """
    Raised when reconciliation leaves no accession with downloadable files.

    The per-accession failures and the diagnostic trail are folded into the
    message and kept on the instance for callers that want them separately.
    """

    def __init__(self, failures: List[str], diagnostics: List[str]):
        details = "\n".join(failures + diagnostics)
        super().__init__(f"API returned no mountable accessions\n{details}")
        self.failures = failures
        self.diagnostics = diagnostics


class VerificationError(DomainError):
    """Raised when a verification step fails (e.g., checksum mismatch)."""
    pass
