"""Exception classes for setlist2playlist.

Pipeline failures are typed so the request boundary can map them to a
status and a response body without inspecting messages.

Exception Hierarchy:
    PipelineError (base)
        InvalidRequest - bad or missing input, caller must fix
        AuthenticationFailure - credential invalid or expired
        NoDataFound - no setlist data after the year fallback
        ServiceUnavailable - a named external dependency failed

Adapter errors (SetlistSourceError, CatalogError) never leave the stage
that uses them; each stage translates them into a PipelineError.
"""

from typing import Any


class PipelineError(Exception):
    """Base exception for all failures a pipeline run can surface.

    Attributes:
        message: Human-readable error description.
        details: Additional structured context (field, service, year, ...).
    """

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def to_response(self) -> tuple[int, dict[str, Any]]:
        """Format the error as a (status, body) pair for a caller-facing boundary."""
        body: dict[str, Any] = {"error": {"message": self.message, "code": self.code}}
        if self.details:
            body["error"]["details"] = self.details
        return self.status_code, body


class InvalidRequest(PipelineError):
    """Raised when a required request field is missing or blank."""

    code = "INVALID_REQUEST"
    status_code = 400

    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(message or f"{field} is required", {"field": field})
        self.field = field


class AuthenticationFailure(PipelineError):
    """Raised when the catalog rejects the credential (expired or invalid)."""

    code = "AUTHENTICATION_FAILURE"
    status_code = 401

    def __init__(
        self,
        message: str = "Invalid or expired access token",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)


class NoDataFound(PipelineError):
    """Raised when neither the requested year nor the year before has setlists."""

    code = "NO_DATA_FOUND"
    status_code = 404

    def __init__(self, artist_id: str, year: int, fallback_year: int) -> None:
        super().__init__(
            f"No setlist data found for artist {artist_id} in years {year} or {fallback_year}",
            {"artist_id": artist_id, "year": year, "fallback_year": fallback_year},
        )
        self.artist_id = artist_id
        self.year = year
        self.fallback_year = fallback_year


class ServiceUnavailable(PipelineError):
    """Raised when an external dependency is unreachable or returns an error.

    Example:
        raise ServiceUnavailable("setlist-data", year=2024, status=503)
    """

    code = "SERVICE_UNAVAILABLE"
    status_code = 502

    def __init__(self, service: str, message: str | None = None, **details: Any) -> None:
        super().__init__(
            message or f"{service} is unavailable",
            {"service": service, **details},
        )
        self.service = service


class SetlistSourceError(Exception):
    """Transport or service error from a setlist data source."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class CatalogError(Exception):
    """Any failed call to the music catalog."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class CatalogAuthError(CatalogError):
    """The catalog rejected the bearer credential (HTTP 401)."""
