"""Exception hierarchy shared by the engine, collaborators and HTTP layer."""
from __future__ import annotations


class HireMindError(Exception):
    """Base error; ``status_code`` is what the HTTP layer responds with."""

    status_code = 500

    def __init__(self, message: str = "", *, details: object | None = None) -> None:
        super().__init__(message)
        self.message = message or self.__class__.__name__
        self.details = details


class UpstreamError(HireMindError):
    """An external collaborator (LLM, listing provider) failed."""

    status_code = 502


class ClusteringUnavailable(UpstreamError):
    """The skill clusterer failed; no recommendation can be assembled."""


class SourceUnavailable(UpstreamError):
    """A single listing search or detail fetch failed or timed out."""


class ResumeExtractionError(UpstreamError):
    """Structured data could not be extracted from a resume."""


class MalformedListingBlock(HireMindError):
    """A listing block in the provider markup lacks required fields."""


class ValidationFailed(HireMindError):
    status_code = 400


class ConflictError(HireMindError):
    status_code = 400


class AuthenticationError(HireMindError):
    status_code = 401


class PermissionDenied(HireMindError):
    status_code = 403


class NotFoundError(HireMindError):
    status_code = 404
