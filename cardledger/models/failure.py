"""
Failure classification for CardLedger.

Every failure the service knows how to explain is raised as a subclass of
`KnownError`. Routers let these propagate; the exception handler in
`cardledger.main` renders them as a `FailureDetail` body with the error's
status code.

Provider failures are split in two:
- CardNotFoundError: the provider answered, and has no such card
- ProviderUnavailableError: the provider could not answer

Enrichment absorbs both (the card is shown without provider data).
Direct lookups surface both.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"

    # Resource failures
    NOT_FOUND = "not_found"

    # Service failures
    SERVICE_UNAVAILABLE = "service_unavailable"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a serializable FailureDetail."""
        return FailureDetail(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class CardNotFoundError(KnownError):
    """The provider has no card for the given id or name."""

    def __init__(self, lookup: str, detail: str | None = None):
        self.lookup = lookup
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Card not found on Scryfall: {lookup}",
            detail=detail,
            suggestion="Check the spelling, or search for the card first.",
            status_code=404,
        )


class ProviderUnavailableError(KnownError):
    """
    The provider could not be reached or answered with an error.

    Covers transport failures, timeouts, non-404 error statuses and
    undecodable bodies.
    """

    def __init__(self, operation: str, detail: str | None = None):
        self.operation = operation
        super().__init__(
            kind=FailureKind.SERVICE_UNAVAILABLE,
            message=f"Scryfall is unavailable ({operation})",
            detail=detail,
            suggestion="Try again in a moment.",
            status_code=502,
        )


class ResourceNotFoundError(KnownError):
    """A collection or card does not exist for the requesting user."""

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"{resource.capitalize()} not found",
            detail=f"{resource} id: {resource_id}",
            status_code=404,
        )


class InvalidInputError(KnownError):
    """The request is well-formed but cannot be applied."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message=message,
            detail=detail,
            status_code=400,
        )


@dataclass(frozen=True, slots=True)
class ImportFailure:
    """
    A deck-list entry that could not be imported.

    Recorded in the import result, never raised.
    """

    name: str
    reason: str
