"""Error taxonomy for the storefront client.

Local validation failures use protean's `ValidationError` (a `messages` dict
keyed by field), exactly like the domain aggregates. Failures reported by the
backend collaborator are `BackendError` subclasses; every one of them is
recoverable and none is retried automatically.
"""

from protean.exceptions import ValidationError


class InvalidTransition(ValidationError):
    """A sub-order status change that is not legal from its known status."""


class BackendError(Exception):
    """The backend refused or failed a request."""

    def __init__(self, message: str, status_code: int | None = None, payload: dict | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}

    def __str__(self):
        if self.status_code:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


class ConflictError(BackendError):
    """The server's state diverged from what the client assumed."""

    @property
    def current_status(self) -> str | None:
        return self.payload.get("currentStatus")


class RejectedError(BackendError):
    """The server rejected a well-formed request (unavailable, forbidden, not found)."""


class TransientNetworkError(BackendError):
    """The request could not complete; the user may retry."""
