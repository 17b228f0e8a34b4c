"""Domain error taxonomy.

Every rejected operation raises one of these. Each carries a machine-readable
``code``, a human-readable ``message`` and the HTTP status the API layer
answers with, so callers can tell "already voted" apart from "proposal not
found" without parsing strings.
"""

from typing import Any, Optional


class PooliftError(Exception):
    code = "error"
    status_code = 400

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        body = {"error": self.code, "message": self.message}
        body.update(self.details)
        return body


class ValidationError(PooliftError):
    """Missing or malformed input. Retrying the same call will not help."""

    code = "validation_error"
    status_code = 400


class ConstraintViolation(PooliftError):
    """A unique constraint rejected the write: someone got there first."""

    code = "constraint_violation"
    status_code = 409

    def __init__(self, name: str, message: Optional[str] = None, **kwargs):
        super().__init__(message or f"Duplicate value violates {name}", **kwargs)
        self.name = name
        self.details.setdefault("constraint", name)


class DuplicateVote(ConstraintViolation):
    code = "duplicate_vote"


class NotFound(PooliftError):
    code = "not_found"
    status_code = 404

    def __init__(self, entity: str, message: Optional[str] = None, **kwargs):
        super().__init__(message or f"{entity} not found", **kwargs)
        self.entity = entity


class Unauthorized(PooliftError):
    """Caller is not authenticated, or does not own the claim it acts on."""

    code = "unauthorized"
    status_code = 403

    def __init__(self, message: str = "Not authorized", *, authenticated: bool = True, **kwargs):
        super().__init__(message, **kwargs)
        if not authenticated:
            self.status_code = 401


class InvalidTransition(PooliftError):
    code = "invalid_transition"
    status_code = 400


class DeleteVerificationFailed(PooliftError):
    """The store accepted the delete but the parent row is still there."""

    code = "delete_verification_failed"
    status_code = 409
