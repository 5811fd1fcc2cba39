"""
Exception taxonomy surfaced to the API and the terminal client.
"""

from typing import Dict, Optional


class PharmaChainError(ValueError):
    """Base class; every failure degrades to a message and unchanged data."""
    reason = "error"


class ValidationFailed(PharmaChainError):
    """Field-level validation errors (field name → message)."""
    reason = "validation"

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        detail = "; ".join(f"{k}: {v}" for k, v in self.errors.items())
        super().__init__(f"Validation failed – {detail}")


class PermissionDenied(PharmaChainError):
    reason = "no-permission"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "You don't have permission to perform this action.")


class NotFound(PharmaChainError):
    reason = "not-found"


class AuthenticationError(PharmaChainError):
    reason = "invalid-credentials"


class TaskCancelled(PharmaChainError):
    """A simulated operation was cancelled before it could apply its update."""
    reason = "cancelled"
