"""
Domain errors raised by the service layer.

They subclass ``HTTPException`` so a router never has to translate them; the
scheduled archive pass catches them per owner instead.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable

from fastapi import HTTPException


class PlannerError(HTTPException):
    status_code = 500
    default_detail = "Internal error"

    def __init__(self, detail: str | None = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class ValidationError(PlannerError):
    """Caller-correctable input: bad policy fields, bad reposition payloads."""
    status_code = 422
    default_detail = "Invalid request"


class NotFoundError(PlannerError):
    status_code = 404
    default_detail = "Not found"


class OwnershipError(PlannerError):
    """Some referenced records do not exist or belong to another user."""
    status_code = 403
    default_detail = "Some records do not exist or are not accessible"

    def __init__(self, ids: Iterable[uuid.UUID] = (), detail: str | None = None):
        self.ids = sorted(ids, key=str)
        if detail is None and self.ids:
            detail = f"{self.default_detail}: {', '.join(str(i) for i in self.ids)}"
        super().__init__(detail)


class ConflictError(PlannerError):
    status_code = 409
    default_detail = "Conflict"


class PersistenceError(PlannerError):
    """The store failed to complete a transaction."""
    status_code = 500
    default_detail = "Storage operation failed"
