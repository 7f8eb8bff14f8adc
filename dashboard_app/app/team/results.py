"""Discriminated success/failure results returned by the team operations.

Expected failures (permission denial, missing records, bad input, invariant
protection, duplicates) are returned as a failed ``TeamResult`` instead of
raised. Only persistence errors propagate.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional


class ErrorCategory(str, enum.Enum):
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    INVARIANT_VIOLATION = "invariant_violation"
    CONFLICT = "conflict"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self]


STATUS_CODES = {
    ErrorCategory.UNAUTHORIZED: 401,
    ErrorCategory.FORBIDDEN: 403,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.INVARIANT_VIOLATION: 409,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.INTERNAL: 500,
}

# User-facing messages shared by the team operations and the endpoints.
FORBIDDEN = "Forbidden"
INSUFFICIENT_PRIVILEGE = "Insufficient privilege"
INVALID_ROLE = "Invalid role"
MEMBER_NOT_FOUND = "Member not found"
INVITATION_NOT_FOUND = "Invitation not found"
LAST_OWNER = "Cannot demote the last owner"
ALREADY_MEMBER = "User is already a member"
ALREADY_PENDING = "Invitation already pending"


@dataclass
class TeamResult:
    success: bool
    error: Optional[str] = None
    category: Optional[ErrorCategory] = None
    invitation: Any = None
    membership: Any = None

    @classmethod
    def ok(cls, **payload) -> "TeamResult":
        return cls(success=True, **payload)

    @classmethod
    def fail(cls, category: ErrorCategory, error: str) -> "TeamResult":
        return cls(success=False, error=error, category=category)

    @property
    def status_code(self) -> int:
        if self.success:
            return 200
        return (self.category or ErrorCategory.INTERNAL).status_code

    def error_payload(self) -> dict:
        category = self.category or ErrorCategory.INTERNAL
        return {"success": False, "error": self.error, "category": category.value}
