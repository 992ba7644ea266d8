"""Exception types shared across the Japavel core."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable


@dataclass
class ValidationIssue:
    """A single structural problem found in a schema document or model."""

    message: str
    path: str = ""  # location within the document, e.g. "Fields/email/type"
    source: Path | str | None = None
    severity: str = "error"  # "error" | "warning"

    def __str__(self) -> str:
        src = f" {self.source}" if self.source else ""
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}]{src}{loc}: {self.message}"


class SchemaValidationError(ValueError):
    """Raised when a document or value does not conform to its schema.

    Attributes:
        issues: Every problem found, in document order.
    """

    def __init__(self, message: str, issues: Iterable[ValidationIssue] = ()):
        self.issues = list(issues)
        if self.issues:
            details = "; ".join(str(issue) for issue in self.issues)
            message = f"{message}: {details}"
        super().__init__(message)

    @classmethod
    def from_pydantic(cls, exc, source: str | None = None) -> SchemaValidationError:
        """Build from a ``pydantic.ValidationError``."""
        issues = [
            ValidationIssue(
                message=err["msg"],
                path="/".join(str(p) for p in err["loc"]),
                source=source,
            )
            for err in exc.errors()
        ]
        return cls(f"Invalid {exc.title}", issues)


class NoTenantContextError(RuntimeError):
    """Raised when code expects a tenant scope but none is active."""

    def __init__(self, message: str = "Tenant context not set. Ensure request is within tenant scope."):
        super().__init__(message)


class ProcedureError(Exception):
    """Base class for failures signalled by procedure guards.

    Attributes:
        code: Machine-readable error code
        status_code: Matching HTTP status
    """

    code = "INTERNAL_SERVER_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class UnauthorizedError(ProcedureError):
    code = "UNAUTHORIZED"
    status_code = 401


class ForbiddenError(ProcedureError):
    code = "FORBIDDEN"
    status_code = 403
