"""
Verein Backend - Exception Taxonomy
====================================

What:  The closed set of domain failures shared by the REST and GraphQL adapters.
How:   Each exception carries a human-readable message plus structured
       attributes. Adapters read the attributes to build their own error
       format; services never know which protocol is calling them.
Who:   Raised by services (and by adapters for malformed transport input);
       caught by the FastAPI exception handlers in main.py and by the
       strawberry error extension in graphql_api/errors.py.

Exception Hierarchy:
    VereinError (base)
    ├── NotFoundError               → REST 404  | GraphQL NotFoundError
    ├── VersionOutdatedError        → REST 412  | GraphQL VersionOutdatedError
    ├── VersionInvalidError         → REST 400 / 428 (missing)
    ├── ConstraintViolationsError   → REST 400  | GraphQL ConstraintViolationError (one per field)
    ├── EmailExistsError            → REST 409  | GraphQL EmailExistsError
    ├── InvalidCriteriaError        → REST 400  | GraphQL InvalidCriteriaError
    ├── DateTimeParseError          → REST 400  | GraphQL DateTimeParseError
    └── DatabaseError               → REST 500  | GraphQL INTERNAL_ERROR
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID


class VereinError(Exception):
    """
    Base exception for all Verein application errors.

    Attributes:
        message:  User-facing error description (safe to return to clients)
        context:  Structured details for logs and error payloads
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class NotFoundError(VereinError):
    """
    Raised when no Verein exists for an ID (or, for lookups by criteria,
    when a caller explicitly asks for a single match).
    """

    def __init__(
        self,
        verein_id: Optional[UUID] = None,
        criteria: Optional[Mapping[str, str]] = None,
    ):
        self.verein_id = verein_id
        self.criteria = dict(criteria) if criteria else None
        if verein_id is not None:
            message = f"No Verein with ID {verein_id} found"
        else:
            message = f"No Verein found for criteria {self.criteria or {}}"
        context: Dict[str, Any] = {}
        if verein_id is not None:
            context["id"] = str(verein_id)
        if self.criteria:
            context["criteria"] = self.criteria
        super().__init__(message=message, context=context)


class VersionOutdatedError(VereinError):
    """
    Raised when an update names a version other than the stored one.

    `actual` is None when the row vanished between the read and the write.
    The caller has to re-read the Verein and retry; the core never retries.
    """

    def __init__(self, expected: int, actual: Optional[int] = None):
        self.expected = expected
        self.actual = actual
        super().__init__(
            message=f"Version {expected} is outdated",
            context={"expected": expected, "actual": actual},
        )


class VersionInvalidError(VereinError):
    """
    Raised by a transport adapter when the version token is missing or
    malformed (e.g. an If-Match header that is not a quoted integer).

    A missing token has `supplied_value` None.
    """

    def __init__(self, supplied_value: Optional[str] = None):
        self.supplied_value = supplied_value
        if supplied_value is None:
            message = "Version number is missing"
        else:
            message = f"Invalid version token {supplied_value}"
        super().__init__(message=message, context={"supplied_value": supplied_value})

    @property
    def missing(self) -> bool:
        return self.supplied_value is None


@dataclass(frozen=True)
class Violation:
    """One violated field rule: dotted field path plus message."""

    field: str
    message: str

    def as_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


class ConstraintViolationsError(VereinError):
    """Raised when a write payload breaks one or more field rules."""

    def __init__(self, violations: List[Violation]):
        self.violations = list(violations)
        super().__init__(
            message="Constraints are violated",
            context={"violations": [v.as_dict() for v in self.violations]},
        )


class EmailExistsError(VereinError):
    """Raised when an e-mail address is already owned by another Verein."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(
            message=f"The email address {email} already exists",
            context={"email": email},
        )


class InvalidCriteriaError(VereinError):
    """Raised when a search names a field that cannot be searched."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(
            message=f"Unknown search criterion '{key}'",
            context={"key": key},
        )


class DateTimeParseError(VereinError):
    """Raised when a date from the transport layer cannot be parsed."""

    def __init__(self, field: str, raw_value: str):
        self.field = field
        self.raw_value = raw_value
        super().__init__(
            message=f"The date {raw_value} is not valid",
            context={"field": field, "raw_value": raw_value},
        )


class DatabaseError(VereinError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the context is
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
