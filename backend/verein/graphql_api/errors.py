"""
Verein Backend - GraphQL Error Mapping
=======================================

What:  Turns domain exceptions raised in resolvers into typed GraphQL errors.
How:   A schema extension rewrites the error list of the finished operation.
       Data that resolved successfully stays in the response, so a client gets
       partial data next to the errors.
Who:   Installed on the schema in graphql_api/schema.py.

Error Format:
    {
      "message": "No Verein with ID ... found",
      "path": ["verein"],
      "extensions": {"type": "NotFoundError", "classification": "NOT_FOUND", "id": "..."}
    }

    ConstraintViolationsError becomes one error per violated field with
    path ["input", <field>, ...] and type ConstraintViolationError.
"""

import logging
from typing import Any, Dict, Iterator, List, Tuple, Type, Union

from graphql import GraphQLError
from strawberry.extensions import SchemaExtension

from verein.exceptions import (
    ConstraintViolationsError,
    DatabaseError,
    DateTimeParseError,
    EmailExistsError,
    InvalidCriteriaError,
    NotFoundError,
    VereinError,
    VersionInvalidError,
    VersionOutdatedError,
    Violation,
)

logger = logging.getLogger(__name__)

NOT_FOUND = "NOT_FOUND"
BAD_REQUEST = "BAD_REQUEST"
INTERNAL_ERROR = "INTERNAL_ERROR"

# exception class → (extensions.type, extensions.classification)
ERROR_TYPES: Dict[Type[VereinError], Tuple[str, str]] = {
    NotFoundError: ("NotFoundError", NOT_FOUND),
    EmailExistsError: ("EmailExistsError", BAD_REQUEST),
    DateTimeParseError: ("DateTimeParseError", BAD_REQUEST),
    VersionOutdatedError: ("VersionOutdatedError", BAD_REQUEST),
    VersionInvalidError: ("VersionInvalidError", BAD_REQUEST),
    InvalidCriteriaError: ("InvalidCriteriaError", BAD_REQUEST),
}

_INTERNAL_MESSAGE = "An unexpected error occurred. Please try again later."


def _violation_path(field: str) -> List[Union[str, int]]:
    """'umsaetze.0.betrag' → ['input', 'umsaetze', 0, 'betrag']"""
    parts: List[Union[str, int]] = ["input"]
    for part in field.split("."):
        parts.append(int(part) if part.isdigit() else part)
    return parts


def _violation_error(violation: Violation, original: Exception) -> GraphQLError:
    return GraphQLError(
        violation.message,
        path=_violation_path(violation.field),
        original_error=original,
        extensions={
            "type": "ConstraintViolationError",
            "classification": BAD_REQUEST,
            "field": violation.field,
        },
    )


def to_graphql_errors(error: GraphQLError) -> List[GraphQLError]:
    """
    Map one resolver error to its typed GraphQL error(s).

    Errors without an original exception (syntax and validation errors)
    are returned unchanged.
    """
    original = error.original_error
    if original is None or isinstance(original, GraphQLError):
        return [error]

    if isinstance(original, ConstraintViolationsError):
        return [_violation_error(v, original) for v in original.violations]

    if isinstance(original, VereinError) and not isinstance(original, DatabaseError):
        error_type, classification = ERROR_TYPES.get(
            type(original), (type(original).__name__, BAD_REQUEST)
        )
        extensions: Dict[str, Any] = {"type": error_type, "classification": classification}
        extensions.update(original.context)
        return [
            GraphQLError(
                original.message,
                nodes=error.nodes,
                path=error.path,
                original_error=original,
                extensions=extensions,
            )
        ]

    # DatabaseError and anything unexpected: never expose internals
    return [
        GraphQLError(
            _INTERNAL_MESSAGE,
            nodes=error.nodes,
            path=error.path,
            original_error=original,
            extensions={"type": type(original).__name__, "classification": INTERNAL_ERROR},
        )
    ]


class DomainErrorExtension(SchemaExtension):
    """Rewrites the errors of every operation with `to_graphql_errors()`."""

    def on_operation(self) -> Iterator[None]:
        yield
        result = self.execution_context.result
        if result is None or not getattr(result, "errors", None):
            return
        mapped: List[GraphQLError] = []
        for error in result.errors:
            mapped.extend(to_graphql_errors(error))
        result.errors = mapped
