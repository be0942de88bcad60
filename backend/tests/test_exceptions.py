"""
Verein Backend - Exception Taxonomy and Error Mapping Tests
============================================================

What:  Messages/context of the domain exceptions and their GraphQL mapping.
"""

from uuid import uuid4

from graphql import GraphQLError

from verein.exceptions import (
    ConstraintViolationsError,
    DatabaseError,
    EmailExistsError,
    NotFoundError,
    VersionInvalidError,
    VersionOutdatedError,
    Violation,
)
from verein.graphql_api.errors import to_graphql_errors


def _resolver_error(exc: Exception) -> GraphQLError:
    return GraphQLError(str(exc), path=["createVerein"], original_error=exc)


class TestExceptions:

    def test_not_found_by_id(self):
        verein_id = uuid4()
        exc = NotFoundError(verein_id=verein_id)

        assert str(verein_id) in exc.message
        assert exc.context == {"id": str(verein_id)}

    def test_not_found_by_criteria(self):
        exc = NotFoundError(criteria={"name": "x"})

        assert exc.verein_id is None
        assert exc.context == {"criteria": {"name": "x"}}

    def test_version_invalid_missing(self):
        assert VersionInvalidError().missing is True
        assert VersionInvalidError(supplied_value="abc").missing is False

    def test_version_outdated_context(self):
        exc = VersionOutdatedError(expected=0, actual=1)

        assert exc.context == {"expected": 0, "actual": 1}

    def test_constraint_violations_context(self):
        exc = ConstraintViolationsError([Violation(field="name", message="too short")])

        assert exc.context["violations"] == [{"field": "name", "message": "too short"}]


class TestGraphQLErrorMapping:

    def test_one_error_per_violation(self):
        exc = ConstraintViolationsError(
            [
                Violation(field="name", message="too short"),
                Violation(field="umsaetze.0.betrag", message="negative"),
            ]
        )

        errors = to_graphql_errors(_resolver_error(exc))

        assert [e.path for e in errors] == [["input", "name"], ["input", "umsaetze", 0, "betrag"]]
        assert {e.extensions["type"] for e in errors} == {"ConstraintViolationError"}

    def test_email_exists(self):
        (error,) = to_graphql_errors(_resolver_error(EmailExistsError("a@x.com")))

        assert error.extensions == {
            "type": "EmailExistsError",
            "classification": "BAD_REQUEST",
            "email": "a@x.com",
        }
        assert error.path == ["createVerein"]

    def test_database_error_is_masked(self):
        exc = DatabaseError(context={"error_type": "OperationalError"})

        (error,) = to_graphql_errors(_resolver_error(exc))

        assert error.extensions == {"type": "DatabaseError", "classification": "INTERNAL_ERROR"}
        assert "OperationalError" not in error.message

    def test_unexpected_error_is_masked(self):
        (error,) = to_graphql_errors(_resolver_error(RuntimeError("secret details")))

        assert error.extensions["classification"] == "INTERNAL_ERROR"
        assert "secret" not in error.message

    def test_syntax_errors_pass_through(self):
        original = GraphQLError("Syntax Error: Unexpected Name")

        assert to_graphql_errors(original) == [original]
