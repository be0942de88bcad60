"""
Verein Backend - Write Payload and Field Rules
===============================================

What:  Transport-neutral payload for create/update (`VereinData`) and the
       field rules every payload has to satisfy before it is persisted.
How:   Adapters build a VereinData from their own input types. The write
       service calls `validate_verein_data()`, which runs the payload through
       a pydantic rule model and turns every failing field into a Violation.
Who:   Built by routes/ and graphql_api/; validated by VereinWriteService.
"""

from dataclasses import asdict, dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    PastDate,
    ValidationError,
)

from verein.exceptions import ConstraintViolationsError, DateTimeParseError, Violation


# ══════════════════════════════════════════════════════════════════════════
# Payload
# ══════════════════════════════════════════════════════════════════════════

@dataclass
class AdresseData:
    plz: Optional[str] = None
    ort: Optional[str] = None
    strasse: Optional[str] = None


@dataclass
class UmsatzData:
    betrag: Optional[Decimal] = None
    waehrung: Optional[str] = None


@dataclass
class VereinData:
    """
    The data a caller wants a Verein to have.

    Deliberately unvalidated: adapters copy client input in as-is so the
    write service can report every broken rule at once.
    """

    name: Optional[str] = None
    emails: List[str] = field(default_factory=list)
    gruendungsdatum: Optional[date] = None
    homepage: Optional[str] = None
    adresse: Optional[AdresseData] = None
    umsaetze: List[UmsatzData] = field(default_factory=list)


def parse_date(field_name: str, raw: Optional[str]) -> Optional[date]:
    """
    Parse an ISO 8601 calendar date (YYYY-MM-DD) supplied by a client.

    Raises:
        DateTimeParseError: raw is not a valid date
    """
    if raw is None or raw == "":
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise DateTimeParseError(field=field_name, raw_value=raw)


def parse_id(raw: str) -> Optional[UUID]:
    """The UUID named by a client-supplied ID, or None when it is malformed."""
    try:
        return UUID(str(raw))
    except ValueError:
        return None


# ══════════════════════════════════════════════════════════════════════════
# Field Rules
# ══════════════════════════════════════════════════════════════════════════

class _AdresseRules(BaseModel):
    plz: str = Field(pattern=r"^\d{5}$")
    ort: str = Field(min_length=1, max_length=40)
    strasse: Optional[str] = Field(default=None, max_length=60)


class _UmsatzRules(BaseModel):
    betrag: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    waehrung: str = Field(pattern=r"^[A-Z]{3}$")


class _VereinRules(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=40)
    emails: List[EmailStr] = Field(default_factory=list)
    gruendungsdatum: Optional[PastDate] = None
    homepage: Optional[HttpUrl] = None
    adresse: _AdresseRules
    umsaetze: List[_UmsatzRules] = Field(default_factory=list)


def _field_path(loc: tuple) -> str:
    return ".".join(str(part) for part in loc)


def validate_verein_data(data: VereinData) -> VereinData:
    """
    Check a payload against the field rules.

    Returns:
        A normalized copy: whitespace-stripped name, lower-cased e-mails.

    Raises:
        ConstraintViolationsError: one Violation per offending field
    """
    violations: Dict[str, Violation] = {}
    try:
        _VereinRules.model_validate(asdict(data))
    except ValidationError as exc:
        for error in exc.errors():
            path = _field_path(error["loc"])
            # First message per field wins; pydantic may report several
            violations.setdefault(path, Violation(field=path, message=error["msg"]))

    emails = [email.strip().lower() for email in data.emails]
    if len(set(emails)) != len(emails):
        violations.setdefault(
            "emails", Violation(field="emails", message="Email addresses must be unique")
        )

    if violations:
        raise ConstraintViolationsError(list(violations.values()))

    return replace(data, name=data.name.strip(), emails=emails)
