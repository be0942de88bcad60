"""
Verein Backend - GraphQL Types
===============================

What:  Strawberry object and input types of the GraphQL interface.
How:   Output types are built from ORM entities with `from_entity()`; input
       types convert into the transport-neutral VereinData payload, so the
       write service applies the same field rules as for REST.
Who:   Used by the resolvers in graphql_api/schema.py.
"""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

import strawberry

from verein.models.verein import Verein
from verein.services.verein_data import AdresseData, UmsatzData, VereinData, parse_date


# ══════════════════════════════════════════════════════════════════════════
# Output Types
# ══════════════════════════════════════════════════════════════════════════


@strawberry.type(name="Adresse")
class AdresseType:
    strasse: Optional[str]
    plz: str
    ort: str


@strawberry.type(name="Umsatz")
class UmsatzType:
    betrag: Decimal
    waehrung: str


@strawberry.type(name="Verein")
class VereinType:
    id: strawberry.ID
    version: int
    name: str
    emails: List[str]
    gruendungsdatum: Optional[date]
    homepage: Optional[str]
    adresse: AdresseType
    umsaetze: List[UmsatzType]

    @classmethod
    def from_entity(cls, verein: Verein) -> "VereinType":
        adresse = verein.adresse
        return cls(
            id=strawberry.ID(str(verein.id)),
            version=verein.version,
            name=verein.name,
            emails=verein.email_addresses,
            gruendungsdatum=verein.gruendungsdatum,
            homepage=verein.homepage,
            adresse=AdresseType(strasse=adresse.strasse, plz=adresse.plz, ort=adresse.ort),
            umsaetze=[UmsatzType(betrag=u.betrag, waehrung=u.waehrung) for u in verein.umsaetze],
        )


@strawberry.type
class CreatePayload:
    id: strawberry.ID
    version: int


@strawberry.type
class UpdatePayload:
    id: strawberry.ID
    version: int


# ══════════════════════════════════════════════════════════════════════════
# Input Types
# ══════════════════════════════════════════════════════════════════════════


@strawberry.input
class AdresseInput:
    plz: str
    ort: str
    strasse: Optional[str] = None


@strawberry.input
class UmsatzInput:
    betrag: Decimal
    waehrung: str


@strawberry.input
class VereinInput:
    """Data for createVerein and updateVerein. gruendungsdatum is YYYY-MM-DD."""

    name: str
    adresse: AdresseInput
    emails: List[str] = strawberry.field(default_factory=list)
    gruendungsdatum: Optional[str] = None
    homepage: Optional[str] = None
    umsaetze: List[UmsatzInput] = strawberry.field(default_factory=list)

    def to_data(self) -> VereinData:
        return VereinData(
            name=self.name,
            emails=list(self.emails),
            gruendungsdatum=parse_date("gruendungsdatum", self.gruendungsdatum),
            homepage=self.homepage,
            adresse=AdresseData(
                plz=self.adresse.plz,
                ort=self.adresse.ort,
                strasse=self.adresse.strasse,
            ),
            umsaetze=[UmsatzData(betrag=u.betrag, waehrung=u.waehrung) for u in self.umsaetze],
        )


@strawberry.input
class Suchkriterien:
    name: Optional[str] = None
    email: Optional[str] = None
    plz: Optional[str] = None
    ort: Optional[str] = None

    def to_criteria(self) -> Dict[str, str]:
        """Only the criteria the client actually supplied."""
        candidates = {"name": self.name, "email": self.email, "plz": self.plz, "ort": self.ort}
        return {key: value for key, value in candidates.items() if value is not None}
