"""
Verein Backend - REST Request/Response Schemas
===============================================

What:  Pydantic models defining the REST contract: input DTOs, the HAL
       representation of a Verein, and RFC 7807 problem bodies.
How:   FastAPI validates request bodies against the DTOs and serializes the
       response models (by alias, so `_links` / `_embedded` appear as in HAL).
Who:   Used by routes/verein_get.py, routes/verein_write.py and the exception
       handlers in main.py.

Design Decision:
    DTOs are deliberately permissive (everything optional, dates as strings).
    The field rules live in services/verein_data.py so REST and GraphQL report
    the same violations; a DTO only converts JSON into a VereinData payload.
"""

from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from verein.models.verein import Verein
from verein.services.verein_data import AdresseData, UmsatzData, VereinData, parse_date


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class AdresseDTO(BaseModel):
    plz: Optional[str] = None
    ort: Optional[str] = None
    strasse: Optional[str] = None


class UmsatzDTO(BaseModel):
    betrag: Optional[Decimal] = None
    waehrung: Optional[str] = None


class VereinDTO(BaseModel):
    """
    Body of POST /verein and PUT /verein/{id}.

    `gruendungsdatum` is an ISO date string; an unparseable value is reported
    as DateTimeParseError rather than a generic validation error.
    """

    name: Optional[str] = None
    emails: List[str] = Field(default_factory=list)
    gruendungsdatum: Optional[str] = Field(default=None, examples=["1900-02-27"])
    homepage: Optional[str] = None
    adresse: Optional[AdresseDTO] = None
    umsaetze: List[UmsatzDTO] = Field(default_factory=list)

    def to_data(self) -> VereinData:
        adresse = None
        if self.adresse is not None:
            adresse = AdresseData(
                plz=self.adresse.plz,
                ort=self.adresse.ort,
                strasse=self.adresse.strasse,
            )
        return VereinData(
            name=self.name,
            emails=list(self.emails),
            gruendungsdatum=parse_date("gruendungsdatum", self.gruendungsdatum),
            homepage=self.homepage,
            adresse=adresse,
            umsaetze=[UmsatzData(betrag=u.betrag, waehrung=u.waehrung) for u in self.umsaetze],
        )


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class Link(BaseModel):
    href: str


class AdresseModel(BaseModel):
    strasse: Optional[str] = None
    plz: str
    ort: str


class UmsatzModel(BaseModel):
    betrag: Decimal
    waehrung: str

    @field_serializer("betrag", when_used="json")
    def serialize_betrag(self, betrag: Decimal) -> float:
        return float(betrag)


class VereinModel(BaseModel):
    """
    HAL representation of a Verein.

    ID and version are not part of the body: the ID is in the self link and
    the version is sent as ETag.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    emails: List[str]
    gruendungsdatum: Optional[str] = None
    homepage: Optional[str] = None
    adresse: AdresseModel
    umsaetze: List[UmsatzModel]
    links: Dict[str, Link] = Field(default_factory=dict, alias="_links")

    @classmethod
    def from_entity(cls, verein: Verein, links: Dict[str, Link]) -> "VereinModel":
        adresse = verein.adresse
        return cls(
            name=verein.name,
            emails=verein.email_addresses,
            gruendungsdatum=verein.gruendungsdatum.isoformat() if verein.gruendungsdatum else None,
            homepage=verein.homepage,
            adresse=AdresseModel(strasse=adresse.strasse, plz=adresse.plz, ort=adresse.ort),
            umsaetze=[UmsatzModel(betrag=u.betrag, waehrung=u.waehrung) for u in verein.umsaetze],
            links=links,
        )


class VereineEmbedded(BaseModel):
    vereine: List[VereinModel]


class VereinCollectionModel(BaseModel):
    """HAL collection returned by GET /verein."""

    model_config = ConfigDict(populate_by_name=True)

    embedded: VereineEmbedded = Field(alias="_embedded")
    links: Dict[str, Link] = Field(default_factory=dict, alias="_links")


# ══════════════════════════════════════════════════════════════════════════
# Problem Details (RFC 7807)
# ══════════════════════════════════════════════════════════════════════════


class ProblemType(str, Enum):
    """Last path segment of a problem `type` URI."""

    CONSTRAINTS = "constraints"
    CONFLICT = "conflict"
    PRECONDITION = "precondition"
    BAD_REQUEST = "badRequest"
    NOT_FOUND = "notFound"
    INTERNAL = "internal"


class ViolationModel(BaseModel):
    field: str
    message: str


class ProblemDetail(BaseModel):
    """
    Error body with media type application/problem+json.

    `violations` is only present for constraint violations; `request_id`
    matches the X-Request-ID response header.
    """

    type: str
    title: str
    status: int
    detail: Optional[str] = None
    instance: Optional[str] = None
    violations: Optional[List[ViolationModel]] = None
    request_id: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float
