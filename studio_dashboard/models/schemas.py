"""
Pydantic Schemas

Record schemas for the Living Apps collections and the derived
view-models produced for the dashboard.

Wire field names are German; attributes are English and mapped with
aliases. Every record field is optional because the Record Store does not
enforce field presence.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Duration(str, Enum):
    """Total duration buckets offered by the intake form."""

    MIN_30 = "dauer_30"
    MIN_45 = "dauer_45"
    MIN_60 = "dauer_60"

    @property
    def minutes(self) -> int:
        return int(self.value.split("_")[1])


TreatmentCount = Literal[
    "anzahl_1", "anzahl_2", "anzahl_3", "anzahl_4", "anzahl_5",
    "anzahl_6", "anzahl_7", "anzahl_8", "anzahl_9", "anzahl_10",
]

_TREATMENT_COUNTS = {f"anzahl_{i}" for i in range(1, 11)}


def _numeric_or_none(v: Any) -> Optional[float]:
    """Read numbers leniently; anything unreadable becomes absent."""
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return float(v)
    if isinstance(v, str):
        try:
            return float(v.strip().replace(",", "."))
        except ValueError:
            return None
    return None


class _Fields(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        coerce_numbers_to_str=True,
    )


# =============================================================================
# Collection field sets
# =============================================================================

class CustomerFields(_Fields):
    first_name: Optional[str] = Field(default=None, alias="vorname")
    last_name: Optional[str] = Field(default=None, alias="nachname")
    email: Optional[str] = Field(default=None, alias="email")
    phone: Optional[str] = Field(default=None, alias="telefon")
    street: Optional[str] = Field(default=None, alias="strasse")
    house_number: Optional[str] = Field(default=None, alias="hausnummer")
    postal_code: Optional[str] = Field(default=None, alias="postleitzahl")
    city: Optional[str] = Field(default=None, alias="stadt")


class ServiceFields(_Fields):
    name: Optional[str] = Field(default=None, alias="leistungsname")
    description: Optional[str] = Field(default=None, alias="beschreibung")
    duration_minutes: Optional[int] = Field(default=None, alias="dauer_minuten")
    price: Optional[float] = Field(default=None, alias="preis")
    voucher_code: Optional[str] = Field(default=None, alias="gutschein_code")
    voucher_description: Optional[str] = Field(
        default=None, alias="gutschein_beschreibung"
    )
    discount_type: Optional[Literal["prozent", "betrag"]] = Field(
        default=None, alias="rabatt_typ"
    )
    discount_value: Optional[float] = Field(default=None, alias="rabatt_wert")
    valid_from: Optional[str] = Field(default=None, alias="gueltig_von")
    valid_until: Optional[str] = Field(default=None, alias="gueltig_bis")

    @field_validator("price", "discount_value", mode="before")
    @classmethod
    def lenient_number(cls, v: Any) -> Optional[float]:
        return _numeric_or_none(v)

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def lenient_minutes(cls, v: Any) -> Optional[int]:
        number = _numeric_or_none(v)
        return int(round(number)) if number is not None else None

    @field_validator("discount_type", mode="before")
    @classmethod
    def known_discount_type(cls, v: Any) -> Optional[str]:
        return v if v in ("prozent", "betrag") else None


class AppointmentFields(_Fields):
    first_name: Optional[str] = Field(default=None, alias="kunde_vorname")
    last_name: Optional[str] = Field(default=None, alias="kunde_nachname")
    phone: Optional[str] = Field(default=None, alias="kunde_telefon")
    email: Optional[str] = Field(default=None, alias="e_mail_adresse")
    street: Optional[str] = Field(default=None, alias="kunde_strasse")
    house_number: Optional[str] = Field(default=None, alias="kunde_hausnummer")
    postal_code: Optional[str] = Field(default=None, alias="kunde_postleitzahl")
    city: Optional[str] = Field(default=None, alias="kunde_stadt")
    requested_at: Optional[str] = Field(default=None, alias="wunschtermin")
    duration: Optional[Duration] = Field(default=None, alias="gesamtdauer")
    treatment_count: Optional[TreatmentCount] = Field(
        default=None, alias="anzahl_anwendungen"
    )
    service: Optional[str] = Field(default=None, alias="massageleistung")
    notes: Optional[str] = Field(default=None, alias="anmerkungen")
    terms_accepted: Optional[bool] = Field(
        default=None,
        alias="ich_habe_die_allgemeinen_geschaeftsbedigungen_agb_gelesen_und_stimme_diesen_hiermit_zu",
    )
    privacy_acknowledged: Optional[bool] = Field(
        default=None,
        alias="ich_habe_die_datenschutzerklaerung_zur_kenntnis_genommen",
    )

    @field_validator("duration", mode="before")
    @classmethod
    def known_duration(cls, v: Any) -> Optional[str]:
        if isinstance(v, Duration):
            return v
        return v if v in {d.value for d in Duration} else None

    @field_validator("treatment_count", mode="before")
    @classmethod
    def known_treatment_count(cls, v: Any) -> Optional[str]:
        return v if v in _TREATMENT_COUNTS else None

    @field_validator("terms_accepted", "privacy_acknowledged", mode="before")
    @classmethod
    def strict_flag(cls, v: Any) -> Optional[bool]:
        return v if isinstance(v, bool) else None


# =============================================================================
# Records
# =============================================================================

class RecordBase(BaseModel):
    """Envelope shared by every Living Apps record."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    record_id: str
    created_at: Optional[str] = Field(default=None, alias="createdat")
    updated_at: Optional[str] = Field(default=None, alias="updatedat")


class Customer(RecordBase):
    fields: CustomerFields = Field(default_factory=CustomerFields)


class Service(RecordBase):
    fields: ServiceFields = Field(default_factory=ServiceFields)


class AppointmentRequest(RecordBase):
    fields: AppointmentFields = Field(default_factory=AppointmentFields)


class RecordSnapshot(BaseModel):
    """One complete fetch cycle; replaced as a whole, never mutated."""

    model_config = ConfigDict(frozen=True)

    customers: Tuple[Customer, ...] = ()
    services: Tuple[Service, ...] = ()
    appointments: Tuple[AppointmentRequest, ...] = ()
    fetched_at: datetime


# =============================================================================
# Derived view-models
# =============================================================================

class EnrichedAppointment(BaseModel):
    model_config = ConfigDict(frozen=True)

    appointment: AppointmentRequest
    service: Optional[Service] = None
    service_name: str
    service_price: Optional[float] = None
    requested_at: Optional[datetime] = None


class Stats(BaseModel):
    today_count: int = 0
    week_count: int = 0
    total_customers: int = 0
    recent_requests_count: int = 0
    monthly_revenue: float = 0.0
    open_requests: int = 0


class HistogramBucket(BaseModel):
    day: date
    label: str
    count: int = 0


class AppointmentCard(BaseModel):
    """Display-ready appointment for the presentation variants."""

    record_id: str
    customer_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    requested_at: Optional[str] = None
    requested_at_display: str
    requested_at_long: str
    time_display: Optional[str] = None
    duration: str
    service_name: str
    service_price: Optional[str] = None
    notes: Optional[str] = None
    created_relative: Optional[str] = None


class DayGroup(BaseModel):
    day: date
    label: str
    appointments: List[AppointmentCard] = Field(default_factory=list)


class OverviewView(BaseModel):
    studio_name: str
    generated_at: datetime
    stats: Stats
    monthly_revenue_display: str
    latest_requests: List[AppointmentCard] = Field(default_factory=list)
    weekly_histogram: List[HistogramBucket] = Field(default_factory=list)


class AgendaView(BaseModel):
    generated_at: datetime
    today: List[AppointmentCard] = Field(default_factory=list)
    upcoming: List[DayGroup] = Field(default_factory=list)
    horizon_days: int


class ServiceOption(BaseModel):
    record_id: str
    label: str
    duration_minutes: Optional[int] = None
