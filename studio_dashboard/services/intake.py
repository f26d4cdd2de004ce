"""
Intake Form Assembly

Turns the booking form input into the ``fields`` payload of a new
Terminanfrage record.
"""

import re
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from studio_dashboard.config import settings
from studio_dashboard.models.schemas import AppointmentFields, Duration
from studio_dashboard.services.references import build_record_url

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^(\d{2}:\d{2})(:\d{2}(\.\d+)?)?$")
RECORD_ID_PATTERN = re.compile(r"^[a-f0-9]{24}$", re.IGNORECASE)


class IntakeForm(BaseModel):
    """Raw booking form state. Empty inputs count as not provided."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    duration: Optional[Duration] = None
    service_id: Optional[str] = None
    notes: Optional[str] = None
    terms_accepted: Optional[bool] = None
    privacy_acknowledged: Optional[bool] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        """Date inputs deliver YYYY-MM-DD."""
        if v is None:
            return v
        if not DATE_PATTERN.match(v):
            raise ValueError("date must use the format YYYY-MM-DD")
        datetime.strptime(v, "%Y-%m-%d")
        return v

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        """Time inputs deliver HH:MM, sometimes with seconds which are dropped."""
        if v is None:
            return v
        match = TIME_PATTERN.match(v)
        if not match:
            raise ValueError("time must use the format HH:MM")
        hours_minutes = match.group(1)
        datetime.strptime(hours_minutes, "%H:%M")
        return hours_minutes

    @field_validator("service_id")
    @classmethod
    def validate_service_id(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not RECORD_ID_PATTERN.match(v):
            raise ValueError("service_id must be a Living Apps record id")
        return v


def combine_date_time(date_part: Optional[str], time_part: Optional[str]) -> Optional[str]:
    """
    Join date and time inputs into the Record Store's ``YYYY-MM-DDTHH:MM``.

    Returns None unless both parts are present; a partial value is never
    produced. Seconds on the time part are dropped.

    Raises:
        ValueError: If either part does not match the expected format

    Example:
        >>> combine_date_time("2025-06-10", "14:05")
        '2025-06-10T14:05'
        >>> combine_date_time("2025-06-10", "14:05:30")
        '2025-06-10T14:05'
        >>> combine_date_time("2025-06-10", None) is None
        True
    """
    if not date_part or not time_part:
        return None
    if not DATE_PATTERN.match(date_part):
        raise ValueError(f"Invalid date {date_part!r}, expected YYYY-MM-DD")
    match = TIME_PATTERN.match(time_part)
    if not match:
        raise ValueError(f"Invalid time {time_part!r}, expected HH:MM")
    return f"{date_part}T{match.group(1)}"


def build_appointment_fields(
    form: IntakeForm,
    services_app_id: Optional[str] = None,
    base_url: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the wire ``fields`` payload for a new appointment request.

    Absent values are omitted rather than sent empty. The chosen service is
    sent as the full lookup URL, never as a bare record id.
    """
    service_url = None
    if form.service_id:
        service_url = build_record_url(
            services_app_id or settings.services_app_id,
            form.service_id,
            base_url=base_url,
        )

    fields = AppointmentFields(
        first_name=form.first_name,
        last_name=form.last_name,
        phone=form.phone,
        email=form.email,
        requested_at=combine_date_time(form.date, form.time),
        duration=form.duration,
        service=service_url,
        notes=form.notes,
        terms_accepted=form.terms_accepted,
        privacy_acknowledged=form.privacy_acknowledged,
    )
    return fields.model_dump(by_alias=True, exclude_none=True, mode="json")
