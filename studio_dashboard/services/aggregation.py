"""
Appointment Aggregation

Pure transformations from raw Living Apps collections to dashboard
view-models: today's list, upcoming appointments grouped by day, weekly
histogram and the stats counters.

Every function is deterministic in its arguments. The current time is
always passed in as a naive local datetime; nothing here reads the clock
or application state. Appointments whose date-time is missing or cannot be
parsed never take part in date-based aggregations.
"""

import logging
from collections import OrderedDict
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pytz
from dateutil.relativedelta import relativedelta

from studio_dashboard.models.schemas import (
    AppointmentRequest,
    EnrichedAppointment,
    HistogramBucket,
    RecordSnapshot,
    Service,
    Stats,
)
from studio_dashboard.services.formatting import WEEKDAY_ABBREVIATIONS
from studio_dashboard.services.references import build_lookup_map, resolve_service

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Europe/Berlin"
UNKNOWN_SERVICE = "Unbekannte Leistung"

Window = Tuple[datetime, datetime]


# =============================================================================
# Parsing
# =============================================================================

def parse_timestamp(value: Optional[str], tz: str = DEFAULT_TIMEZONE) -> Optional[datetime]:
    """
    Parse an ISO-like Record Store timestamp into a naive local datetime.

    Accepts ``YYYY-MM-DD`` (midnight), ``YYYY-MM-DDTHH:MM[:SS[.ffffff]]``
    and offset/``Z`` suffixed values, which are converted to ``tz`` first.

    Returns:
        Naive datetime, or None when the value is missing or malformed
    """
    if not value or not isinstance(value, str):
        return None

    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug(f"Ignoring unparseable timestamp: {value!r}")
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(pytz.timezone(tz)).replace(tzinfo=None)
    return parsed


def requested_at(appointment: AppointmentRequest, tz: str = DEFAULT_TIMEZONE) -> Optional[datetime]:
    return parse_timestamp(appointment.fields.requested_at, tz)


def created_at(appointment: AppointmentRequest, tz: str = DEFAULT_TIMEZONE) -> Optional[datetime]:
    return parse_timestamp(appointment.created_at, tz)


def _scheduled(
    appointments: Iterable[AppointmentRequest],
    tz: str,
) -> List[Tuple[datetime, AppointmentRequest]]:
    """Pairs of (requested date-time, appointment) sorted ascending."""
    pairs = []
    for appointment in appointments:
        moment = requested_at(appointment, tz)
        if moment is not None:
            pairs.append((moment, appointment))
    pairs.sort(key=lambda pair: pair[0])
    return pairs


# =============================================================================
# Calendar windows
# =============================================================================

def start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min)


def end_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.max)


def week_bounds(now: datetime) -> Window:
    """Monday 00:00 to Sunday 23:59:59.999999 of the week containing ``now``."""
    monday = start_of_day(now) - timedelta(days=now.weekday())
    return monday, end_of_day(monday + timedelta(days=6))


def month_bounds(now: datetime) -> Window:
    first = start_of_day(now.replace(day=1))
    last = first + relativedelta(months=1) - timedelta(days=1)
    return first, end_of_day(last)


# =============================================================================
# Enrichment
# =============================================================================

def enrich(
    appointments: Iterable[AppointmentRequest],
    lookup: Dict[str, Service],
    tz: str = DEFAULT_TIMEZONE,
) -> List[EnrichedAppointment]:
    """
    Attach the referenced service to every appointment.

    Unresolvable references get the UNKNOWN_SERVICE placeholder name; an
    appointment is never dropped here.
    """
    enriched = []
    for appointment in appointments:
        service = resolve_service(appointment, lookup)
        name = service.fields.name if service and service.fields.name else None
        enriched.append(
            EnrichedAppointment(
                appointment=appointment,
                service=service,
                service_name=name or UNKNOWN_SERVICE,
                service_price=service.fields.price if service else None,
                requested_at=requested_at(appointment, tz),
            )
        )
    return enriched


def sort_by_created_desc(
    appointments: Iterable[AppointmentRequest],
    tz: str = DEFAULT_TIMEZONE,
) -> List[AppointmentRequest]:
    """Newest requests first; records without a creation time go last."""
    return sorted(
        appointments,
        key=lambda a: created_at(a, tz) or datetime.min,
        reverse=True,
    )


# =============================================================================
# Scheduling axis
# =============================================================================

def filter_today(
    appointments: Iterable[AppointmentRequest],
    now: datetime,
    tz: str = DEFAULT_TIMEZONE,
) -> List[AppointmentRequest]:
    """Appointments on the calendar day of ``now``, ordered by time."""
    today = now.date()
    return [a for moment, a in _scheduled(appointments, tz) if moment.date() == today]


def filter_upcoming(
    appointments: Iterable[AppointmentRequest],
    now: datetime,
    horizon_days: int = 7,
    exclude_today: bool = True,
    tz: str = DEFAULT_TIMEZONE,
) -> List[AppointmentRequest]:
    """
    Appointments after today (or after ``now``) up to ``now + horizon_days``.

    With ``exclude_today`` the lower bound is the end of the current day,
    so the result never overlaps filter_today for the same ``now``.
    """
    lower = end_of_day(now) if exclude_today else now
    upper = now + timedelta(days=horizon_days)
    return [a for moment, a in _scheduled(appointments, tz) if lower < moment <= upper]


def group_by_calendar_day(
    appointments: Iterable[AppointmentRequest],
    tz: str = DEFAULT_TIMEZONE,
) -> "OrderedDict[str, List[AppointmentRequest]]":
    """
    Group by ISO date (``YYYY-MM-DD``) of the requested date-time.

    Days come out ascending and each day's list is ordered by time.
    """
    groups: "OrderedDict[str, List[AppointmentRequest]]" = OrderedDict()
    for moment, appointment in _scheduled(appointments, tz):
        groups.setdefault(moment.date().isoformat(), []).append(appointment)
    return groups


def count_in_window(
    appointments: Iterable[AppointmentRequest],
    window_start: datetime,
    window_end: datetime,
    tz: str = DEFAULT_TIMEZONE,
) -> int:
    """Inclusive on both ends; a reversed window counts nothing."""
    if window_start > window_end:
        return 0
    return sum(
        1 for moment, _ in _scheduled(appointments, tz)
        if window_start <= moment <= window_end
    )


def sum_revenue(
    appointments: Iterable[AppointmentRequest],
    lookup: Dict[str, Service],
    window_start: datetime,
    window_end: datetime,
    tz: str = DEFAULT_TIMEZONE,
) -> float:
    """Sum of resolved service prices inside the window; unknown prices add 0."""
    if window_start > window_end:
        return 0.0

    total = 0.0
    for moment, appointment in _scheduled(appointments, tz):
        if not window_start <= moment <= window_end:
            continue
        service = resolve_service(appointment, lookup)
        price = service.fields.price if service else None
        if price is not None and price > 0:
            total += price
    return round(total, 2)


def build_weekly_histogram(
    appointments: Iterable[AppointmentRequest],
    week_start: datetime,
    tz: str = DEFAULT_TIMEZONE,
) -> List[HistogramBucket]:
    """Seven Monday-first buckets starting at ``week_start``, zeros included."""
    first_day = week_start.date()
    days = [first_day + timedelta(days=offset) for offset in range(7)]
    counts: Dict[date, int] = {day: 0 for day in days}

    for moment, _ in _scheduled(appointments, tz):
        if moment.date() in counts:
            counts[moment.date()] += 1

    return [
        HistogramBucket(day=day, label=WEEKDAY_ABBREVIATIONS[day.weekday()], count=counts[day])
        for day in days
    ]


# =============================================================================
# Creation axis
# =============================================================================

def count_recently_created(
    appointments: Iterable[AppointmentRequest],
    now: datetime,
    lookback_days: int = 7,
    tz: str = DEFAULT_TIMEZONE,
) -> int:
    """Requests whose creation timestamp lies in ``[now - lookback_days, now]``."""
    since = now - timedelta(days=lookback_days)
    count = 0
    for appointment in appointments:
        moment = created_at(appointment, tz)
        if moment is not None and since <= moment <= now:
            count += 1
    return count


# =============================================================================
# Stats
# =============================================================================

def build_stats(
    snapshot: RecordSnapshot,
    now: datetime,
    lookback_days: int = 7,
    tz: str = DEFAULT_TIMEZONE,
) -> Stats:
    appointments: Sequence[AppointmentRequest] = snapshot.appointments
    lookup = build_lookup_map(snapshot.services)
    week_start, week_end = week_bounds(now)
    month_start, month_end = month_bounds(now)

    return Stats(
        today_count=len(filter_today(appointments, now, tz)),
        week_count=count_in_window(appointments, week_start, week_end, tz),
        total_customers=len(snapshot.customers),
        recent_requests_count=count_recently_created(appointments, now, lookback_days, tz),
        monthly_revenue=sum_revenue(appointments, lookup, month_start, month_end, tz),
        open_requests=len(appointments),
    )
