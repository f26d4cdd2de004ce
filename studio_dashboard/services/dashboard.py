"""
Dashboard Service

Owns the fetch cycle against the Record Store (loading, error and
submitting state plus the current immutable snapshot) and adapts the
aggregation results into the view-models of the two dashboard variants:

- overview: stats, latest requests and the weekly histogram
- agenda: today's appointments and the upcoming days
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

import pytz

from studio_dashboard.config import settings
from studio_dashboard.models.schemas import (
    AgendaView,
    AppointmentCard,
    DayGroup,
    EnrichedAppointment,
    OverviewView,
    RecordSnapshot,
    Service,
    ServiceOption,
)
from studio_dashboard.services import aggregation, formatting
from studio_dashboard.services.intake import IntakeForm, build_appointment_fields
from studio_dashboard.services.record_store import LivingAppsClient, RecordStoreError
from studio_dashboard.services.references import build_lookup_map

logger = logging.getLogger(__name__)

UNNAMED_SERVICE = "Unbenannt"


class DashboardError(Exception):
    """Raised when no usable snapshot is available."""
    pass


def local_now(tz: str) -> datetime:
    """Current wall-clock time in ``tz`` as a naive datetime."""
    return datetime.now(pytz.timezone(tz)).replace(tzinfo=None)


# =============================================================================
# View adapters
# =============================================================================

def build_card(
    enriched: EnrichedAppointment,
    now: datetime,
    tz: str = aggregation.DEFAULT_TIMEZONE,
) -> AppointmentCard:
    appointment = enriched.appointment
    fields = appointment.fields
    return AppointmentCard(
        record_id=appointment.record_id,
        customer_name=formatting.customer_name(fields.first_name, fields.last_name),
        phone=fields.phone,
        email=fields.email,
        address=formatting.address_line(
            fields.street, fields.house_number, fields.postal_code, fields.city
        ),
        requested_at=fields.requested_at,
        requested_at_display=formatting.format_date_time(enriched.requested_at),
        requested_at_long=formatting.format_date_time_long(enriched.requested_at),
        time_display=formatting.format_time(enriched.requested_at),
        duration=formatting.format_duration(fields.duration),
        service_name=enriched.service_name,
        service_price=formatting.format_price(enriched.service_price),
        notes=fields.notes,
        created_relative=formatting.format_relative(
            aggregation.created_at(appointment, tz), now
        ),
    )


def build_overview(
    snapshot: RecordSnapshot,
    now: datetime,
    studio_name: str = "Mein Massage-Studio",
    limit: int = 10,
    lookback_days: int = 7,
    tz: str = aggregation.DEFAULT_TIMEZONE,
) -> OverviewView:
    lookup = build_lookup_map(snapshot.services)
    stats = aggregation.build_stats(snapshot, now, lookback_days, tz)
    latest = aggregation.sort_by_created_desc(snapshot.appointments, tz)[:limit]
    week_start, _ = aggregation.week_bounds(now)

    return OverviewView(
        studio_name=studio_name,
        generated_at=now,
        stats=stats,
        monthly_revenue_display=formatting.format_price(stats.monthly_revenue),
        latest_requests=[build_card(e, now, tz) for e in aggregation.enrich(latest, lookup, tz)],
        weekly_histogram=aggregation.build_weekly_histogram(snapshot.appointments, week_start, tz),
    )


def build_agenda(
    snapshot: RecordSnapshot,
    now: datetime,
    horizon_days: int = 7,
    tz: str = aggregation.DEFAULT_TIMEZONE,
) -> AgendaView:
    lookup = build_lookup_map(snapshot.services)

    today = aggregation.enrich(aggregation.filter_today(snapshot.appointments, now, tz), lookup, tz)
    upcoming = aggregation.filter_upcoming(
        snapshot.appointments, now, horizon_days, exclude_today=True, tz=tz
    )

    groups = []
    for day_key, appointments in aggregation.group_by_calendar_day(upcoming, tz).items():
        day = date.fromisoformat(day_key)
        groups.append(
            DayGroup(
                day=day,
                label=formatting.format_day_heading(day),
                appointments=[
                    build_card(e, now, tz) for e in aggregation.enrich(appointments, lookup, tz)
                ],
            )
        )

    return AgendaView(
        generated_at=now,
        today=[build_card(e, now, tz) for e in today],
        upcoming=groups,
        horizon_days=horizon_days,
    )


def build_service_options(services: Iterable[Service]) -> List[ServiceOption]:
    """Entries for the booking form's service select, e.g. 'Hot Stone (59€)'."""
    options = []
    for service in services:
        label = service.fields.name or UNNAMED_SERVICE
        if service.fields.price:
            label = f"{label} ({service.fields.price:g}€)"
        options.append(
            ServiceOption(
                record_id=service.record_id,
                label=label,
                duration_minutes=service.fields.duration_minutes,
            )
        )
    return options


# =============================================================================
# Fetch cycle
# =============================================================================

class DashboardService:
    """
    Holds the dashboard state for one presentation instance.

    A fetch cycle loads all three collections concurrently and only
    replaces the snapshot once every load succeeded. A failed cycle is
    terminal until refresh() is called again.
    """

    def __init__(
        self,
        client: Optional[LivingAppsClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize DashboardService.

        Args:
            client: Record Store client, created from settings when omitted
            clock: Returns the current naive local time
        """
        self.client = client or LivingAppsClient()
        self.clock = clock or (lambda: local_now(settings.timezone))

        self.snapshot: Optional[RecordSnapshot] = None
        self.loading = False
        self.submitting = False
        self.error: Optional[str] = None
        self._pending: Optional[asyncio.Future] = None

    async def refresh(self) -> RecordSnapshot:
        """
        Reload customers, services and appointment requests.

        Only one fetch cycle runs at a time; callers arriving while a cycle
        is in flight wait for that cycle instead of starting another.

        Raises:
            DashboardError: If any of the three loads fails
        """
        if self._pending is None or self._pending.done():
            self._pending = asyncio.ensure_future(self._load())
        return await asyncio.shield(self._pending)

    async def _load(self) -> RecordSnapshot:
        self.loading = True
        self.error = None
        try:
            appointments, customers, services = await asyncio.gather(
                asyncio.to_thread(self.client.list_appointments),
                asyncio.to_thread(self.client.list_customers),
                asyncio.to_thread(self.client.list_services),
            )
        except RecordStoreError as e:
            self.error = e.message
            logger.error(f"Dashboard fetch failed: {e.message}")
            raise DashboardError(e.message) from e
        finally:
            self.loading = False

        self.snapshot = RecordSnapshot(
            customers=tuple(customers),
            services=tuple(services),
            appointments=tuple(appointments),
            fetched_at=self.clock(),
        )
        logger.info(
            f"Dashboard snapshot loaded: {len(appointments)} requests, "
            f"{len(customers)} customers, {len(services)} services"
        )
        return self.snapshot

    async def current_snapshot(self) -> RecordSnapshot:
        """Snapshot for rendering; loads once on first use."""
        if self.error is not None:
            raise DashboardError(self.error)
        if self.snapshot is None:
            return await self.refresh()
        return self.snapshot

    async def overview(self) -> OverviewView:
        snapshot = await self.current_snapshot()
        return build_overview(
            snapshot,
            self.clock(),
            studio_name=settings.studio_name,
            limit=settings.latest_requests_limit,
            lookback_days=settings.recent_lookback_days,
            tz=settings.timezone,
        )

    async def agenda(self) -> AgendaView:
        snapshot = await self.current_snapshot()
        return build_agenda(
            snapshot,
            self.clock(),
            horizon_days=settings.upcoming_horizon_days,
            tz=settings.timezone,
        )

    async def service_options(self) -> List[ServiceOption]:
        snapshot = await self.current_snapshot()
        return build_service_options(snapshot.services)

    async def submit(self, form: IntakeForm) -> Dict[str, Any]:
        """
        Create an appointment request and reload the dashboard.

        Returns:
            Dictionary with keys:
                - success: Boolean
                - message: User-facing message (German)
                - appointment: Created record (if successful)
                - error: Error kind (if not successful)
        """
        if self.submitting:
            logger.warning("Rejected booking while another submission is in flight")
            return {
                "success": False,
                "message": "Eine Buchung wird bereits gespeichert.",
                "error": "submission_in_progress",
            }

        self.submitting = True
        try:
            fields = build_appointment_fields(form)
            record = await asyncio.to_thread(self.client.create_appointment, fields)

            # a cycle started before the create cannot contain the new record
            if self._pending is not None and not self._pending.done():
                await asyncio.wait([self._pending])

            try:
                await self.refresh()
            except DashboardError:
                logger.warning("Booking saved but reloading the dashboard failed")

            return {
                "success": True,
                "message": "Buchung erstellt.",
                "appointment": record,
            }

        except RecordStoreError as e:
            logger.error(f"Failed to create booking: {e.message}")
            return {
                "success": False,
                "message": f"Buchung konnte nicht gespeichert werden: {e.message}",
                "error": "submission_failed",
            }
        finally:
            self.submitting = False
