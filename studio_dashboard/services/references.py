"""
Record Reference Resolution

Living Apps stores lookup fields as full record URLs
(``.../apps/<app_id>/records/<record_id>``). These helpers extract the
record id and resolve it against the in-memory service catalog.
"""

import re
from typing import Dict, Iterable, Optional

from studio_dashboard.config import settings
from studio_dashboard.models.schemas import AppointmentRequest, Service

RECORD_ID_PATTERN = re.compile(r"([a-f0-9]{24})\Z", re.IGNORECASE)


def extract_record_id(url: Optional[str]) -> Optional[str]:
    """
    Extract the trailing 24-hex record id from a lookup URL.

    Returns None for missing input or when the URL does not end in a
    record id. Ids are returned lower-cased so they match lookup keys.

    Example:
        >>> extract_record_id("https://my.living-apps.de/rest/apps/x/records/507f1f77bcf86cd799439011")
        '507f1f77bcf86cd799439011'
        >>> extract_record_id(".../records/notanid") is None
        True
    """
    if not url or not isinstance(url, str):
        return None
    match = RECORD_ID_PATTERN.search(url)
    return match.group(1).lower() if match else None


def build_record_url(
    app_id: str,
    record_id: str,
    base_url: Optional[str] = None,
) -> str:
    """Build the lookup URL the Record Store expects for reference fields."""
    base = (base_url or settings.living_apps_base_url).rstrip("/")
    return f"{base}/apps/{app_id}/records/{record_id}"


def build_lookup_map(services: Iterable[Service]) -> Dict[str, Service]:
    """Index services by lower-cased record id. Later duplicates overwrite earlier ones."""
    return {service.record_id.lower(): service for service in services}


def resolve_service(
    appointment: AppointmentRequest,
    lookup: Dict[str, Service],
) -> Optional[Service]:
    record_id = extract_record_id(appointment.fields.service)
    if record_id is None:
        return None
    return lookup.get(record_id)
