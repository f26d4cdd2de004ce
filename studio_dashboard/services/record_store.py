"""
Living Apps Record Store Client

Generic REST CRUD over the Living Apps collections used by the studio:
customers (Kundendaten), services (Leistungskatalog) and appointment
requests (Terminanfrage). Authentication relies on the Living Apps
session cookie.

Any transport failure or non-success response is reported as a single
RecordStoreError carrying the free-text body returned by the server.
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import requests
from pydantic import ValidationError

from studio_dashboard.config import settings
from studio_dashboard.models.schemas import (
    AppointmentRequest,
    Customer,
    RecordBase,
    Service,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=RecordBase)


class RecordStoreError(Exception):
    """Custom exception for Record Store failures."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class LivingAppsClient:
    """
    Client for the Living Apps REST API.

    Blocking by design (``requests``); callers that need concurrency run
    the calls in worker threads.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        cookie: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize LivingAppsClient.

        Args:
            base_url: REST base URL, defaults to settings.living_apps_base_url
            cookie: Raw Cookie header with the Living Apps session
            timeout: Per-request timeout in seconds
            session: Pre-configured requests session (used by tests)
        """
        self.base_url = (base_url or settings.living_apps_base_url).rstrip("/")
        self.timeout = timeout or settings.request_timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

        cookie = cookie or settings.living_apps_cookie
        if cookie:
            self.session.headers["Cookie"] = cookie

        logger.info(f"LivingAppsClient initialized for {self.base_url}")

    def _call(self, method: str, endpoint: str, data: Optional[Dict[str, Any]] = None) -> Any:
        """
        Send one request to the Record Store.

        Raises:
            RecordStoreError: On transport errors, non-2xx responses or
                undecodable bodies
        """
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(
                method,
                url,
                json=data,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Record Store request {method} {endpoint} failed: {e}")
            raise RecordStoreError(f"Record Store not reachable: {e}") from e

        if not response.ok:
            message = response.text or f"HTTP {response.status_code}"
            logger.error(
                f"Record Store returned {response.status_code} for {method} {endpoint}: {message}"
            )
            raise RecordStoreError(message, status_code=response.status_code)

        # DELETE answers with an empty body or a bare status
        if method == "DELETE":
            return True

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Record Store sent invalid JSON for {method} {endpoint}")
            raise RecordStoreError("Record Store returned an invalid response") from e

    # -------------------------------------------------------------------------
    # Generic record operations
    # -------------------------------------------------------------------------

    def list_records(self, app_id: str, model: Type[RecordT]) -> List[RecordT]:
        """
        Fetch every record of a collection.

        The API answers with an object keyed by record id; records that do
        not validate are skipped with a warning.
        """
        data = self._call("GET", f"/apps/{app_id}/records")
        if not isinstance(data, dict):
            raise RecordStoreError("Unexpected record list format")

        records: List[RecordT] = []
        for record_id, raw in data.items():
            if not isinstance(raw, dict):
                logger.warning(f"Skipping malformed {model.__name__} record {record_id}")
                continue
            try:
                records.append(model.model_validate({**raw, "record_id": record_id}))
            except ValidationError as e:
                logger.warning(f"Skipping invalid {model.__name__} record {record_id}: {e}")

        logger.info(f"Fetched {len(records)} {model.__name__} records")
        return records

    def get_record(self, app_id: str, record_id: str, model: Type[RecordT]) -> RecordT:
        data = self._call("GET", f"/apps/{app_id}/records/{record_id}")
        if not isinstance(data, dict):
            raise RecordStoreError("Unexpected record format")
        try:
            return model.model_validate({**data, "record_id": data.get("id", record_id)})
        except ValidationError as e:
            raise RecordStoreError(f"Invalid {model.__name__} record {record_id}") from e

    def create_record(self, app_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._call("POST", f"/apps/{app_id}/records", {"fields": fields})

    def update_record(self, app_id: str, record_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._call("PATCH", f"/apps/{app_id}/records/{record_id}", {"fields": fields})

    def delete_record(self, app_id: str, record_id: str) -> bool:
        return self._call("DELETE", f"/apps/{app_id}/records/{record_id}")

    # -------------------------------------------------------------------------
    # Studio collections
    # -------------------------------------------------------------------------

    def list_customers(self) -> List[Customer]:
        return self.list_records(settings.customers_app_id, Customer)

    def list_services(self) -> List[Service]:
        return self.list_records(settings.services_app_id, Service)

    def list_appointments(self) -> List[AppointmentRequest]:
        return self.list_records(settings.appointments_app_id, AppointmentRequest)

    def get_appointment(self, record_id: str) -> AppointmentRequest:
        return self.get_record(settings.appointments_app_id, record_id, AppointmentRequest)

    def create_appointment(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create an appointment request.

        Args:
            fields: Wire ``fields`` payload (German keys), see
                services.intake.build_appointment_fields

        Returns:
            The created record as returned by the Record Store
        """
        logger.info("Creating appointment request in Record Store")
        return self.create_record(settings.appointments_app_id, fields)
