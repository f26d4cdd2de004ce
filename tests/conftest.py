from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest

from studio_dashboard.models.schemas import AppointmentRequest, Customer, Service
from studio_dashboard.services.record_store import RecordStoreError

SERVICES_APP = "6913437daff7287a0f9bab21"
SERVICE_ID = "507f1f77bcf86cd799439011"
OTHER_SERVICE_ID = "aaaaaaaaaaaaaaaaaaaaaaaa"
NOW = datetime(2025, 6, 10, 12, 0)


def service_url(record_id: str) -> str:
    return f"https://my.living-apps.de/rest/apps/{SERVICES_APP}/records/{record_id}"


def make_appointment(
    record_id: str,
    requested_at: Optional[str] = None,
    service: Optional[str] = None,
    created_at: Optional[str] = "2025-06-01T08:00:00",
    **fields: Any,
) -> AppointmentRequest:
    raw_fields: Dict[str, Any] = dict(fields)
    if requested_at is not None:
        raw_fields["wunschtermin"] = requested_at
    if service is not None:
        raw_fields["massageleistung"] = service
    return AppointmentRequest.model_validate({
        "record_id": record_id,
        "createdat": created_at,
        "updatedat": None,
        "fields": raw_fields,
    })


def make_service(record_id: str, name: Optional[str] = None, price: Any = None, **fields: Any) -> Service:
    raw_fields: Dict[str, Any] = dict(fields)
    if name is not None:
        raw_fields["leistungsname"] = name
    if price is not None:
        raw_fields["preis"] = price
    return Service.model_validate({
        "record_id": record_id,
        "createdat": "2025-01-01T00:00:00",
        "fields": raw_fields,
    })


def make_customer(record_id: str, first_name: str = "Erika", last_name: str = "Muster") -> Customer:
    return Customer.model_validate({
        "record_id": record_id,
        "createdat": "2025-01-01T00:00:00",
        "fields": {"vorname": first_name, "nachname": last_name},
    })


class FakeClient:
    """In-memory stand-in for LivingAppsClient."""

    def __init__(
        self,
        appointments: Optional[List[AppointmentRequest]] = None,
        customers: Optional[List[Customer]] = None,
        services: Optional[List[Service]] = None,
    ):
        self.appointments = list(appointments or [])
        self.customers = list(customers or [])
        self.services = list(services or [])
        self.fail_on: set = set()
        self.created: List[Dict[str, Any]] = []
        self.list_calls = 0

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise RecordStoreError(f"{operation} kaputt", status_code=500)

    def list_appointments(self) -> List[AppointmentRequest]:
        self.list_calls += 1
        self._check("list_appointments")
        return list(self.appointments)

    def list_customers(self) -> List[Customer]:
        self._check("list_customers")
        return list(self.customers)

    def list_services(self) -> List[Service]:
        self._check("list_services")
        return list(self.services)

    def create_appointment(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        self._check("create_appointment")
        self.created.append(fields)
        record_id = f"{len(self.created):024x}"
        self.appointments.append(
            AppointmentRequest.model_validate({
                "record_id": record_id,
                "createdat": "2025-06-10T11:59:00",
                "fields": fields,
            })
        )
        return {"id": record_id, "fields": fields}


@pytest.fixture
def studio_services() -> List[Service]:
    return [
        make_service(SERVICE_ID, name="Hot Stone", price=59),
        make_service(OTHER_SERVICE_ID, name="Rückenmassage", price="39,50"),
    ]


@pytest.fixture
def scenario_appointments() -> List[AppointmentRequest]:
    return [
        make_appointment("a3", "2025-06-11T10:00", service_url(OTHER_SERVICE_ID)),
        make_appointment("a2", "2025-06-10T15:30", service_url(SERVICE_ID)),
        make_appointment("a1", "2025-06-10T09:00", service_url(SERVICE_ID)),
    ]


@pytest.fixture
def fake_client(scenario_appointments, studio_services) -> FakeClient:
    return FakeClient(
        appointments=scenario_appointments,
        customers=[make_customer("c1"), make_customer("c2", "Max", "Mustermann")],
        services=studio_services,
    )
