import pytest
from pydantic import ValidationError

from conftest import SERVICE_ID
from studio_dashboard.services.intake import (
    IntakeForm,
    build_appointment_fields,
    combine_date_time,
)


def test_combine_date_time():
    assert combine_date_time("2025-06-10", "14:05") == "2025-06-10T14:05"


def test_combine_date_time_drops_seconds():
    assert combine_date_time("2025-06-10", "14:05:30") == "2025-06-10T14:05"


@pytest.mark.parametrize("date_part, time_part", [
    ("10.06.2025", "14:05"),
    ("2025-06-10", "14 Uhr"),
    ("2025-06-10", "1405"),
])
def test_combine_date_time_rejects_other_shapes(date_part, time_part):
    with pytest.raises(ValueError):
        combine_date_time(date_part, time_part)


@pytest.mark.parametrize("date_part, time_part", [
    ("2025-06-10", None),
    ("2025-06-10", ""),
    (None, "14:05"),
    (None, None),
])
def test_combine_date_time_never_returns_partial_value(date_part, time_part):
    assert combine_date_time(date_part, time_part) is None


def test_build_appointment_fields_full_form():
    form = IntakeForm(
        first_name="Erika",
        last_name="Muster",
        phone="0301234567",
        email="erika@example.org",
        date="2025-06-10",
        time="14:05",
        duration="dauer_45",
        service_id=SERVICE_ID,
        notes="Bitte wenig Druck",
    )

    fields = build_appointment_fields(
        form,
        services_app_id="6913437daff7287a0f9bab21",
        base_url="https://my.living-apps.de/rest",
    )

    assert fields == {
        "kunde_vorname": "Erika",
        "kunde_nachname": "Muster",
        "kunde_telefon": "0301234567",
        "e_mail_adresse": "erika@example.org",
        "wunschtermin": "2025-06-10T14:05",
        "gesamtdauer": "dauer_45",
        "massageleistung": (
            "https://my.living-apps.de/rest/apps/6913437daff7287a0f9bab21/records/" + SERVICE_ID
        ),
        "anmerkungen": "Bitte wenig Druck",
    }


def test_build_appointment_fields_omits_blank_and_partial_values():
    form = IntakeForm(first_name="Erika", last_name="", date="2025-06-10", time="", service_id="")

    fields = build_appointment_fields(form)

    assert fields == {"kunde_vorname": "Erika"}
    assert "wunschtermin" not in fields
    assert "massageleistung" not in fields


def test_time_with_seconds_is_trimmed():
    form = IntakeForm(date="2025-06-10", time="14:05:30")

    assert build_appointment_fields(form)["wunschtermin"] == "2025-06-10T14:05"


def test_consent_flags_are_sent_with_wire_names():
    form = IntakeForm(first_name="Erika", terms_accepted=True, privacy_acknowledged=True)

    fields = build_appointment_fields(form)

    assert fields["ich_habe_die_allgemeinen_geschaeftsbedigungen_agb_gelesen_und_stimme_diesen_hiermit_zu"] is True
    assert fields["ich_habe_die_datenschutzerklaerung_zur_kenntnis_genommen"] is True


@pytest.mark.parametrize("payload", [
    {"date": "10.06.2025"},
    {"date": "2025-02-30"},
    {"time": "2pm"},
    {"time": "25:00"},
    {"duration": "dauer_90"},
    {"service_id": "notanid"},
])
def test_invalid_form_input_is_rejected(payload):
    with pytest.raises(ValidationError):
        IntakeForm(**payload)
