"""
German display formatting for dashboard cards.
"""

from datetime import date, datetime
from typing import Iterable, Optional

from studio_dashboard.models.schemas import Duration

WEEKDAY_NAMES = (
    "Montag", "Dienstag", "Mittwoch", "Donnerstag", "Freitag", "Samstag", "Sonntag",
)
WEEKDAY_ABBREVIATIONS = ("Mo.", "Di.", "Mi.", "Do.", "Fr.", "Sa.", "So.")
MONTH_NAMES = (
    "Januar", "Februar", "März", "April", "Mai", "Juni",
    "Juli", "August", "September", "Oktober", "November", "Dezember",
)

UNKNOWN_CUSTOMER = "Unbekannter Kunde"
NO_APPOINTMENT = "Kein Termin"
NO_VALUE = "–"

DURATION_LABELS = {
    Duration.MIN_30: "30 Min.",
    Duration.MIN_45: "45 Min.",
    Duration.MIN_60: "60 Min.",
}


def join_present(parts: Iterable[Optional[str]], separator: str = " ") -> str:
    return separator.join(p.strip() for p in parts if p and p.strip())


def customer_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    return join_present([first_name, last_name]) or UNKNOWN_CUSTOMER


def address_line(
    street: Optional[str],
    house_number: Optional[str],
    postal_code: Optional[str],
    city: Optional[str],
) -> Optional[str]:
    """'Hauptstr. 5, 10115 Berlin' or None when nothing is known."""
    line = join_present(
        [join_present([street, house_number]), join_present([postal_code, city])],
        separator=", ",
    )
    return line or None


def format_date_time(value: Optional[datetime]) -> str:
    """dd.MM.yyyy HH:mm"""
    if value is None:
        return NO_APPOINTMENT
    return value.strftime("%d.%m.%Y %H:%M")


def format_date_time_long(value: Optional[datetime]) -> str:
    """EEEE, dd. MMMM yyyy, HH:mm with German names."""
    if value is None:
        return NO_APPOINTMENT
    return (
        f"{WEEKDAY_NAMES[value.weekday()]}, {value.day:02d}. "
        f"{MONTH_NAMES[value.month - 1]} {value.year}, {value:%H:%M}"
    )


def format_day_heading(value: date) -> str:
    """'Mittwoch, 11. Juni'"""
    return f"{WEEKDAY_NAMES[value.weekday()]}, {value.day}. {MONTH_NAMES[value.month - 1]}"


def format_time(value: Optional[datetime]) -> Optional[str]:
    return value.strftime("%H:%M") if value is not None else None


def format_duration(duration: Optional[Duration]) -> str:
    if duration is None:
        return NO_VALUE
    return DURATION_LABELS[duration]


def format_price(amount: Optional[float]) -> Optional[str]:
    """49.5 -> '49,50 €'"""
    if amount is None:
        return None
    whole, cents = f"{amount:,.2f}".split(".")
    return f"{whole.replace(',', '.')},{cents} €"


def format_relative(moment: Optional[datetime], now: datetime) -> Optional[str]:
    """
    Relative distance with German preposition, e.g. 'vor 3 Tagen'.

    Buckets follow date-fns formatDistance: seconds collapse to
    'weniger als 1 Minute', hours and months are 'etwa' approximations.
    """
    if moment is None:
        return None

    seconds = (now - moment).total_seconds()
    past = seconds >= 0
    seconds = abs(seconds)
    minutes = round(seconds / 60)

    preposition = "vor" if past else "in"

    if minutes < 1:
        return f"{preposition} weniger als 1 Minute"

    if minutes < 45:
        amount, unit, prefix = minutes, ("Minute", "Minuten"), ""
    elif minutes < 90:
        amount, unit, prefix = 1, ("Stunde", "Stunden"), "etwa "
    elif minutes < 1440:
        amount, unit, prefix = round(minutes / 60), ("Stunde", "Stunden"), "etwa "
    elif minutes < 2520:
        amount, unit, prefix = 1, ("Tag", "Tagen"), ""
    elif minutes < 43200:
        amount, unit, prefix = round(minutes / 1440), ("Tag", "Tagen"), ""
    elif minutes < 86400:
        amount, unit, prefix = round(minutes / 43200), ("Monat", "Monaten"), "etwa "
    elif minutes < 525600:
        amount, unit, prefix = round(minutes / 43200), ("Monat", "Monaten"), ""
    else:
        amount, unit, prefix = round(minutes / 525600), ("Jahr", "Jahren"), "etwa "

    # dative forms for both directions: "vor 3 Tagen", "in 3 Tagen"
    noun = unit[0] if amount == 1 else unit[1]
    return f"{preposition} {prefix}{amount} {noun}"
