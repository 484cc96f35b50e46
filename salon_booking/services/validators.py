import re
from datetime import date, datetime
from typing import Optional

from salon_booking.core.exceptions import ValidationException

MIN_PHONE_DIGITS = 9
PHONE_MATCH_DIGITS = 10
MAX_TEXT_LENGTH = 1000

_NON_DIGITS = re.compile(r"\D")


def phone_digits(phone: Optional[str]) -> str:
    if not phone:
        return ""
    return _NON_DIGITS.sub("", phone)


def validate_phone(phone: Optional[str]) -> str:
    """Requires at least 9 digits once punctuation and prefixes are stripped."""
    if not phone or not phone.strip():
        raise ValidationException("Phone is required", field="phone")
    if len(phone_digits(phone)) < MIN_PHONE_DIGITS:
        raise ValidationException(
            f"Invalid phone number (at least {MIN_PHONE_DIGITS} digits)", field="phone"
        )
    return phone.strip()


def phones_match(a: Optional[str], b: Optional[str]) -> bool:
    """
    Compares the trailing digits of two numbers, so "+7 (912) 345-67-89"
    matches "89123456789". At most 10 and at least 9 digits are compared.
    """
    da, db = phone_digits(a), phone_digits(b)
    if len(da) < MIN_PHONE_DIGITS or len(db) < MIN_PHONE_DIGITS:
        return False
    n = min(PHONE_MATCH_DIGITS, len(da), len(db))
    return da[-n:] == db[-n:]


def sanitize_text(value: Optional[str], max_length: int = MAX_TEXT_LENGTH) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()[:max_length].replace("<", "").replace(">", "")


def require_text(value: Optional[str], field: str, label: str) -> str:
    cleaned = sanitize_text(value)
    if not cleaned:
        raise ValidationException(f"{label} is required", field=field)
    return cleaned


def parse_date(value: Optional[str], field: str = "date") -> date:
    if not value or not isinstance(value, str):
        raise ValidationException("Date is required", field=field)
    try:
        return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationException("Invalid date format, expected YYYY-MM-DD", field=field)


def ensure_not_past(booking_date: date, today: date) -> None:
    if booking_date < today:
        raise ValidationException("Cannot book a date in the past", field="date")
