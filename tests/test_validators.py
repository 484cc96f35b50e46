from datetime import date

import pytest

from salon_booking.core.exceptions import ValidationException
from salon_booking.services.validators import (
    ensure_not_past,
    parse_date,
    phones_match,
    require_text,
    sanitize_text,
    validate_phone,
)


def test_validate_phone():
    assert validate_phone(" +7 912 345-67-89 ") == "+7 912 345-67-89"
    assert validate_phone("912345678") == "912345678"

    with pytest.raises(ValidationException) as exc:
        validate_phone("12-34-56")
    assert exc.value.field == "phone"

    with pytest.raises(ValidationException):
        validate_phone(None)


def test_phones_match_ignores_formatting_and_country_code():
    assert phones_match("+7 (912) 345-67-89", "89123456789")
    assert phones_match("9123456789", "+79123456789")
    assert phones_match("123456789", "+7 123 456 789")
    assert not phones_match("+79123456789", "+79123456780")
    assert not phones_match("12345", "12345")


def test_sanitize_text():
    assert sanitize_text("  <b>Anna</b> ") == "bAnna/b"
    assert sanitize_text(None) == ""
    assert sanitize_text("x" * 20, max_length=5) == "xxxxx"


def test_require_text():
    assert require_text(" Haircut ", "service", "Service") == "Haircut"
    with pytest.raises(ValidationException) as exc:
        require_text("   ", "service", "Service")
    assert exc.value.details == {"field": "service"}


def test_parse_date():
    assert parse_date("2025-05-01") == date(2025, 5, 1)
    assert parse_date("2025-05-01T00:00:00Z") == date(2025, 5, 1)
    for bad in (None, "", "01.05.2025", "2025-13-01"):
        with pytest.raises(ValidationException):
            parse_date(bad)


def test_ensure_not_past():
    today = date(2025, 4, 30)
    ensure_not_past(today, today)
    ensure_not_past(date(2025, 5, 1), today)
    with pytest.raises(ValidationException):
        ensure_not_past(date(2025, 4, 29), today)
