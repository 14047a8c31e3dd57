"""Unit tests for pure clinic rules (no database)."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

from src.clinic.services.auth_service import TenantCodeGenerator
from src.clinic.services.operation_service import scheduled_note
from src.clinic.services.patient_service import format_patient_number
from src.clinic.services.visit_service import fee_window

NOW = datetime(2025, 3, 20, 10, 0, tzinfo=UTC)


def _visit(days_ago: int, fee_valid_until: datetime | None = None) -> SimpleNamespace:
    return SimpleNamespace(visit_date=NOW - timedelta(days=days_ago), fee_valid_until=fee_valid_until)


# --- fee_window ---


def test_first_visit_needs_fee():
    needs_fee, valid_until = fee_window(None, NOW, 14)
    assert needs_fee is True
    assert valid_until == NOW + timedelta(days=14)


def test_visit_inside_window_inherits_validity():
    inherited = NOW + timedelta(days=1)
    needs_fee, valid_until = fee_window(_visit(13, inherited), NOW, 14)
    assert needs_fee is False
    assert valid_until == inherited


def test_visit_after_window_needs_fee():
    needs_fee, valid_until = fee_window(_visit(15, NOW - timedelta(days=1)), NOW, 14)
    assert needs_fee is True
    assert valid_until == NOW + timedelta(days=14)


def test_visit_exactly_on_boundary_is_still_covered():
    needs_fee, _ = fee_window(_visit(14), NOW, 14)
    assert needs_fee is False


def test_missing_validity_falls_back_to_visit_date():
    last = _visit(3)
    needs_fee, valid_until = fee_window(last, NOW, 14)
    assert needs_fee is False
    assert valid_until == last.visit_date + timedelta(days=14)


def test_naive_datetimes_are_treated_as_utc():
    last = SimpleNamespace(
        visit_date=(NOW - timedelta(days=2)).replace(tzinfo=None),
        fee_valid_until=(NOW + timedelta(days=12)).replace(tzinfo=None),
    )
    needs_fee, valid_until = fee_window(last, NOW, 14)
    assert needs_fee is False
    assert valid_until == NOW + timedelta(days=12)


# --- numbering and codes ---


def test_format_patient_number_pads_sequence():
    assert format_patient_number("abc", 3) == "PT-ABC-003"
    assert format_patient_number("ABC", 1234) == "PT-ABC-1234"
    assert format_patient_number("ABC", 7, padding=5) == "PT-ABC-00007"


def test_tenant_code_generator_draws_uppercase_letters():
    code = TenantCodeGenerator(length=8).draw()
    assert len(code) == 8
    assert code.isalpha() and code.isupper()


def test_scheduled_note_appends_line():
    assert scheduled_note(None, "Appendectomy") == "Operation scheduled: Appendectomy"
    assert scheduled_note("New visit", "Appendectomy") == "New visit\nOperation scheduled: Appendectomy"
