"""Tests des utilitaires de dates: clés de jour et grille mensuelle."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from dashboard.domain.dates import (
    GRID_DAYS,
    build_calendar_dates,
    month_name,
    parse_date_key,
    shift_month,
    to_date_key,
    weekday_short,
)

SUNDAY = 6  # date.weekday()


def test_to_date_key_zero_pads() -> None:
    assert to_date_key(date(2025, 1, 5)) == "2025-01-05"


def test_to_date_key_uses_local_components_late_in_the_day() -> None:
    """23:30 dans un fuseau en retard sur UTC reste le jour local."""
    behind_utc = timezone(timedelta(hours=-5))
    late = datetime(2025, 8, 18, 23, 30, tzinfo=behind_utc)
    assert to_date_key(late) == "2025-08-18"
    # la même instant exprimé en UTC est déjà le lendemain
    assert to_date_key(late.astimezone(timezone.utc)) == "2025-08-19"


def test_to_date_key_ahead_of_utc() -> None:
    ahead = timezone(timedelta(hours=9))
    early = datetime(2025, 8, 18, 0, 15, tzinfo=ahead)
    assert to_date_key(early) == "2025-08-18"


def test_parse_date_key_roundtrip_and_errors() -> None:
    assert parse_date_key("2024-02-29") == date(2024, 2, 29)
    with pytest.raises(ValueError):
        parse_date_key("2025/08/18")


@pytest.mark.parametrize("year,month", [(2025, 8), (2024, 2), (2023, 10), (2026, 2), (2025, 12)])
def test_build_calendar_dates_shape(year: int, month: int) -> None:
    dates = build_calendar_dates(year, month)
    first = date(year, month, 1)
    assert len(dates) == GRID_DAYS
    assert dates[0].weekday() == SUNDAY
    assert dates[0] <= first < dates[0] + timedelta(days=7)
    assert all(b - a == timedelta(days=1) for a, b in zip(dates, dates[1:]))
    assert first in dates


def test_build_calendar_dates_month_starting_on_sunday() -> None:
    # 1er juin 2025 est un dimanche: pas de jours du mois précédent
    dates = build_calendar_dates(2025, 6)
    assert dates[0] == date(2025, 6, 1)
    assert dates[-1] == date(2025, 7, 12)


def test_build_calendar_dates_august_2025() -> None:
    dates = build_calendar_dates(2025, 8)
    assert dates[0] == date(2025, 7, 27)
    assert dates[-1] == date(2025, 9, 6)


def test_shift_month_wraps_years() -> None:
    assert shift_month(date(2025, 1, 31), -1) == date(2024, 12, 1)
    assert shift_month(date(2025, 12, 15), 1) == date(2026, 1, 1)
    assert shift_month(date(2025, 8, 18), 0) == date(2025, 8, 1)


def test_names() -> None:
    assert month_name(8) == "August"
    assert weekday_short(date(2025, 8, 18)) == "Mon"
    assert weekday_short(date(2025, 8, 17)) == "Sun"
