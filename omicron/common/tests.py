"""
Tests para utilidades comunes: ventanas de calendario y errores del POS

La zona horaria por defecto es America/Mexico_City (UTC-6 fijo, sin horario
de verano desde 2022).
"""

import pytest
from datetime import date, datetime, timedelta

from omicron.core.config import Settings
from omicron.common.date_ranges import (
    RangeKind, resolve_range, last_days, local_day, days_since_sunday
)
from omicron.common.exceptions import (
    AlreadyCancelled, InvalidDiscount, ProductNotFound, StockConflict
)


# ===== TESTS DE VENTANAS =====

class TestResolveRange:
    """Tests de day / week / month en calendario local"""

    def test_day_window(self):
        window = resolve_range(date(2026, 10, 14), RangeKind.DAY)

        assert window.start.date() == date(2026, 10, 14)
        assert window.start.hour == 0
        assert window.end - window.start == timedelta(days=1) - timedelta(milliseconds=1)
        # Medianoche local = 06:00 UTC
        assert window.start_utc == datetime(2026, 10, 14, 6, 0)
        assert window.end_utc == datetime(2026, 10, 15, 5, 59, 59, 999000)

    def test_week_starts_on_sunday(self):
        # 14/10/2026 es miércoles
        window = resolve_range(date(2026, 10, 14), RangeKind.WEEK)

        assert window.start.date() == date(2026, 10, 11)
        assert window.end.date() == date(2026, 10, 17)
        assert window.label == "Semana del 11/10/2026 al 17/10/2026"

    def test_week_reference_on_sunday(self):
        window = resolve_range(date(2026, 10, 18), RangeKind.WEEK)
        assert window.start.date() == date(2026, 10, 18)
        assert days_since_sunday(date(2026, 10, 18)) == 0

    def test_month_window(self):
        window = resolve_range(date(2026, 10, 14), RangeKind.MONTH)

        assert window.start.date() == date(2026, 10, 1)
        assert window.end.date() == date(2026, 10, 31)
        assert window.label == "Octubre 2026"

    def test_month_window_leap_february(self):
        window = resolve_range(date(2028, 2, 10), RangeKind.MONTH)
        assert window.end.date() == date(2028, 2, 29)

    def test_utc_bounds_follow_local_calendar(self):
        window = resolve_range(date(2026, 10, 14), RangeKind.DAY)

        # 03:00 UTC del 14 sigue siendo el 13 en hora local
        assert datetime(2026, 10, 14, 3, 0) < window.start_utc
        assert window.start_utc <= datetime(2026, 10, 14, 6, 0) <= window.end_utc
        assert datetime(2026, 10, 15, 5, 59) <= window.end_utc

    def test_accepts_datetime_reference(self):
        window = resolve_range(datetime(2026, 10, 14, 3, 0), RangeKind.DAY)
        assert window.start.date() == date(2026, 10, 13)

    def test_accepts_string_kind(self):
        assert resolve_range(date(2026, 10, 14), "week").kind == RangeKind.WEEK


class TestLastDays:

    def test_oldest_to_newest(self):
        days = last_days(7, now=datetime(2026, 10, 14, 18, 0))

        assert len(days) == 7
        assert days[0] == date(2026, 10, 8)
        assert days[-1] == date(2026, 10, 14)

    def test_today_is_local_day(self):
        now = datetime(2026, 10, 14, 3, 0)
        assert local_day(now) == date(2026, 10, 13)
        assert last_days(1, now=now) == [date(2026, 10, 13)]


# ===== TESTS DE ERRORES =====

class TestPOSErrors:

    def test_error_carries_code_header(self):
        error = StockConflict()
        assert error.status_code == 409
        assert error.headers["X-Error-Code"] == "stock_conflict"

    def test_custom_detail(self):
        error = InvalidDiscount("El porcentaje debe estar entre 0 y 100")
        assert error.status_code == 422
        assert error.detail == "El porcentaje debe estar entre 0 y 100"

    def test_not_found_family(self):
        error = ProductNotFound()
        assert error.status_code == 404
        assert error.headers["X-Error-Code"] == "not_found"

    def test_already_cancelled(self):
        assert AlreadyCancelled().headers["X-Error-Code"] == "already_cancelled"


# ===== TESTS DE CONFIGURACIÓN =====

class TestSettings:

    @pytest.mark.parametrize("raw,expected", [
        ("true", True), ("1", True), ('"yes"', True), ("false", False), ("0", False)
    ])
    def test_debug_string_booleans(self, raw, expected):
        assert Settings(DEBUG=raw).DEBUG is expected

    def test_database_url_override(self):
        assert Settings(DATABASE_URL="sqlite:///./omicron.db").is_sqlite

    def test_postgres_url_by_default(self):
        settings = Settings(DATABASE_URL=None, POSTGRES_HOST="db")
        assert settings.database_url.startswith("postgresql+psycopg2://")
        assert "@db:5432/" in settings.database_url

    def test_low_stock_threshold_must_be_positive(self):
        with pytest.raises(ValueError):
            Settings(LOW_STOCK_THRESHOLD=0)
