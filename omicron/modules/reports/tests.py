"""
Tests para reportes: corte de caja y estadísticas

Todas las fechas de tickets se dan en UTC sin tzinfo; el calendario local es
America/Mexico_City (UTC-6). "Ahora" se fija al 14/10/2026 12:00 hora local.
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from omicron.common.date_ranges import RangeKind
from omicron.modules.pos.models import TicketStatus
from omicron.modules.reports.services import AnalyticsService, CashCutService


NOW = datetime(2026, 10, 14, 18, 0)


@pytest.fixture
def ledger(make_ticket):
    """Tickets alrededor del miércoles 14/10/2026"""
    make_ticket("Beto", "100", datetime(2026, 10, 14, 16, 0))
    make_ticket("Ana", "100", datetime(2026, 10, 14, 17, 0))
    make_ticket("Carla", "50", datetime(2026, 10, 14, 17, 30))
    make_ticket("Beto", "500", datetime(2026, 10, 14, 17, 45), status=TicketStatus.CANCELLED)
    # 13/10 21:00 hora local
    make_ticket("Eva", "40", datetime(2026, 10, 14, 3, 0))
    # Lunes 12/10, misma semana
    make_ticket("Ana", "30", datetime(2026, 10, 12, 15, 0))
    # Semana anterior, mismo mes
    make_ticket("Ana", "20", datetime(2026, 10, 2, 15, 0))
    # Mes anterior
    make_ticket("Beto", "200", datetime(2026, 9, 30, 15, 0))


# ===== TESTS DE CORTE DE CAJA =====

class TestCashCut:

    def test_day_cut(self, db_session, ledger):
        report = CashCutService(db_session).compute_cash_cut(
            reference_date=date(2026, 10, 14),
            range_kind=RangeKind.DAY,
            opening_cash=Decimal("500"),
            closing_cash=Decimal("700"),
            expenses=[{"description": "Papelería", "amount": Decimal("30")}]
        )

        assert report["sales_in_range"] == Decimal("250.00")
        assert report["sales_count"] == 3
        assert report["expenses_total"] == Decimal("30.00")
        assert report["expected_cash"] == Decimal("720.00")
        assert report["variance"] == Decimal("-20.00")
        assert report["net_profit"] == Decimal("220.00")

    def test_week_and_month_cuts(self, db_session, ledger):
        service = CashCutService(db_session)

        week = service.compute_cash_cut(date(2026, 10, 14), RangeKind.WEEK, Decimal("0"), Decimal("0"))
        month = service.compute_cash_cut(date(2026, 10, 14), RangeKind.MONTH, Decimal("0"), Decimal("0"))

        assert week["sales_in_range"] == Decimal("320.00")
        assert month["sales_in_range"] == Decimal("340.00")
        assert month["label"] == "Octubre 2026"

    def test_empty_window(self, db_session):
        report = CashCutService(db_session).compute_cash_cut(
            date(2026, 1, 1), RangeKind.DAY, Decimal("100"), Decimal("100")
        )
        assert report["sales_in_range"] == Decimal("0.00")
        assert report["variance"] == Decimal("0.00")

    def test_save_and_history(self, client, ledger):
        payload = {
            "reference_date": "2026-10-14",
            "range_kind": "week",
            "opening_cash": "1000",
            "closing_cash": "1300",
            "expenses": [{"id": "e1", "description": "Limpieza", "amount": "20"}]
        }

        response = client.post("/api/v1/reports/cash-cut/save", json=payload)
        assert response.status_code == 201
        saved = response.json()
        assert Decimal(saved["sales_in_range"]) == Decimal("320")
        assert Decimal(saved["variance"]) == Decimal("0")
        assert saved["expenses"][0]["description"] == "Limpieza"
        assert saved["start_at"].startswith("2026-10-11T06:00")

        history = client.get("/api/v1/reports/cash-cut/history").json()
        assert history["total"] == 1
        assert history["cash_cuts"][0]["id"] == saved["id"]

    @pytest.mark.parametrize("expense", [
        {"description": "Sin monto", "amount": "0"},
        {"description": "   ", "amount": "10"},
        {"description": "Renta", "amount": "1e30"},
    ])
    def test_invalid_expense(self, client, expense):
        payload = {"reference_date": "2026-10-14", "range_kind": "day", "expenses": [expense]}
        assert client.post("/api/v1/reports/cash-cut", json=payload).status_code == 422

    @pytest.mark.parametrize("field", ["opening_cash", "closing_cash"])
    def test_cash_out_of_range(self, client, field):
        payload = {"reference_date": "2026-10-14", "range_kind": "day", field: "1e30"}
        assert client.post("/api/v1/reports/cash-cut", json=payload).status_code == 422


# ===== TESTS DE ESTADÍSTICAS =====

class TestAnalytics:

    def test_totals_by_window(self, db_session, ledger):
        totals = AnalyticsService(db_session, now=NOW).totals_by_window()

        assert totals["today"] == Decimal("250.00")
        assert totals["today_count"] == 3
        assert totals["week"] == Decimal("320.00")
        assert totals["month"] == Decimal("340.00")

    def test_ranking_ties_keep_ledger_order(self, db_session, ledger):
        ranking = AnalyticsService(db_session, now=NOW).seller_ranking(RangeKind.DAY)

        assert [entry["seller"] for entry in ranking] == ["Beto", "Ana", "Carla"]
        assert ranking[0]["total"] == Decimal("100.00")
        assert ranking[0]["count"] == 1

    def test_ranking_excludes_cancelled(self, db_session, ledger):
        ranking = AnalyticsService(db_session, now=NOW).seller_ranking(RangeKind.WEEK)

        assert [entry["seller"] for entry in ranking] == ["Ana", "Beto", "Carla", "Eva"]
        assert ranking[0]["total"] == Decimal("130.00")
        assert ranking[1]["total"] == Decimal("100.00")

    def test_daily_trend(self, db_session, ledger):
        trend = AnalyticsService(db_session, now=NOW).daily_trend(7)

        assert [point["day"] for point in trend][0] == date(2026, 10, 8)
        assert trend[-1]["day"] == date(2026, 10, 14)
        by_day = {point["day"]: point for point in trend}
        assert by_day[date(2026, 10, 14)]["total"] == Decimal("250.00")
        assert by_day[date(2026, 10, 14)]["height"] == 1.0
        assert by_day[date(2026, 10, 13)]["total"] == Decimal("40.00")
        assert by_day[date(2026, 10, 12)]["height"] == pytest.approx(0.12)
        assert by_day[date(2026, 10, 9)]["height"] == 0.0

    def test_trend_height_floor(self, db_session):
        trend = AnalyticsService(db_session, now=NOW).daily_trend(3)

        assert len(trend) == 3
        assert all(point["height"] == 0.0 for point in trend)

    def test_analytics_endpoint(self, client):
        response = client.get("/api/v1/reports/analytics", params={"window": "month", "days": 5})
        assert response.status_code == 200
        data = response.json()
        assert data["window"] == "month"
        assert len(data["trend"]) == 5
        assert data["ranking"] == []
