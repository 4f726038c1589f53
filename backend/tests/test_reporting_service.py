# Overview: Pytest coverage for report derivations (pure functions, no app).

from datetime import date
from decimal import Decimal

import pytest

from agriferti.services import reporting_service as reports


PRODUCTS = [
    {"id": "p1", "name": "Urea", "unit": "bag", "purchase_price": Decimal("1100.00"), "stock": 10},
    {"id": "p2", "name": "DAP", "unit": "bag", "purchase_price": Decimal("1350.00"), "stock": 4},
    {"id": "p3", "name": "Zinc", "unit": "kg", "purchase_price": Decimal("80.50"), "stock": 0},
]

SALES = [
    {"product_id": "p1", "quantity": 5, "date": "2026-03-02",
     "total_revenue": Decimal("5750.00"), "total_profit": Decimal("250.00")},
    {"product_id": "p2", "quantity": 2, "date": "2026-03-15",
     "total_revenue": Decimal("2800.00"), "total_profit": Decimal("100.00")},
    {"product_id": "p1", "quantity": 1, "date": "2026-04-01",
     "total_revenue": Decimal("1150.00"), "total_profit": Decimal("50.00")},
    {"product_id": "gone", "quantity": 3, "date": "2025-12-31",
     "total_revenue": Decimal("300.00"), "total_profit": Decimal("900.00")},
]

CUSTOMERS = [
    {"name": "Ramesh", "city": "Nashik", "quantity": 5},
    {"name": "Sita", "city": "Pune", "quantity": 2},
    {"name": "Gopal", "city": "Nashik", "quantity": 1},
    {"name": "Anil", "city": "Pune", "quantity": 7},
]


class TestPeriods:

    @pytest.mark.parametrize("period,expected", [
        ("day", 1),
        ("month", 2),
        ("year", 3),
    ])
    def test_filter_sales_by_period(self, period, expected):
        selected = reports.filter_sales_by_period(SALES, period, date(2026, 3, 15))
        assert len(selected) == expected

    def test_unknown_period_rejected(self):
        with pytest.raises(reports.ReportError):
            reports.filter_sales_by_period(SALES, "week", date(2026, 3, 15))

    def test_revenue_by_month_chronological(self):
        rows = reports.revenue_by_period(SALES, "month")

        assert [r["period"] for r in rows] == ["2025-12", "2026-03", "2026-04"]
        assert rows[1]["revenue"] == Decimal("8550.00")
        assert rows[1]["profit"] == Decimal("350.00")
        assert rows[1]["quantity"] == 7

    def test_revenue_by_year(self):
        rows = reports.revenue_by_period(SALES, "year")
        assert [(r["period"], r["revenue"]) for r in rows] == [
            ("2025", Decimal("300.00")),
            ("2026", Decimal("9700.00")),
        ]


class TestTotals:

    def test_summarize_sales(self):
        summary = reports.summarize_sales(SALES)

        assert summary == {
            "sales_count": 4,
            "total_quantity": 11,
            "total_revenue": Decimal("10000.00"),
            "total_profit": Decimal("1300.00"),
        }

    def test_summarize_empty(self):
        summary = reports.summarize_sales([])
        assert summary["sales_count"] == 0
        assert summary["total_revenue"] == Decimal("0")

    def test_profit_by_product_skips_unknown_and_unprofitable(self):
        rows = reports.profit_by_product(PRODUCTS, SALES)

        assert [(r["name"], r["profit"]) for r in rows] == [
            ("Urea", Decimal("300.00")),
            ("DAP", Decimal("100.00")),
        ]

    def test_top_products_limit(self):
        assert [r["name"] for r in reports.top_products_by_profit(PRODUCTS, SALES, limit=1)] == ["Urea"]


class TestCustomersReports:

    def test_city_counts(self):
        assert reports.city_counts(CUSTOMERS) == {"Nashik": 2, "Pune": 2}

    def test_city_volume(self):
        assert reports.city_volume(CUSTOMERS) == {"Nashik": 6, "Pune": 9}

    def test_top_customers_by_quantity(self):
        top = reports.top_customers_by_quantity(CUSTOMERS, limit=2)
        assert [c["name"] for c in top] == ["Anil", "Ramesh"]


class TestStock:

    def test_stock_value(self):
        assert reports.stock_value(PRODUCTS) == Decimal("16400.00")

    @pytest.mark.parametrize("stock,status", [
        (0, reports.STOCK_OUT),
        (-1, reports.STOCK_OUT),
        (1, reports.STOCK_LOW),
        (9, reports.STOCK_LOW),
        (10, reports.STOCK_OK),
    ])
    def test_stock_status(self, stock, status):
        assert reports.stock_status(stock) == status

    def test_stock_report_custom_threshold(self):
        rows = reports.stock_report(PRODUCTS, low_threshold=5)
        assert [r["status"] for r in rows] == [reports.STOCK_OK, reports.STOCK_LOW, reports.STOCK_OUT]


class TestDashboard:

    def test_dashboard_headlines(self):
        summary = reports.dashboard(PRODUCTS, CUSTOMERS, SALES[:3])

        assert summary["total_stock_value"] == Decimal("16400.00")
        assert summary["top_product_by_profit"] == "Urea"
        assert summary["top_city_by_volume"] == "Pune"
        assert summary["best_customer"] == "Anil"
        assert summary["totals"]["sales_count"] == 3
        assert [r["period"] for r in summary["monthly_revenue"]] == ["2026-03", "2026-04"]
        assert summary["city_counts"] == {"Nashik": 2, "Pune": 2}

    def test_dashboard_empty(self):
        summary = reports.dashboard([], [], [])

        assert summary["top_product_by_profit"] is None
        assert summary["top_city_by_volume"] is None
        assert summary["best_customer"] is None
        assert summary["total_stock_value"] == Decimal("0.00")
