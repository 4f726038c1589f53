# Overview: Read-only report derivations over already-fetched records.

"""
Reports are pure functions of the product/customer/sale lists a caller has
already loaded. Nothing here touches the store; results are recomputed on
every request from the current snapshot.
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Iterable

from agriferti.time_utils import parse_iso_date


PERIODS = ("day", "month", "year")

STOCK_OUT = "OUT_OF_STOCK"
STOCK_LOW = "LOW"
STOCK_OK = "OK"


class ReportError(ValueError):
    """Raised for invalid report parameters."""


def _check_period(period: str) -> str:
    if period not in PERIODS:
        raise ReportError(f"period must be one of: {', '.join(PERIODS)}")
    return period


def _same_period(a: date, b: date, period: str) -> bool:
    if period == "day":
        return a == b
    if period == "month":
        return (a.year, a.month) == (b.year, b.month)
    return a.year == b.year


def _bucket(d: date, period: str) -> str:
    if period == "day":
        return d.isoformat()
    if period == "month":
        return f"{d.year:04d}-{d.month:02d}"
    return f"{d.year:04d}"


def filter_sales_by_period(sales: Iterable[dict], period: str, on: date) -> list[dict]:
    """Sales whose date falls in the same calendar day/month/year as `on`."""
    _check_period(period)
    return [s for s in sales if _same_period(parse_iso_date(s["date"]), on, period)]


def summarize_sales(sales: Iterable[dict]) -> dict:
    count = 0
    quantity = 0
    revenue = Decimal("0")
    profit = Decimal("0")
    for sale in sales:
        count += 1
        quantity += sale["quantity"]
        revenue += Decimal(sale["total_revenue"])
        profit += Decimal(sale["total_profit"])
    return {
        "sales_count": count,
        "total_quantity": quantity,
        "total_revenue": revenue,
        "total_profit": profit,
    }


def revenue_by_period(sales: Iterable[dict], group_by: str = "month") -> list[dict]:
    """Revenue and profit per calendar bucket, oldest bucket first."""
    _check_period(group_by)
    buckets: dict[str, dict] = {}
    for sale in sales:
        key = _bucket(parse_iso_date(sale["date"]), group_by)
        row = buckets.setdefault(key, {
            "period": key,
            "revenue": Decimal("0"),
            "profit": Decimal("0"),
            "quantity": 0,
        })
        row["revenue"] += Decimal(sale["total_revenue"])
        row["profit"] += Decimal(sale["total_profit"])
        row["quantity"] += sale["quantity"]
    return [buckets[k] for k in sorted(buckets)]


def profit_by_product(products: Iterable[dict], sales: Iterable[dict]) -> list[dict]:
    """
    Total profit per product, highest first. Products that have not made a
    profit are left out. Sales of deleted products are not attributed.
    """
    totals: dict[str, Decimal] = {}
    for sale in sales:
        totals[sale["product_id"]] = totals.get(sale["product_id"], Decimal("0")) + Decimal(sale["total_profit"])

    rows = [
        {"product_id": p["id"], "name": p["name"], "profit": totals.get(p["id"], Decimal("0"))}
        for p in products
    ]
    rows = [r for r in rows if r["profit"] > 0]
    rows.sort(key=lambda r: r["profit"], reverse=True)
    return rows


def top_products_by_profit(products: Iterable[dict], sales: Iterable[dict], limit: int = 5) -> list[dict]:
    return profit_by_product(products, sales)[:limit]


def city_counts(customers: Iterable[dict]) -> dict[str, int]:
    """Number of customer records per city, in first-seen order."""
    counts: dict[str, int] = OrderedDict()
    for c in customers:
        counts[c["city"]] = counts.get(c["city"], 0) + 1
    return dict(counts)


def city_volume(customers: Iterable[dict]) -> dict[str, int]:
    """Units purchased per city, in first-seen order."""
    volume: dict[str, int] = OrderedDict()
    for c in customers:
        volume[c["city"]] = volume.get(c["city"], 0) + c["quantity"]
    return dict(volume)


def top_customers_by_quantity(customers: Iterable[dict], limit: int = 5) -> list[dict]:
    # sorted() is stable: ties keep insertion order
    return sorted(customers, key=lambda c: c["quantity"], reverse=True)[:limit]


def stock_value(products: Iterable[dict]) -> Decimal:
    """Inventory valued at purchase price."""
    return sum((Decimal(p["purchase_price"]) * p["stock"] for p in products), Decimal("0")).quantize(Decimal("0.01"))


def stock_status(stock: int, low_threshold: int = 10) -> str:
    if stock <= 0:
        return STOCK_OUT
    if stock < low_threshold:
        return STOCK_LOW
    return STOCK_OK


def stock_report(products: Iterable[dict], low_threshold: int = 10) -> list[dict]:
    return [
        {
            "product_id": p["id"],
            "name": p["name"],
            "unit": p["unit"],
            "stock": p["stock"],
            "status": stock_status(p["stock"], low_threshold),
        }
        for p in products
    ]


def dashboard(products: list[dict], customers: list[dict], sales: list[dict]) -> dict:
    """Headline numbers and chart series for the owner dashboard."""
    top_product = None
    if sales:
        best_sale = max(sales, key=lambda s: Decimal(s["total_profit"]))
        top_product = next((p["name"] for p in products if p["id"] == best_sale["product_id"]), None)

    volume = city_volume(customers)
    top_city = max(volume, key=volume.get) if volume else None

    top_customers = top_customers_by_quantity(customers, limit=1)

    return {
        "total_stock_value": stock_value(products),
        "top_product_by_profit": top_product,
        "top_city_by_volume": top_city,
        "best_customer": top_customers[0]["name"] if top_customers else None,
        "totals": summarize_sales(sales),
        "monthly_revenue": revenue_by_period(sales, "month"),
        "profit_by_product": profit_by_product(products, sales),
        "city_counts": city_counts(customers),
    }
