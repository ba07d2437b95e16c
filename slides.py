from __future__ import annotations

import math
from typing import List

from pydantic import BaseModel, Field

from date_utils import year_label
from schemas import CalculatedStats


class Slide(BaseModel):
    key: str
    title: str
    headline: str = ""
    lines: List[str] = Field(default_factory=list)


def _percent(part: float, whole: float) -> int:
    if not whole:
        return 0
    return int(math.floor(part / whole * 100 + 0.5))


def _money(value: float, decimals: int = 2) -> str:
    return f"${value:,.{decimals}f}"


def build_slides(stats: CalculatedStats, year: int) -> List[Slide]:
    """Turn a summary into the ordered recap cards."""
    weekend_pct = _percent(stats.weekend_orders, stats.total_orders)
    top_months = sorted(stats.month_stats, key=lambda m: m.count, reverse=True)[:3]

    night_lines = [
        f"{stats.late_night_orders} late night orders (10 PM - 2 AM)",
        f"{_percent(stats.late_night_orders, stats.total_orders)}% of all orders",
    ]
    if stats.early_morning_orders > 0:
        night_lines.append(f"{stats.early_morning_orders} early morning orders")

    return [
        Slide(key="intro", title="YOUR YEAR IN FOOD", headline=year_label(year)),
        Slide(
            key="overview",
            title="THE NUMBERS",
            headline=_money(stats.total_spent, 0),
            lines=[f"ORDERS: {stats.total_orders}", f"ITEMS: {stats.total_items}"],
        ),
        Slide(
            key="spending",
            title="TOTAL",
            headline=_money(stats.total_spent),
            lines=[f"AVG/ORDER: {_money(stats.avg_order_value)}", "THANK YOU FOR EATING"],
        ),
        Slide(
            key="top_stores",
            title="TOP SPOTS",
            headline=stats.most_frequent_store.name,
            lines=[
                f"#{rank} {store.name} - {store.order_count} orders"
                for rank, store in enumerate(stats.top_stores, start=1)
            ],
        ),
        Slide(
            key="top_items",
            title="THE USUAL",
            headline=stats.top_items[0].name if stats.top_items else "",
            lines=[
                f"#{rank} {item.name} x{item.count}"
                for rank, item in enumerate(stats.top_items, start=1)
            ],
        ),
        Slide(
            key="categories",
            title="VIBES",
            lines=[
                f"{cat.name}: {_percent(cat.total_spent, stats.total_spent)}%"
                for cat in stats.top_categories
            ],
        ),
        Slide(
            key="patterns",
            title="HABITS",
            headline=stats.peak_hour,
            lines=[f"PEAK TIME: {stats.peak_hour}", f"FAV DAY: {stats.peak_day}"],
        ),
        Slide(
            key="delivery",
            title="SPEED",
            headline=f"{stats.avg_delivery_time} MINS AVG",
            lines=[
                f"BIGGEST SPLURGE: {_money(stats.most_expensive_order.total)}"
                f" at {stats.most_expensive_order.store_name}"
            ],
        ),
        Slide(
            key="streak",
            title="STREAK",
            headline=f"{stats.longest_streak} CONSECUTIVE DAYS",
            lines=[f"You ordered food {stats.longest_streak} days in a row!"],
        ),
        Slide(
            key="weekend",
            title="WEEKEND WARRIOR?",
            headline=f"{weekend_pct}% WEEKEND",
            lines=[
                f"WEEKEND: {stats.weekend_orders} ({weekend_pct}%)",
                f"WEEKDAY: {stats.weekday_orders} ({100 - weekend_pct}%)",
            ],
        ),
        Slide(
            key="busiest_month",
            title="BUSIEST MONTH",
            headline=stats.busiest_month,
            lines=[
                f"#{rank} {month.month} - {month.count} orders"
                for rank, month in enumerate(top_months, start=1)
            ],
        ),
        Slide(key="late_night", title="NIGHT OWL", headline=str(stats.late_night_orders), lines=night_lines),
        Slide(
            key="fun_facts",
            title="FUN FACTS",
            lines=[
                f"CHEAPEST ORDER: {_money(stats.cheapest_order.total)} at {stats.cheapest_order.store_name}",
                f"AVG ITEMS/ORDER: {stats.avg_items_per_order}",
                f"DAYS ACTIVE: {stats.total_days_active}",
                f"AVG DAYS BETWEEN: {stats.avg_days_between_orders}",
            ],
        ),
        Slide(
            key="final",
            title="THAT'S A WRAP",
            headline=year_label(year),
            lines=[
                f"{stats.total_orders} orders",
                f"{_money(stats.total_spent, 0)} spent",
                f"{stats.total_items} items",
            ],
        ),
    ]
