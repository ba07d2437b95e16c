from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Sequence

import pandas as pd

from schemas import (
    CalculatedStats,
    CategoryStat,
    ItemStat,
    LineItem,
    MonthStat,
    Order,
    StoreStat,
)

logger = logging.getLogger(__name__)

TOP_N = 5
# Delivery durations outside (0, 120) minutes are treated as bad data.
MAX_DELIVERY_MINUTES = 120

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

LINE_ITEM_COLUMNS = list(LineItem.model_fields)
ORDER_COLUMNS = ["order_id", "store_name", "created_at", "delivery_time", "total", "item_count"]


def to_df(items: Sequence[LineItem]) -> pd.DataFrame:
    if not items:
        return pd.DataFrame(columns=LINE_ITEM_COLUMNS)
    return pd.DataFrame([item.model_dump() for item in items], columns=LINE_ITEM_COLUMNS)


def group_orders(items: Sequence[LineItem]) -> List[Order]:
    """Group line items into orders by order_id, in first-seen order."""
    grouped: Dict[str, dict] = {}
    for item in items:
        acc = grouped.get(item.order_id)
        if acc is None:
            acc = grouped[item.order_id] = {"first": item, "items": [], "total": 0.0}
        acc["items"].append(item)
        acc["total"] += item.subtotal

    return [
        Order(
            order_id=order_id,
            store_name=acc["first"].store_name,
            created_at=acc["first"].created_at,
            delivery_time=acc["first"].delivery_time,
            items=acc["items"],
            total=acc["total"],
        )
        for order_id, acc in grouped.items()
    ]


def orders_to_df(orders: Sequence[Order]) -> pd.DataFrame:
    if not orders:
        return pd.DataFrame(columns=ORDER_COLUMNS)
    return pd.DataFrame(
        {
            "order_id": [o.order_id for o in orders],
            "store_name": [o.store_name for o in orders],
            "created_at": pd.to_datetime([o.created_at for o in orders]),
            "delivery_time": pd.to_datetime([o.delivery_time for o in orders]),
            "total": [o.total for o in orders],
            "item_count": [len(o.items) for o in orders],
        }
    )


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _month_key(created_at: pd.Series) -> pd.Series:
    return created_at.dt.year * 100 + created_at.dt.month


def _month_label(key: int) -> str:
    return f"{MONTH_NAMES[key % 100 - 1]} {key // 100}"


def _peak(labels: pd.Series):
    # idxmax keeps the first bucket (in first-seen order) among equal counts
    counts = labels.groupby(labels, sort=False).size()
    return counts.idxmax()


def calc_top_stores(orders: Sequence[Order], limit: int = TOP_N) -> List[StoreStat]:
    if not orders:
        return []
    df = orders_to_df(orders)
    ranked = (
        df.groupby("store_name", sort=False)
        .agg(order_count=("total", "count"), total_spent=("total", "sum"))
        .sort_values("order_count", ascending=False, kind="stable")
        .head(limit)
    )

    item_names: Dict[str, List[str]] = {}
    for order in orders:
        item_names.setdefault(order.store_name, []).extend(i.item for i in order.items)

    return [
        StoreStat(
            name=row.Index,
            order_count=int(row.order_count),
            total_spent=float(row.total_spent),
            items=item_names[row.Index],
        )
        for row in ranked.itertuples()
    ]


def calc_top_items(df: pd.DataFrame, limit: int = TOP_N) -> List[ItemStat]:
    """Rank item names by total quantity; store is the last one seen for the name."""
    if df.empty:
        return []
    ranked = (
        df.groupby("item", sort=False)
        .agg(quantity=("quantity", "sum"), subtotal=("subtotal", "sum"), store=("store_name", "last"))
        .sort_values("quantity", ascending=False, kind="stable")
        .head(limit)
    )
    return [
        ItemStat(name=row.Index, count=int(row.quantity), total_spent=float(row.subtotal), store=row.store)
        for row in ranked.itertuples()
    ]


def calc_top_categories(df: pd.DataFrame, limit: int = TOP_N) -> List[CategoryStat]:
    if df.empty:
        return []
    ranked = (
        df.groupby("category", sort=False)
        .agg(quantity=("quantity", "sum"), subtotal=("subtotal", "sum"))
        .sort_values("subtotal", ascending=False, kind="stable")
        .head(limit)
    )
    return [
        CategoryStat(name=row.Index, count=int(row.quantity), total_spent=float(row.subtotal))
        for row in ranked.itertuples()
    ]


def calc_month_stats(orders_df: pd.DataFrame) -> List[MonthStat]:
    if orders_df.empty:
        return []
    keys = _month_key(orders_df["created_at"])
    counts = keys.groupby(keys).size().sort_index()
    return [MonthStat(month=_month_label(int(key)), count=int(count)) for key, count in counts.items()]


def calc_monthly(orders: Sequence[Order]) -> pd.Series:
    """Spend per month, indexed by 'YYYY-MM'."""
    if not orders:
        return pd.Series(dtype=float)
    df = orders_to_df(orders)
    df["month"] = df["created_at"].dt.strftime("%Y-%m")
    return df.groupby("month")["total"].sum().sort_index()


def calc_avg_delivery_time(orders_df: pd.DataFrame) -> int:
    if orders_df.empty:
        return 0
    minutes = (orders_df["delivery_time"] - orders_df["created_at"]).dt.total_seconds() / 60
    valid = minutes[(minutes > 0) & (minutes < MAX_DELIVERY_MINUTES)]
    if valid.empty:
        return 0
    return int(_round_half_up(float(valid.mean())))


def calc_longest_streak(orders_df: pd.DataFrame) -> int:
    """Longest run of consecutive calendar days with at least one order."""
    if orders_df.empty:
        return 0
    days = orders_df["created_at"].dt.normalize().drop_duplicates().sort_values()
    longest = current = 1
    for gap in days.diff().dropna():
        if gap == pd.Timedelta(days=1):
            current += 1
            longest = max(longest, current)
        else:
            current = 1
    return longest


def calculate_stats(items: Sequence[LineItem]) -> Optional[CalculatedStats]:
    """
    Build the yearly recap summary from normalized line items.

    Returns None when there is nothing to summarize.
    """
    if not items:
        return None

    orders = group_orders(items)
    items_df = to_df(items)
    orders_df = orders_to_df(orders)
    created = orders_df["created_at"]

    total_spent = float(sum(order.total for order in orders))
    total_orders = len(orders)
    total_items = int(items_df["quantity"].sum())

    top_stores = calc_top_stores(orders)

    hours = created.dt.hour
    weekdays = created.dt.dayofweek
    months = _month_key(created)

    first_order = created.min().to_pydatetime()
    last_order = created.max().to_pydatetime()

    days_active = int(created.dt.normalize().nunique())
    if total_orders > 1:
        span_days = (last_order - first_order).total_seconds() / 86400
        avg_days_between = _round_half_up(span_days / (total_orders - 1), 1)
    else:
        avg_days_between = 0.0

    stats = CalculatedStats(
        total_spent=total_spent,
        total_orders=total_orders,
        total_items=total_items,
        avg_order_value=total_spent / total_orders,
        top_stores=top_stores,
        top_items=calc_top_items(items_df),
        top_categories=calc_top_categories(items_df),
        peak_hour=f"{int(_peak(hours))}:00",
        peak_day=WEEKDAY_NAMES[int(_peak(weekdays))],
        avg_delivery_time=calc_avg_delivery_time(orders_df),
        most_expensive_order=orders[int(orders_df["total"].idxmax())],
        cheapest_order=orders[int(orders_df["total"].idxmin())],
        first_order=first_order,
        last_order=last_order,
        month_stats=calc_month_stats(orders_df),
        longest_streak=calc_longest_streak(orders_df),
        busiest_month=_month_label(int(_peak(months))),
        weekend_orders=int((weekdays >= 5).sum()),
        weekday_orders=int((weekdays < 5).sum()),
        late_night_orders=int(((hours >= 22) | (hours < 2)).sum()),
        early_morning_orders=int(((hours >= 5) & (hours < 9)).sum()),
        avg_items_per_order=_round_half_up(total_items / total_orders, 1),
        most_frequent_store=top_stores[0],
        total_days_active=days_active,
        avg_days_between_orders=avg_days_between,
    )
    logger.debug("Computed stats for %d line items in %d orders", len(items), total_orders)
    return stats
