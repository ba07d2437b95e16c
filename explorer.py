from __future__ import annotations

import math
from typing import List, Sequence

from pydantic import BaseModel

from analytics import to_df
from schemas import LineItem

SORT_FIELDS = ("created_at", "store_name", "item", "category", "subtotal", "quantity")
DEFAULT_PAGE_SIZE = 20

EXPORT_COLUMNS = {
    "created_at": "CREATED_AT",
    "delivery_time": "DELIVERY_TIME",
    "item": "ITEM",
    "category": "CATEGORY",
    "store_name": "STORE_NAME",
    "unit_price": "UNIT_PRICE",
    "quantity": "QUANTITY",
    "subtotal": "SUBTOTAL",
    "delivery_address": "DELIVERY_ADDRESS",
}


class Page(BaseModel):
    rows: List[LineItem]
    page: int
    page_count: int
    total: int


def unique_stores(items: Sequence[LineItem]) -> List[str]:
    return sorted({item.store_name for item in items})


def unique_categories(items: Sequence[LineItem]) -> List[str]:
    return sorted({item.category for item in items})


def _sort_key(field: str):
    def key(item: LineItem):
        value = getattr(item, field)
        return value.lower() if isinstance(value, str) else value
    return key


def explore(
    items: Sequence[LineItem],
    search: str = "",
    store: str = "",
    category: str = "",
    sort_field: str = "created_at",
    descending: bool = True,
) -> List[LineItem]:
    """
    Search, filter and sort line items for the data table.

    Args:
        search: case-insensitive text matched against item, store and category
        store: exact store name, "" for any
        category: exact category, "" for any
        sort_field: one of SORT_FIELDS
        descending: sort direction; ties keep their input order either way

    Returns:
        list of matching line items
    """
    if sort_field not in SORT_FIELDS:
        raise ValueError(f"Cannot sort by {sort_field!r}; expected one of {', '.join(SORT_FIELDS)}")

    needle = search.lower()
    filtered = [
        item
        for item in items
        if (
            not needle
            or needle in item.item.lower()
            or needle in item.store_name.lower()
            or needle in item.category.lower()
        )
        and (not store or item.store_name == store)
        and (not category or item.category == category)
    ]
    return sorted(filtered, key=_sort_key(sort_field), reverse=descending)


def paginate(items: Sequence[LineItem], page: int, per_page: int = DEFAULT_PAGE_SIZE) -> Page:
    if per_page < 1:
        raise ValueError("per_page must be at least 1")
    page_count = max(1, math.ceil(len(items) / per_page))
    page = min(max(page, 1), page_count)
    start = (page - 1) * per_page
    return Page(rows=list(items[start:start + per_page]), page=page, page_count=page_count, total=len(items))


def to_csv(items: Sequence[LineItem]) -> str:
    """Export line items with the original column names."""
    df = to_df(items)[list(EXPORT_COLUMNS)].rename(columns=EXPORT_COLUMNS)
    return df.to_csv(index=False)
