from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

CSV_COLUMNS = [
    "CREATED_AT",
    "DELIVERY_TIME",
    "ITEM",
    "CATEGORY",
    "STORE_NAME",
    "UNIT_PRICE",
    "QUANTITY",
    "SUBTOTAL",
    "DELIVERY_ADDRESS",
]


class LineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    item: str = Field("", description="Item name")
    category: str = Field("", description="Item category")
    store_name: str = Field("", description="Store name")
    unit_price: float = Field(0.0, description="Price of one unit")
    quantity: int = Field(0, ge=0, description="Quantity")
    subtotal: float = Field(0.0, description="Line subtotal")
    created_at: datetime = Field(..., description="Order creation time, local wall time")
    delivery_time: datetime = Field(..., description="Delivery time, local wall time")
    delivery_address: str = Field("", description="Delivery address")
    order_id: str = Field(..., description="Grouping key built from CREATED_AT and STORE_NAME")


class Order(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: str
    store_name: str
    created_at: datetime
    delivery_time: datetime
    items: List[LineItem]
    total: float


class StoreStat(BaseModel):
    name: str
    order_count: int
    total_spent: float
    items: List[str] = Field(default_factory=list, description="Item names across all orders")


class ItemStat(BaseModel):
    name: str
    count: int
    total_spent: float
    store: str = Field(..., description="Store of the last line item seen with this name")


class CategoryStat(BaseModel):
    name: str
    count: int
    total_spent: float


class MonthStat(BaseModel):
    month: str = Field(..., description="'<Month> <Year>', e.g. 'March 2024'")
    count: int


class CalculatedStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_spent: float
    total_orders: int
    total_items: int
    avg_order_value: float
    top_stores: List[StoreStat]
    top_items: List[ItemStat]
    top_categories: List[CategoryStat]
    peak_hour: str
    peak_day: str
    avg_delivery_time: int
    most_expensive_order: Order
    cheapest_order: Order
    first_order: datetime
    last_order: datetime
    month_stats: List[MonthStat]
    longest_streak: int
    busiest_month: str
    weekend_orders: int
    weekday_orders: int
    late_night_orders: int
    early_morning_orders: int
    avg_items_per_order: float
    most_frequent_store: StoreStat
    total_days_active: int
    avg_days_between_orders: float
