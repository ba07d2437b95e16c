from datetime import datetime, timedelta

import pytest

from csv_parser import process_order_data


def make_row(created, store="A", item="Taco", category="Mexican", subtotal="10.00",
             quantity="1", unit_price=None, delivery_minutes=30, address="1 Main St"):
    delivery = datetime.fromisoformat(created) + timedelta(minutes=delivery_minutes)
    return {
        "CREATED_AT": created,
        "DELIVERY_TIME": delivery.isoformat(sep=" "),
        "ITEM": item,
        "CATEGORY": category,
        "STORE_NAME": store,
        "UNIT_PRICE": subtotal if unit_price is None else unit_price,
        "QUANTITY": quantity,
        "SUBTOTAL": subtotal,
        "DELIVERY_ADDRESS": address,
    }


@pytest.fixture
def make_items():
    """Build normalized line items from make_row keyword dicts."""
    def _make(*specs):
        return process_order_data([make_row(**spec) for spec in specs])
    return _make
