import io
from datetime import datetime, timedelta

import pytest

from csv_parser import (
    CSVFormatError,
    make_order_id,
    parse_csv,
    parse_float,
    parse_int,
    parse_timestamp,
    process_order_data,
)

HEADER = "CREATED_AT,DELIVERY_TIME,ITEM,CATEGORY,STORE_NAME,UNIT_PRICE,QUANTITY,SUBTOTAL,DELIVERY_ADDRESS"


def _row(**overrides):
    row = {
        "CREATED_AT": "2024-03-04 12:00:00",
        "DELIVERY_TIME": "2024-03-04 12:35:00",
        "ITEM": "Pad Thai",
        "CATEGORY": "Noodles",
        "STORE_NAME": "Thai Basil",
        "UNIT_PRICE": "14.50",
        "QUANTITY": "2",
        "SUBTOTAL": "29.00",
        "DELIVERY_ADDRESS": "1 Main St",
    }
    row.update(overrides)
    return row


@pytest.mark.parametrize("raw, expected", [
    ("12.50", 12.5),
    ("3.5abc", 3.5),
    ("-2.5", -2.5),
    (".5", 0.5),
    ("", 0.0),
    ("abc", 0.0),
    ("$4.00", 0.0),
    (None, 0.0),
    (7, 7.0),
    ("1e999", 0.0),
    ("-1e999", 0.0),
    (float("inf"), 0.0),
])
def test_parse_float(raw, expected):
    assert parse_float(raw) == expected


@pytest.mark.parametrize("raw, expected", [
    ("3", 3),
    ("2.9", 2),
    (" 4 ", 4),
    ("x", 0),
    ("", 0),
    ("-1", 0),
    (None, 0),
    (float("nan"), 0),
])
def test_parse_int(raw, expected):
    assert parse_int(raw) == expected


def test_parse_timestamp():
    assert parse_timestamp("2024-03-04 12:00:00") == datetime(2024, 3, 4, 12, 0)
    assert parse_timestamp("not a date") is None
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None


def test_parse_timestamp_converts_offsets():
    assert parse_timestamp("2024-03-04T12:00:00Z") == datetime(2024, 3, 4, 12, 0)
    assert parse_timestamp("2024-03-04T12:00:00Z", tz="America/New_York") == datetime(2024, 3, 4, 7, 0)


def test_make_order_id():
    assert make_order_id("2024-03-04 12:00:00", "Joe's Pizza") == "2024_03_04_12_00_00_Joe_s_Pizza"


def test_process_order_data():
    items = process_order_data([_row()])

    assert len(items) == 1
    item = items[0]
    assert item.item == "Pad Thai"
    assert item.category == "Noodles"
    assert item.store_name == "Thai Basil"
    assert item.unit_price == 14.5
    assert item.quantity == 2
    assert item.subtotal == 29.0
    assert item.created_at == datetime(2024, 3, 4, 12, 0)
    assert item.delivery_time == datetime(2024, 3, 4, 12, 35)
    assert item.delivery_address == "1 Main St"
    assert item.order_id == "2024_03_04_12_00_00_Thai_Basil"


def test_process_drops_rows_with_bad_timestamps():
    rows = [
        _row(ITEM="ok"),
        _row(ITEM="bad created", CREATED_AT="yesterday-ish"),
        _row(ITEM="bad delivery", DELIVERY_TIME=""),
        _row(ITEM="also ok"),
    ]
    items = process_order_data(rows)
    assert [i.item for i in items] == ["ok", "also ok"]


def test_process_coerces_bad_numbers():
    items = process_order_data([_row(UNIT_PRICE="n/a", QUANTITY="lots", SUBTOTAL="")])

    assert len(items) == 1
    assert items[0].unit_price == 0.0
    assert items[0].quantity == 0
    assert items[0].subtotal == 0.0


def test_process_missing_fields_default_to_empty():
    row = _row()
    del row["DELIVERY_ADDRESS"]
    del row["CATEGORY"]
    row["EXTRA"] = "ignored"
    items = process_order_data([row])

    assert items[0].delivery_address == ""
    assert items[0].category == ""


def test_process_is_idempotent():
    rows = [_row(), _row(ITEM="Spring Rolls", QUANTITY="1", SUBTOTAL="6.00")]
    assert process_order_data(rows) == process_order_data(rows)


def test_parse_csv():
    text = "\n".join([
        HEADER + ",EXTRA",
        "2024-03-04 12:00:00,2024-03-04 12:35:00,Pad Thai,Noodles,Thai Basil,14.50,2,29.00,,x",
        "",
        "2024-03-05 18:00:00,2024-03-05 18:20:00,Soup,Soups,Pho King,9,1,9,1 Main St,y",
    ])
    rows = parse_csv(io.StringIO(text))

    assert len(rows) == 2
    assert rows[0]["ITEM"] == "Pad Thai"
    assert rows[0]["DELIVERY_ADDRESS"] == ""
    assert rows[1]["QUANTITY"] == "1"
    assert len(process_order_data(rows)) == 2


def test_parse_csv_keeps_rows_with_extra_fields():
    text = "\n".join([
        "CREATED_AT,DELIVERY_TIME,ITEM,STORE_NAME,SUBTOTAL",
        "2024-01-01 09:00,2024-01-01 09:30,Bagel,B,3",
        "2024-01-01 10:00,2024-01-01 10:30,Taco,A,1,EXTRA,EXTRA2",
    ])
    rows = parse_csv(io.StringIO(text))

    assert len(rows) == 2
    assert rows[1] == {
        "CREATED_AT": "2024-01-01 10:00",
        "DELIVERY_TIME": "2024-01-01 10:30",
        "ITEM": "Taco",
        "STORE_NAME": "A",
        "SUBTOTAL": "1",
    }


def test_parse_csv_trailing_commas():
    text = "\n".join([
        "CREATED_AT,DELIVERY_TIME,ITEM,STORE_NAME,SUBTOTAL",
        "2024-01-01 09:00,2024-01-01 09:30,Bagel,B,3,",
        "2024-01-01 10:00,2024-01-01 10:30,Taco,A,1,",
    ])
    rows = parse_csv(io.StringIO(text))

    assert [r["CREATED_AT"] for r in rows] == ["2024-01-01 09:00", "2024-01-01 10:00"]
    assert [r["SUBTOTAL"] for r in rows] == ["3", "1"]


def test_parse_csv_pads_short_rows():
    text = "\n".join([
        "CREATED_AT,DELIVERY_TIME,ITEM,STORE_NAME,SUBTOTAL",
        "2024-01-01 09:00,2024-01-01 09:30,Bagel,B",
    ])
    rows = parse_csv(io.StringIO(text))
    assert rows[0]["SUBTOTAL"] == ""


def test_process_converts_offsets_to_timezone():
    rows = [
        _row(CREATED_AT="2024-03-04T12:00:00Z", DELIVERY_TIME="2024-03-04T12:30:00Z"),
        _row(CREATED_AT="2024-03-05T12:00:00Z", DELIVERY_TIME="2024-03-05T12:30:00Z"),
    ]
    items = process_order_data(rows, tz="America/New_York")

    assert [i.created_at for i in items] == [datetime(2024, 3, 4, 7, 0), datetime(2024, 3, 5, 7, 0)]
    assert items[0].delivery_time == datetime(2024, 3, 4, 7, 30)
    assert items[0].order_id == "2024_03_04T12_00_00Z_Thai_Basil"


def test_process_large_export():
    start = datetime(2024, 1, 1, 8, 0)
    rows = []
    for i in range(5000):
        created = start + timedelta(hours=i)
        rows.append(_row(
            CREATED_AT="garbage" if i % 10 == 9 else created.strftime("%Y-%m-%d %H:%M:%S"),
            DELIVERY_TIME=(created + timedelta(minutes=25)).strftime("%Y-%m-%d %H:%M:%S"),
            ITEM=f"item {i}",
            SUBTOTAL=f"{i % 7}.50",
        ))
    items = process_order_data(rows)

    assert len(items) == 4500
    assert items[0].item == "item 0"
    assert items[0].created_at == start
    assert items[-1].item == "item 4998"
    assert items[-1].created_at == start + timedelta(hours=4998)
    assert items[-1].delivery_time == start + timedelta(hours=4998, minutes=25)
    assert items[-1].subtotal == 0.5
    assert len({i.order_id for i in items}) == 4500


def test_parse_csv_missing_columns():
    with pytest.raises(CSVFormatError, match="STORE_NAME"):
        parse_csv(io.StringIO("CREATED_AT,ITEM\n2024-03-04,Taco\n"))


def test_parse_csv_empty_file():
    with pytest.raises(CSVFormatError):
        parse_csv(io.StringIO(""))
