from __future__ import annotations

import logging
import math
import re
import warnings
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from schemas import CSV_COLUMNS, LineItem

logger = logging.getLogger(__name__)

# Columns the grouping key is built from; everything else may be absent.
REQUIRED_COLUMNS = ["CREATED_AT", "STORE_NAME"]

_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_ORDER_ID_FILLER = re.compile(r"[^a-zA-Z0-9]")


class CSVFormatError(ValueError):
    """Raised when an uploaded file cannot be read as an order export."""


def parse_csv(source) -> List[Dict[str, str]]:
    """
    Read an order export into raw rows.

    Args:
        source: path or file-like object (e.g. a Streamlit upload)

    Returns:
        list of string-keyed rows, every value a string ("" for empty cells);
        cells beyond the header's width are dropped
    """
    try:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", pd.errors.ParserWarning)
            df = pd.read_csv(
                source,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                encoding="utf-8-sig",
                engine="python",
                index_col=False,
            )
    except pd.errors.EmptyDataError as exc:
        raise CSVFormatError("The file is empty.") from exc
    except (pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise CSVFormatError(f"Could not parse the file as CSV: {exc}") from exc

    for warning in caught:
        if issubclass(warning.category, pd.errors.ParserWarning):
            logger.warning("Ignoring CSV fields beyond the header: %s", warning.message)
        else:
            warnings.warn(warning.message, warning.category)

    df.columns = [str(col).strip() for col in df.columns]
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise CSVFormatError(
            "Missing required column(s): " + ", ".join(missing)
            + ". Please upload a consumer_order_details.csv export."
        )

    unknown = [col for col in df.columns if col not in CSV_COLUMNS]
    if unknown:
        logger.debug("Ignoring extra columns: %s", unknown)

    # short rows are padded with NaN
    df = df.fillna("")
    logger.info("Read %d rows from CSV", len(df))
    return df.to_dict(orient="records")


def parse_float(value: Any) -> float:
    """Leading-number float parse; 0.0 when nothing finite leads the text."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
    else:
        match = _FLOAT_PREFIX.match(str(value)) if value is not None else None
        if not match:
            return 0.0
        number = float(match.group(1))
    return number if math.isfinite(number) else 0.0


def parse_int(value: Any) -> int:
    """Leading-integer parse; 0 when unparseable or negative."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            return 0
        number = int(value)
    else:
        match = _INT_PREFIX.match(str(value)) if value is not None else None
        if not match:
            return 0
        number = int(match.group(1))
    return number if number > 0 else 0


def parse_timestamp(value: Any, tz: Optional[str] = None) -> Optional[datetime]:
    """
    Parse a timestamp into a naive local datetime.

    Offset-aware values are converted into ``tz`` (UTC when not given) before
    the offset is dropped; naive values are taken as local wall time.
    Returns None when the value is not a valid timestamp.
    """
    if value is None:
        return None
    ts = pd.to_datetime(value, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert(tz or "UTC").tz_localize(None)
    return ts.to_pydatetime()


def parse_timestamps(values: pd.Series, tz: Optional[str] = None) -> pd.Series:
    """
    Column version of parse_timestamp; invalid values become NaT.

    A column mixing naive values with different UTC offsets cannot be parsed
    in one pass and falls back to parsing value by value.
    """
    try:
        parsed = pd.to_datetime(values, errors="coerce", format="mixed")
    except (ValueError, TypeError):
        parsed = None

    if parsed is None or not pd.api.types.is_datetime64_any_dtype(parsed):
        logger.debug("Parsing %d timestamps one by one", len(values))
        return pd.to_datetime(values.map(lambda value: parse_timestamp(value, tz)))
    if isinstance(parsed.dtype, pd.DatetimeTZDtype):
        parsed = parsed.dt.tz_convert(tz or "UTC").dt.tz_localize(None)
    return parsed


def make_order_id(created_at_raw: str, store_name: str) -> str:
    return _ORDER_ID_FILLER.sub("_", f"{created_at_raw}_{store_name}")


def _text(row: Mapping[str, Any], key: str) -> str:
    value = row.get(key)
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value)


def process_order_data(rows: Iterable[Mapping[str, Any]], tz: Optional[str] = None) -> List[LineItem]:
    """
    Normalize raw rows into line items.

    Rows whose CREATED_AT or DELIVERY_TIME is not a valid timestamp are dropped.
    Unparseable prices and quantities become 0.
    """
    rows = list(rows)
    if not rows:
        return []

    created = parse_timestamps(pd.Series([row.get("CREATED_AT") for row in rows], dtype=object), tz)
    delivered = parse_timestamps(pd.Series([row.get("DELIVERY_TIME") for row in rows], dtype=object), tz)
    valid = (created.notna() & delivered.notna()).tolist()

    items: List[LineItem] = []
    for row, ok, created_at, delivery_time in zip(rows, valid, created, delivered):
        if not ok:
            continue
        store_name = _text(row, "STORE_NAME")
        items.append(
            LineItem(
                item=_text(row, "ITEM"),
                category=_text(row, "CATEGORY"),
                store_name=store_name,
                unit_price=parse_float(row.get("UNIT_PRICE")),
                quantity=parse_int(row.get("QUANTITY")),
                subtotal=parse_float(row.get("SUBTOTAL")),
                created_at=created_at.to_pydatetime(),
                delivery_time=delivery_time.to_pydatetime(),
                delivery_address=_text(row, "DELIVERY_ADDRESS"),
                order_id=make_order_id(_text(row, "CREATED_AT"), store_name),
            )
        )

    dropped = len(rows) - len(items)
    if dropped:
        logger.debug("Dropped %d row(s) with invalid timestamps", dropped)
    return items
