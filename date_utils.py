from __future__ import annotations

from typing import List, Sequence

import pandas as pd

from schemas import LineItem

# Year value meaning "every year, no filtering".
ALL_YEARS = 0


def _has_valid_date(item: LineItem) -> bool:
    return item.created_at is not None and not pd.isna(item.created_at)


def get_available_years(items: Sequence[LineItem]) -> List[int]:
    """Distinct order years, most recent first."""
    years = {item.created_at.year for item in items if _has_valid_date(item)}
    return sorted(years, reverse=True)


def filter_by_year(items: Sequence[LineItem], year: int) -> Sequence[LineItem]:
    """Keep items created in ``year``; ALL_YEARS returns the input as is."""
    if year == ALL_YEARS:
        return items
    return [item for item in items if _has_valid_date(item) and item.created_at.year == year]


def year_label(year: int) -> str:
    return "ALL YEARS" if year == ALL_YEARS else str(year)
