# -*- coding: utf-8 -*-
import logging
import os
from datetime import datetime

import pandas as pd
import plotly.express as px
import streamlit as st
from dotenv import load_dotenv

from analytics import calc_monthly, calculate_stats, group_orders
from csv_parser import CSVFormatError, parse_csv, process_order_data
from date_utils import ALL_YEARS, filter_by_year, get_available_years, year_label
from explorer import (
    DEFAULT_PAGE_SIZE,
    SORT_FIELDS,
    explore,
    paginate,
    to_csv,
    unique_categories,
    unique_stores,
)
from slides import build_slides

# .env load
load_dotenv()

LOG_LEVEL = os.getenv("WRAPPED_LOG_LEVEL", "INFO").upper()
TIMEZONE = os.getenv("WRAPPED_TIMEZONE") or None

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
for logger_name in ["urllib3", "watchdog", "asyncio"]:
    logging.getLogger(logger_name).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def _page_size():
    raw = os.getenv("WRAPPED_PAGE_SIZE", "")
    try:
        size = int(raw)
    except ValueError:
        if raw:
            logger.warning("Ignoring invalid WRAPPED_PAGE_SIZE=%r", raw)
        return DEFAULT_PAGE_SIZE
    return size if size > 0 else DEFAULT_PAGE_SIZE


def load_upload(uploaded_file):
    """
    Read and normalize an uploaded order export.

    Returns:
        list of line items, or None when the file could not be used
    """
    try:
        rows = parse_csv(uploaded_file)
    except CSVFormatError as exc:
        st.error(f"❌ {exc}")
        return None
    except Exception:
        logger.exception("Unexpected error reading %s", getattr(uploaded_file, "name", "upload"))
        st.error("Error processing file. Please make sure it is a valid consumer_order_details.csv file.")
        return None

    items = process_order_data(rows, tz=TIMEZONE)
    skipped = len(rows) - len(items)
    if skipped:
        st.info(f"ℹ️ Skipped {skipped} row(s) with unreadable dates.")
    return items


def upload_key(uploaded_file):
    """Identity of an upload; re-uploading an edited file under the same name changes it."""
    file_id = getattr(uploaded_file, "file_id", None)
    return file_id or (uploaded_file.name, uploaded_file.size)


def current_screen(items, year):
    # [] means a file was read but no row survived; that is the year screen's error
    if items is None:
        return "welcome"
    if year is None:
        return "year"
    return "deck"


def reset_deck():
    st.session_state.slide = 0


def render_year_selection(items):
    st.subheader("📅 PICK YOUR YEAR")
    years = get_available_years(items)
    if not years:
        st.error("No valid dates found in the data")
        return

    options = years + [ALL_YEARS]
    # most recent year is pre-selected
    choice = st.radio(
        "Which year's stats do you want to see?",
        options,
        index=0,
        format_func=year_label,
        horizontal=True,
    )
    if st.button("LET'S GO →", type="primary"):
        st.session_state.year = choice
        reset_deck()
        st.rerun()


def render_deck(stats, year):
    deck = build_slides(stats, year)
    current = min(st.session_state.get("slide", 0), len(deck) - 1)
    slide = deck[current]

    with st.container(border=True):
        st.markdown(f"## {slide.title}")
        if slide.headline:
            st.markdown(f"# {slide.headline}")
        for line in slide.lines:
            st.markdown(f"- {line}")

    col_prev, col_counter, col_next = st.columns([2, 6, 2])
    with col_prev:
        if st.button("← PREV", disabled=current == 0, use_container_width=True):
            st.session_state.slide = current - 1
            st.rerun()
    with col_counter:
        st.markdown(f"<div style='text-align:center'>{current + 1} / {len(deck)}</div>", unsafe_allow_html=True)
    with col_next:
        if st.button("NEXT →", disabled=current == len(deck) - 1, use_container_width=True):
            st.session_state.slide = current + 1
            st.rerun()


def render_charts(stats, items):
    col_chart1, col_chart2 = st.columns(2)

    with col_chart1:
        st.subheader("📈 Orders per month")
        month_df = pd.DataFrame([m.model_dump() for m in stats.month_stats])
        fig_bar = px.bar(month_df, x="month", y="count", color_discrete_sequence=["#FFD1DC"])
        fig_bar.update_layout(margin=dict(t=10, b=10, l=10, r=10), xaxis_title="Month", yaxis_title="Orders")
        st.plotly_chart(fig_bar, use_container_width=True)

    with col_chart2:
        st.subheader("💵 Spend per month")
        monthly = calc_monthly(group_orders(items)).reset_index()
        monthly.columns = ["month", "total"]
        fig_line = px.line(monthly, x="month", y="total", markers=True, color_discrete_sequence=["#A7C7E7"])
        fig_line.update_layout(margin=dict(t=10, b=10, l=10, r=10), xaxis_title="Month", yaxis_title="Spent")
        st.plotly_chart(fig_line, use_container_width=True)


def render_explorer(items):
    st.subheader("📋 DATA EXPLORER")

    col_search, col_store, col_cat = st.columns([4, 3, 3])
    with col_search:
        search = st.text_input("Search", placeholder="Search items, stores, categories...")
    with col_store:
        store = st.selectbox("Store", [""] + unique_stores(items), format_func=lambda s: s or "All stores")
    with col_cat:
        category = st.selectbox("Category", [""] + unique_categories(items), format_func=lambda c: c or "All categories")

    col_sort1, col_sort2, col_page = st.columns([3, 3, 4])
    with col_sort1:
        sort_field = st.selectbox("Sort by", SORT_FIELDS)
    with col_sort2:
        sort_order = st.selectbox("Order", ["Descending", "Ascending"])

    rows = explore(items, search, store, category, sort_field, descending=(sort_order == "Descending"))
    per_page = _page_size()
    with col_page:
        page_number = st.number_input("Page", min_value=1, value=1, step=1)
    page = paginate(rows, int(page_number), per_page)

    st.caption(f"Showing {len(rows)} of {len(items)} items, page {page.page} of {page.page_count}")

    display_df = pd.DataFrame([item.model_dump(exclude={"order_id"}) for item in page.rows])
    if not display_df.empty:
        display_df["subtotal"] = display_df["subtotal"].apply(lambda x: f"${x:,.2f}")
        display_df["unit_price"] = display_df["unit_price"].apply(lambda x: f"${x:,.2f}")
    st.dataframe(display_df, use_container_width=True, height=400)

    st.download_button(
        label="📥 CSV DOWNLOAD",
        data=to_csv(rows),
        file_name=f"orders_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv",
        mime="text/csv",
        use_container_width=True,
    )


def main():
    st.set_page_config(
        page_title="Food Wrapped",
        page_icon="🍔",
        layout="wide",
    )

    st.title("🍔 YOUR YEAR IN FOOD")

    # session_state init
    if "line_items" not in st.session_state:
        st.session_state.line_items = None
    if "year" not in st.session_state:
        st.session_state.year = None

    with st.sidebar:
        st.header("📂 Upload")
        uploaded = st.file_uploader("consumer_order_details.csv", type=["csv"])
        if uploaded is not None and st.session_state.get("upload_key") != upload_key(uploaded):
            with st.spinner("Crunching your orders..."):
                st.session_state.line_items = load_upload(uploaded)
            st.session_state.upload_key = upload_key(uploaded)
            st.session_state.year = None

        if st.session_state.year is not None:
            st.divider()
            if st.button("↺ CHANGE YEAR", use_container_width=True):
                st.session_state.year = None
                st.rerun()

    items = st.session_state.line_items
    screen = current_screen(items, st.session_state.year)
    if screen == "welcome":
        st.info("📝 Drop your order export in the sidebar to get started!")
        st.markdown("""
        ### 💡 How it works
        1. Export your order history as **consumer_order_details.csv**
        2. **📂 Upload** it in the sidebar
        3. **📅 Pick a year** (or all of them)
        4. Flip through your recap cards and dig into the data
        """)
        return

    if screen == "year":
        render_year_selection(items)
        return

    year = st.session_state.year
    selected = filter_by_year(items, year)
    stats = calculate_stats(selected)
    if stats is None:
        st.warning(f"No orders found for {year_label(year)}.")
        return

    tab1, tab2, tab3 = st.tabs(["🎁 Wrapped", "📊 Charts", "📋 Data"])
    with tab1:
        render_deck(stats, year)
    with tab2:
        render_charts(stats, selected)
    with tab3:
        render_explorer(selected)


if __name__ == "__main__":
    main()
