from analytics import calculate_stats
from csv_parser import process_order_data
from date_utils import ALL_YEARS, filter_by_year, get_available_years
from slides import build_slides

sample_rows = [
    {"CREATED_AT": "2025-03-14 19:02:11", "DELIVERY_TIME": "2025-03-14 19:40:05", "ITEM": "Pad Thai",
     "CATEGORY": "Noodles", "STORE_NAME": "Thai Basil", "UNIT_PRICE": "14.50", "QUANTITY": "1", "SUBTOTAL": "14.50",
     "DELIVERY_ADDRESS": "1 Main St"},
    {"CREATED_AT": "2025-03-14 19:02:11", "DELIVERY_TIME": "2025-03-14 19:40:05", "ITEM": "Spring Rolls",
     "CATEGORY": "Appetizers", "STORE_NAME": "Thai Basil", "UNIT_PRICE": "6.00", "QUANTITY": "2", "SUBTOTAL": "12.00",
     "DELIVERY_ADDRESS": "1 Main St"},
    {"CREATED_AT": "2025-03-15 23:15:40", "DELIVERY_TIME": "2025-03-15 23:51:02", "ITEM": "Pepperoni Pizza",
     "CATEGORY": "Pizza", "STORE_NAME": "Slice House", "UNIT_PRICE": "18.00", "QUANTITY": "1", "SUBTOTAL": "18.00",
     "DELIVERY_ADDRESS": "1 Main St"},
    {"CREATED_AT": "2024-12-31 12:00:00", "DELIVERY_TIME": "2024-12-31 12:25:00", "ITEM": "Burrito",
     "CATEGORY": "Mexican", "STORE_NAME": "Taqueria", "UNIT_PRICE": "11.25", "QUANTITY": "1", "SUBTOTAL": "11.25",
     "DELIVERY_ADDRESS": "1 Main St"},
    {"CREATED_AT": "not a date", "DELIVERY_TIME": "2025-01-01 10:00:00", "ITEM": "Ghost",
     "CATEGORY": "?", "STORE_NAME": "Nowhere", "UNIT_PRICE": "x", "QUANTITY": "x", "SUBTOTAL": "x",
     "DELIVERY_ADDRESS": ""},
]

items = process_order_data(sample_rows)
print("line items:", len(items))
print("years:", get_available_years(items))

for year in [2025, ALL_YEARS]:
    stats = calculate_stats(filter_by_year(items, year))
    print()
    print("year:", year or "all")
    print("total spent:", round(stats.total_spent, 2))
    print("orders:", stats.total_orders)
    print("top store:", stats.most_frequent_store.name)
    for slide in build_slides(stats, year):
        print(f"  [{slide.title}] {slide.headline}")
