from .orders import (
    CSV_COLUMNS,
    export_orders_csv,
    export_orders_json,
    orders_to_csv_text,
    orders_to_json,
    orders_to_rows,
    write_orders_csv,
)
from .overlay import draw_page_overlay
