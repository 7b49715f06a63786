"""Time-entry reports: paginated listing, trend series and CSV exports."""

from .cursor import decode_cursor, encode_cursor
from .export import export_date_range_csv, export_time_entries_csv
from .time_entries import fetch_time_entries
from .trend import TrendService

__all__ = [
    "decode_cursor",
    "encode_cursor",
    "export_date_range_csv",
    "export_time_entries_csv",
    "fetch_time_entries",
    "TrendService",
]
