"""Timestamp helpers shared by the store, the use cases and the publisher."""

from .datetime import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_naive_datetime,
    now_in_app_timezone,
    parse_utc_offset,
    to_wire_timestamp,
)

__all__ = [
    "ensure_app_naive_datetime",
    "ensure_app_timezone",
    "now_in_app_naive_datetime",
    "now_in_app_timezone",
    "parse_utc_offset",
    "to_wire_timestamp",
]
