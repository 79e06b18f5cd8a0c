"""Aggregate application use cases."""

from .notifications import create_notification, fan_out_notification

__all__ = [
    "create_notification",
    "fan_out_notification",
]
