"""Notification fan-out and delivery core for the HR portal."""
