"""Errors raised by the notification core."""


class NotificationError(Exception):
    """Base class for notification core errors."""


class NotificationValidationError(NotificationError, ValueError):
    """Input rejected before anything is written (empty message, bad target or ids)."""


class AuthenticationRequiredError(NotificationError):
    """The gateway was called without a verified identity."""


class TransientStoreError(NotificationError):
    """The store could not be reached; the operation is safe to retry."""


__all__ = [
    "AuthenticationRequiredError",
    "NotificationError",
    "NotificationValidationError",
    "TransientStoreError",
]
