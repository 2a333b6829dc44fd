"""Outbound services for Church Admin."""

from churchadmin.services.notifications import EmailNotifier, get_notifier

__all__ = [
    "EmailNotifier",
    "get_notifier",
]
