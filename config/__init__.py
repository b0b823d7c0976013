"""Application configuration utilities."""

from .settings import BillingSettings, get_settings

__all__ = [
    "BillingSettings",
    "get_settings",
]
