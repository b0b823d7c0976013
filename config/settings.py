"""Centralised configuration handling for invoicecast."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from analytics.forecasting import DEFAULT_PROJECTION_MONTHS
from analytics.invoice_cycle import DEFAULT_PAYMENT_KEYWORDS, DEFAULT_PAYMENT_MIN_AMOUNT
from analytics.recurring import DEFAULT_ACTIVE_MONTHS, DEFAULT_AMOUNT_TOLERANCE, DEFAULT_MIN_MONTHS
from analytics.series import DEFAULT_SERIES_MATCH_HOURS
from core.exceptions import ConfigurationError


class BillingSettings(BaseSettings):
    """Heuristic thresholds and logging options sourced from ``BILLING_*`` env vars."""

    payment_min_amount: float = DEFAULT_PAYMENT_MIN_AMOUNT
    payment_keywords: tuple[str, ...] = DEFAULT_PAYMENT_KEYWORDS
    recurring_amount_tolerance: float = DEFAULT_AMOUNT_TOLERANCE
    recurring_min_months: int = DEFAULT_MIN_MONTHS
    recurring_active_months: int = DEFAULT_ACTIVE_MONTHS
    series_match_hours: float = DEFAULT_SERIES_MATCH_HOURS
    projection_months: int = DEFAULT_PROJECTION_MONTHS
    log_level: str = "INFO"
    log_format: Literal["standard", "json"] = "standard"

    model_config = SettingsConfigDict(env_prefix="BILLING_", extra="ignore")

    @field_validator("payment_keywords")
    @classmethod
    def _lowercase_keywords(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(keyword.strip().lower() for keyword in value if keyword.strip())

    @field_validator("payment_min_amount", "recurring_amount_tolerance", "series_match_hours")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must be non-negative")
        return value

    @property
    def payment_kwargs(self) -> dict[str, object]:
        return {
            "payment_min_amount": self.payment_min_amount,
            "payment_keywords": self.payment_keywords,
        }

    @property
    def recurring_kwargs(self) -> dict[str, object]:
        return {
            "amount_tolerance": self.recurring_amount_tolerance,
            "min_months": self.recurring_min_months,
            "active_months": self.recurring_active_months,
        }


@lru_cache
def get_settings() -> BillingSettings:
    """Load and cache application settings."""

    try:
        return BillingSettings()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid BILLING_* configuration: {exc}") from exc
