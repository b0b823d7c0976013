"""Calendar-month arithmetic shared by the invoice analytics."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union

import pandas as pd

__all__ = ["DateLike", "resolve_reference_date", "month_diff", "shift_months"]

DateLike = Union[pd.Timestamp, datetime, date, str]


def resolve_reference_date(reference_date: Optional[DateLike] = None) -> pd.Timestamp:
    """Return ``reference_date`` as a naive timestamp, defaulting to now."""

    if reference_date is None:
        return pd.Timestamp.now()
    moment = pd.Timestamp(reference_date)
    if moment.tzinfo is not None:
        moment = moment.tz_convert("UTC").tz_localize(None)
    return moment


def month_diff(later: pd.Timestamp | pd.Period, earlier: pd.Timestamp | pd.Period) -> int:
    """Number of calendar months from ``earlier`` to ``later`` (days ignored)."""

    return (later.year - earlier.year) * 12 + (later.month - earlier.month)


def shift_months(moment: pd.Timestamp, months: int) -> pd.Timestamp:
    """Shift by whole months keeping the time of day; the day is clamped to the month end."""

    return moment + pd.DateOffset(months=months)
