"""Recurring (subscription-like) card charge detection."""

from __future__ import annotations

from typing import Final, Optional

import numpy as np

from analytics.installments import base_description, detect_installment
from analytics.periods import DateLike, month_diff, resolve_reference_date
from analytics.signs import card_expense_mask
from core.data_loader import TransactionsLike, prepare_transactions
from core.models import RecurringTransaction

__all__ = [
    "DEFAULT_AMOUNT_TOLERANCE",
    "DEFAULT_MIN_MONTHS",
    "DEFAULT_ACTIVE_MONTHS",
    "amounts_similar",
    "detect_recurring_patterns",
]

DEFAULT_AMOUNT_TOLERANCE: Final[float] = 0.05
DEFAULT_MIN_MONTHS: Final[int] = 3
DEFAULT_ACTIVE_MONTHS: Final[int] = 2


def amounts_similar(first: float, second: float, tolerance: float = DEFAULT_AMOUNT_TOLERANCE) -> bool:
    """Return ``True`` when the amounts differ by at most ``tolerance`` of their mean magnitude."""

    diff = abs(first - second)
    average = (abs(first) + abs(second)) / 2
    return diff <= average * tolerance


def detect_recurring_patterns(
    transactions: TransactionsLike,
    reference_date: Optional[DateLike] = None,
    *,
    amount_tolerance: float = DEFAULT_AMOUNT_TOLERANCE,
    min_months: int = DEFAULT_MIN_MONTHS,
    active_months: int = DEFAULT_ACTIVE_MONTHS,
) -> list[RecurringTransaction]:
    """Identify card charges that repeat across calendar months.

    Parameters
    ----------
    transactions:
        Provider transactions; only CREDIT expenses without an installment
        marker are considered.
    reference_date:
        "Now" for the activity check. Defaults to the current instant.
    amount_tolerance:
        Relative tolerance between each monthly amount and the mean.
    min_months:
        Minimum number of distinct months (not necessarily consecutive).
    active_months:
        A pattern stays active while its last month is at most this many
        calendar months before ``reference_date``.

    Returns
    -------
    list[RecurringTransaction]
        Patterns sorted by mean amount, largest first.
    """

    df = prepare_transactions(transactions)
    now = resolve_reference_date(reference_date)

    spend = df[card_expense_mask(df)].copy()
    if spend.empty:
        return []

    has_installment = spend["description"].map(lambda text: detect_installment(text).has_installment)
    spend = spend[~has_installment.astype(bool)]
    if spend.empty:
        return []

    spend["base_description"] = spend["description"].map(base_description)
    spend["month_key"] = spend["date"].dt.strftime("%Y-%m")

    # One observation per description and month, first seen wins
    monthly = spend.drop_duplicates(subset=["base_description", "month_key"], keep="first")

    current_period = now.to_period("M")
    recurring: list[RecurringTransaction] = []

    for description, group_df in monthly.groupby("base_description", sort=False):
        if len(group_df) < min_months:
            continue

        amounts = group_df["amount"].to_numpy(dtype=float)
        average = float(np.mean(amounts))
        if not all(amounts_similar(float(amount), average, amount_tolerance) for amount in amounts):
            continue

        last_month = str(group_df["month_key"].max())
        last_period = group_df["date"].max().to_period("M")
        months_since = month_diff(current_period, last_period)

        recurring.append(
            {
                "description": str(description),
                "amount": average,
                "frequency": int(len(group_df)),
                "is_active": months_since <= active_months,
                "last_occurrence": last_month,
            }
        )

    recurring.sort(key=lambda row: row["amount"], reverse=True)
    return recurring
