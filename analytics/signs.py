"""Account-aware interpretation of transaction amount signs.

Provider amounts are already contextual and are never inverted:

* ``CREDIT``: positive is an expense on the card, negative is a payment or
  refund.
* ``CHECKING``/``SAVINGS``: positive is money in, negative is money out.

Every component asks this module what a sign means instead of comparing
amounts against zero on its own.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import pandas as pd

__all__ = [
    "AmountKind",
    "classify_amount",
    "credit_mask",
    "card_expense_mask",
    "is_card_credit",
    "is_card_expense",
]

CREDIT = "CREDIT"


class AmountKind(str, Enum):
    EXPENSE = "expense"
    PAYMENT_OR_REFUND = "payment_or_refund"
    INFLOW = "inflow"
    OUTFLOW = "outflow"


def classify_amount(amount: float, account_type: Optional[str]) -> Optional[AmountKind]:
    """Return what ``amount`` means for ``account_type``.

    Zero or missing amounts and unknown account types yield ``None``.
    """

    if amount is None or pd.isna(amount) or amount == 0:
        return None
    if account_type == CREDIT:
        return AmountKind.EXPENSE if amount > 0 else AmountKind.PAYMENT_OR_REFUND
    if account_type in ("CHECKING", "SAVINGS"):
        return AmountKind.INFLOW if amount > 0 else AmountKind.OUTFLOW
    return None


def is_card_expense(amount: float, account_type: Optional[str]) -> bool:
    return classify_amount(amount, account_type) is AmountKind.EXPENSE


def is_card_credit(amount: float, account_type: Optional[str]) -> bool:
    """``True`` for card payments and refunds (balance-reducing entries)."""

    return classify_amount(amount, account_type) is AmountKind.PAYMENT_OR_REFUND


def credit_mask(transactions: pd.DataFrame) -> pd.Series:
    """Rows of dated CREDIT transactions with a usable amount."""

    return (
        (transactions["account_type"] == CREDIT)
        & transactions["date"].notna()
        & transactions["amount"].notna()
    )


def card_expense_mask(transactions: pd.DataFrame) -> pd.Series:
    """Rows that :func:`classify_amount` reports as card expenses."""

    flags = [
        is_card_expense(amount, account_type)
        for amount, account_type in zip(transactions["amount"], transactions["account_type"])
    ]
    is_expense = pd.Series(flags, index=transactions.index, dtype=bool)
    return credit_mask(transactions) & is_expense
