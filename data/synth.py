"""Synthetic open-banking ledger generator for the invoice projector.

Produces provider-shaped transaction records (camelCase keys, ISO dates)
for a Brazilian credit card plus a checking account: monthly
subscriptions, purchases split into ``k/N`` installments, one-off spend,
occasional refunds and a statement payment every month.
"""

from __future__ import annotations

import calendar
import itertools
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence, Tuple, TypeVar

import numpy as np
import pandas as pd

T = TypeVar("T")


FIELDS: Tuple[str, ...] = (
    "id",
    "description",
    "amount",
    "date",
    "category",
    "currencyCode",
    "status",
    "accountType",
    "accountId",
)

CARD_ACCOUNT_ID = "acc-credit-0001"
CHECKING_ACCOUNT_ID = "acc-checking-0001"
PAYMENT_DESCRIPTION = "PAGAMENTO RECEBIDO"


@dataclass(frozen=True)
class InstallmentPlan:
    """A purchase paid over ``parcels`` monthly charges."""

    description: str
    price: float
    parcels: int
    category: str

    @property
    def parcel_amount(self) -> float:
        return round(self.price / self.parcels, 2)


SUBSCRIPTIONS: Sequence[Tuple[str, float, str]] = (
    ("NETFLIX.COM", 55.90, "subscriptions"),
    ("SPOTIFY BRASIL", 21.90, "subscriptions"),
    ("SMARTFIT MENSALIDADE", 119.90, "health"),
)

INSTALLMENT_PLANS: Sequence[InstallmentPlan] = (
    InstallmentPlan("MAGAZINE LUIZA", 2399.90, 10, "electronics"),
    InstallmentPlan("AMAZON MARKETPLACE", 899.40, 6, "shopping"),
    InstallmentPlan("CASAS BAHIA", 1498.80, 12, "home"),
    InstallmentPlan("DECATHLON", 359.70, 3, "sports"),
)

ONE_OFF_MERCHANTS: Sequence[Tuple[str, Tuple[float, float], str]] = (
    ("IFOOD *RESTAURANTE", (25.0, 95.0), "food"),
    ("UBER *TRIP", (12.0, 65.0), "transport"),
    ("PAO DE ACUCAR", (40.0, 380.0), "groceries"),
    ("POSTO IPIRANGA", (80.0, 260.0), "transport"),
    ("DROGASIL", (18.0, 140.0), "health"),
)


def generate_card_ledger(
    months: int = 8,
    end_date: Optional[date | datetime | str] = None,
    *,
    payment_day: int = 10,
    refund_probability: float = 0.03,
    include_checking: bool = True,
    seed: Optional[int] = None,
) -> pd.DataFrame:
    """Generate ``months`` calendar months of ledger ending at ``end_date``.

    Installment plans start at staggered months so that some series finish
    inside the window and others are still running at ``end_date``. Every
    month after the first gets a statement payment on ``payment_day`` that
    settles the card charges accumulated since the previous payment.
    """

    if months <= 0:
        raise ValueError("months must be a positive integer")

    rng = np.random.default_rng(seed)
    end = _normalize_date(end_date) if end_date is not None else date.today()
    first_month = _add_months(end.replace(day=1), -(months - 1))
    month_starts = [_add_months(first_month, offset) for offset in range(months)]

    counter = itertools.count(1)
    card: List[dict] = []
    checking: List[dict] = []

    def append(target: List[dict], txn_date: date, description: str, amount: float, category: str, account_type: str) -> None:
        if txn_date < first_month or txn_date > end:
            return
        target.append(
            {
                "id": f"txn_{next(counter):06d}",
                "description": description,
                "amount": round(amount, 2),
                "date": txn_date.isoformat(),
                "category": category,
                "currencyCode": "BRL",
                "status": "POSTED",
                "accountType": account_type,
                "accountId": CARD_ACCOUNT_ID if account_type == "CREDIT" else CHECKING_ACCOUNT_ID,
            }
        )

    for anchor in month_starts:
        year, month = anchor.year, anchor.month

        for description, base_amount, category in SUBSCRIPTIONS:
            day = 8 + int(rng.integers(-2, 3))
            drift = base_amount * rng.normal(0, 0.01)
            append(card, _clamp_day(year, month, day), description, base_amount + drift, category, "CREDIT")

        for _ in range(int(rng.integers(4, 10))):
            description, bounds, category = _rng_choice(ONE_OFF_MERCHANTS, rng)
            day = int(rng.integers(1, 29))
            append(card, _clamp_day(year, month, day), description, rng.uniform(*bounds), category, "CREDIT")

        if include_checking:
            append(checking, _clamp_day(year, month, 5), "SALARIO EMPRESA LTDA", 5200.0, "income", "CHECKING")
            append(checking, _clamp_day(year, month, 12), "PIX ENVIADO ALUGUEL", -1850.0, "housing", "CHECKING")

    for index, plan in enumerate(INSTALLMENT_PLANS):
        start_offset = min(index * 2, months - 1)
        purchase_day = int(rng.integers(1, 29))
        start = month_starts[start_offset].replace(day=purchase_day)
        for parcel in range(1, plan.parcels + 1):
            charge_date = _add_months(start, parcel - 1)
            append(
                card,
                charge_date,
                f"{plan.description} {parcel}/{plan.parcels}",
                plan.parcel_amount,
                plan.category,
                "CREDIT",
            )

    _inject_refunds(card, rng, refund_probability, end)
    _inject_statement_payments(card, month_starts[1:], payment_day, end, counter)

    df = pd.DataFrame.from_records(card + checking, columns=FIELDS)
    df.sort_values("date", inplace=True, kind="stable")
    df.reset_index(drop=True, inplace=True)
    return df


def _inject_refunds(records: List[dict], rng: np.random.Generator, probability: float, end: date) -> None:
    refunds: List[dict] = []
    for record in records:
        if record["amount"] > 0 and rng.random() < probability:
            refund_date = date.fromisoformat(record["date"]) + timedelta(days=int(rng.integers(1, 6)))
            if refund_date > end:
                continue
            refund = dict(record)
            refund["id"] = f"{record['id']}_est"
            refund["description"] = f"ESTORNO {record['description']}"
            refund["amount"] = -round(record["amount"] * float(rng.uniform(0.2, 1.0)), 2)
            refund["date"] = refund_date.isoformat()
            refunds.append(refund)
    records.extend(refunds)


def _inject_statement_payments(
    records: List[dict],
    payment_months: Sequence[date],
    payment_day: int,
    end: date,
    counter: "itertools.count[int]",
) -> None:
    previous: Optional[date] = None
    for anchor in payment_months:
        payment_date = _clamp_day(anchor.year, anchor.month, payment_day)
        if payment_date > end:
            break
        # Same-day charges sort before the payment and belong to the settled cycle
        owed = sum(
            record["amount"]
            for record in records
            if (previous is None or date.fromisoformat(record["date"]) > previous)
            and date.fromisoformat(record["date"]) <= payment_date
        )
        if owed > 0:
            records.append(
                {
                    "id": f"txn_{next(counter):06d}",
                    "description": PAYMENT_DESCRIPTION,
                    "amount": -round(owed, 2),
                    "date": payment_date.isoformat(),
                    "category": "payment",
                    "currencyCode": "BRL",
                    "status": "POSTED",
                    "accountType": "CREDIT",
                    "accountId": CARD_ACCOUNT_ID,
                }
            )
        previous = payment_date


def _normalize_date(value: date | datetime | str) -> date:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value)
        return parsed.date()
    raise TypeError(f"Unsupported date value: {value!r}")


def _add_months(anchor: date, months: int) -> date:
    month = anchor.month - 1 + months
    year = anchor.year + month // 12
    month = month % 12 + 1
    day = min(anchor.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _clamp_day(year: int, month: int, day: int) -> date:
    _, max_day = calendar.monthrange(year, month)
    return date(year, month, max(1, min(day, max_day)))


def _rng_choice(options: Sequence[T], rng: np.random.Generator) -> T:
    if not options:
        raise ValueError("Cannot choose from an empty sequence")
    idx = int(rng.integers(0, len(options)))
    return options[idx]
