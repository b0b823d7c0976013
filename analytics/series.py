"""Consolidation of installment observations into purchase series."""

from __future__ import annotations

from typing import Final, Optional

import pandas as pd

from analytics.installments import base_description, detect_installment
from analytics.periods import shift_months
from analytics.signs import card_expense_mask
from core.data_loader import TransactionsLike, prepare_transactions
from core.logging import get_logger
from core.models import InstallmentInfo, InstallmentSeries
from core.tracing import TraceSink, Tracer

__all__ = ["DEFAULT_SERIES_MATCH_HOURS", "SeriesKey", "consolidate_installment_series"]

DEFAULT_SERIES_MATCH_HOURS: Final[float] = 24.0

SeriesKey = tuple[str, str, int]

logger = get_logger(__name__)


def consolidate_installment_series(
    transactions: TransactionsLike,
    *,
    match_hours: float = DEFAULT_SERIES_MATCH_HOURS,
    trace: Optional[TraceSink] = None,
) -> list[InstallmentSeries]:
    """Group unfinished installment charges into distinct purchase series.

    Transactions are visited in input order. Each one is keyed by base
    description, per-installment amount (2 decimals) and installment count.
    A ``1/N`` charge always opens a new series, since two purchases of the
    same item on the same terms can run side by side. A later parcel joins
    an existing series only when the inferred first-parcel dates agree within
    ``match_hours`` and it moves that series forward; otherwise it opens a new
    series so purchases first seen mid-way are not lost.

    Two different purchases sharing description, amount, term and a
    first-parcel date inside the window are merged into one series.
    """

    tracer = Tracer(logger, trace)
    tolerance = pd.Timedelta(hours=match_hours)

    df = prepare_transactions(transactions)
    expenses = df[card_expense_mask(df)]

    series_by_key: dict[SeriesKey, list[InstallmentSeries]] = {}

    for row in expenses.itertuples(index=False):
        info = detect_installment(row.description)
        if not info.has_installment or info.remaining <= 0:
            continue

        base = base_description(row.description)
        amount = float(row.amount)
        first_parcel_date = shift_months(row.date, -(info.current - 1))
        key: SeriesKey = (base, f"{amount:.2f}", info.total)
        candidates = series_by_key.setdefault(key, [])

        existing = None
        if info.current > 1:
            existing = _find_continuation(candidates, info, first_parcel_date, tolerance)

        if existing is None:
            series = InstallmentSeries(
                series_id=f"{first_parcel_date.strftime('%Y-%m-%d')}|{info.total}p",
                base_description=base,
                amount=amount,
                total=info.total,
                first_parcel_date=first_parcel_date,
                current=info.current,
                transaction_id=_transaction_id(row.id),
                transaction_date=row.date,
            )
            candidates.append(series)
            tracer.emit(
                "series.created",
                description=base,
                amount=amount,
                parcel=f"{info.current}/{info.total}",
                first_parcel=first_parcel_date.strftime("%Y-%m-%d %H:%M"),
                series_id=series.series_id,
            )
        else:
            previous = existing.current
            existing.current = info.current
            existing.amount = amount
            existing.transaction_id = _transaction_id(row.id)
            existing.transaction_date = row.date
            tracer.emit(
                "series.updated",
                description=base,
                parcel_from=f"{previous}/{existing.total}",
                parcel_to=f"{info.current}/{info.total}",
            )

    consolidated = [series for candidates in series_by_key.values() for series in candidates]
    tracer.emit("series.count", total=len(consolidated))
    return consolidated


def _find_continuation(
    candidates: list[InstallmentSeries],
    info: InstallmentInfo,
    first_parcel_date: pd.Timestamp,
    tolerance: pd.Timedelta,
) -> Optional[InstallmentSeries]:
    for series in candidates:
        same_start = abs(series.first_parcel_date - first_parcel_date) < tolerance
        # 2/12 arriving after 5/12 belongs to a different purchase
        moves_forward = info.current > series.current
        if same_start and series.total == info.total and moves_forward:
            return series
    return None


def _transaction_id(value: object) -> Optional[str]:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    return str(value)
