"""Monthly invoice projection from installment series and recurring charges."""

from __future__ import annotations

from typing import Final, Iterable, Optional, Sequence

import pandas as pd

from analytics.installments import base_description, detect_installment
from analytics.invoice_cycle import (
    DEFAULT_PAYMENT_KEYWORDS,
    DEFAULT_PAYMENT_MIN_AMOUNT,
    reconstruct_invoice_cycle,
)
from analytics.periods import DateLike, month_diff, resolve_reference_date
from analytics.recurring import (
    DEFAULT_ACTIVE_MONTHS,
    DEFAULT_AMOUNT_TOLERANCE,
    DEFAULT_MIN_MONTHS,
    detect_recurring_patterns,
)
from analytics.series import DEFAULT_SERIES_MATCH_HOURS, consolidate_installment_series
from analytics.signs import card_expense_mask
from core.data_loader import TransactionsLike, prepare_transactions
from core.formatting import format_month_label, month_key
from core.models import (
    InstallmentProjection,
    InstallmentSeries,
    InvoiceCycle,
    MonthlyProjection,
    MonthlyProjections,
    RecurringTransaction,
)
from core.tracing import TraceSink

__all__ = [
    "DEFAULT_PROJECTION_MONTHS",
    "build_current_month_projection",
    "build_monthly_projections",
    "calculate_monthly_projections",
    "project_future_invoices",
]

DEFAULT_PROJECTION_MONTHS: Final[int] = 12


def build_monthly_projections(
    series: Sequence[InstallmentSeries],
    active_recurring: Sequence[RecurringTransaction],
    reference_date: pd.Timestamp,
    months: int = DEFAULT_PROJECTION_MONTHS,
) -> list[MonthlyProjection]:
    """Project ``months`` invoices starting at the month of ``reference_date``.

    Index 0 is the reference month itself. Its authoritative total comes from
    the open invoice cycle, so callers interested in the future only should
    drop it.
    """

    start = reference_date.to_period("M")
    projections: list[MonthlyProjection] = []

    for offset in range(months):
        target = start + offset

        installments: list[InstallmentProjection] = []
        for entry in series:
            projected = _project_parcel(entry, target)
            if projected is not None:
                installments.append(projected)

        # Subscriptions are assumed to continue at their mean amount
        recurring = [pattern.copy() for pattern in active_recurring]

        projections.append(_monthly_projection(target, installments, recurring))

    return projections


def project_future_invoices(
    transactions: TransactionsLike,
    months: int = DEFAULT_PROJECTION_MONTHS,
    reference_date: Optional[DateLike] = None,
    *,
    amount_tolerance: float = DEFAULT_AMOUNT_TOLERANCE,
    min_months: int = DEFAULT_MIN_MONTHS,
    active_months: int = DEFAULT_ACTIVE_MONTHS,
    series_match_hours: float = DEFAULT_SERIES_MATCH_HOURS,
    trace: Optional[TraceSink] = None,
) -> list[MonthlyProjection]:
    """Project the next ``months`` invoices from the full transaction history.

    The whole history is needed: purchases split into installments many
    months ago may still be running.
    """

    df = prepare_transactions(transactions)
    now = resolve_reference_date(reference_date)

    recurring = detect_recurring_patterns(
        df,
        now,
        amount_tolerance=amount_tolerance,
        min_months=min_months,
        active_months=active_months,
    )
    series = consolidate_installment_series(df, match_hours=series_match_hours, trace=trace)
    return build_monthly_projections(series, _active(recurring), now, months)


def build_current_month_projection(
    cycle: InvoiceCycle,
    recurring: Iterable[RecurringTransaction],
    reference_date: pd.Timestamp,
) -> MonthlyProjection:
    """Describe the open cycle as the current month's invoice.

    ``total`` is the signed open-cycle sum and therefore also covers one-off
    charges and refunds that the breakdown does not list.
    """

    current_key = month_key(reference_date)
    active_by_description: dict[str, RecurringTransaction] = {}
    for pattern in recurring:
        if pattern["is_active"]:
            active_by_description.setdefault(pattern["description"], pattern)

    cycle_frame = cycle.transactions
    expenses = cycle_frame[card_expense_mask(cycle_frame)] if not cycle_frame.empty else cycle_frame

    installments: list[InstallmentProjection] = []
    recurring_rows: list[RecurringTransaction] = []
    for row in expenses.itertuples(index=False):
        description = base_description(row.description)
        info = detect_installment(row.description)
        if info.has_installment:
            installments.append(
                {
                    "description": description,
                    "amount": float(row.amount),
                    "parcel": f"{info.current}/{info.total}",
                    "current_parcel": info.current,
                    "total_parcels": info.total,
                }
            )

        pattern = active_by_description.get(description)
        if pattern is not None:
            recurring_rows.append(
                {
                    "description": pattern["description"],
                    "amount": float(row.amount),
                    "frequency": pattern["frequency"],
                    "is_active": True,
                    "last_occurrence": current_key,
                }
            )

    projection = _monthly_projection(reference_date.to_period("M"), installments, recurring_rows)
    projection["total"] = cycle.total
    return projection


def calculate_monthly_projections(
    transactions: TransactionsLike,
    reference_date: Optional[DateLike] = None,
    months: int = DEFAULT_PROJECTION_MONTHS,
    *,
    payment_min_amount: float = DEFAULT_PAYMENT_MIN_AMOUNT,
    payment_keywords: Iterable[str] = DEFAULT_PAYMENT_KEYWORDS,
    amount_tolerance: float = DEFAULT_AMOUNT_TOLERANCE,
    min_months: int = DEFAULT_MIN_MONTHS,
    active_months: int = DEFAULT_ACTIVE_MONTHS,
    series_match_hours: float = DEFAULT_SERIES_MATCH_HOURS,
    trace: Optional[TraceSink] = None,
) -> MonthlyProjections:
    """Return the current open invoice plus ``months - 1`` projected months."""

    df = prepare_transactions(transactions)
    now = resolve_reference_date(reference_date)

    cycle = reconstruct_invoice_cycle(
        df,
        payment_min_amount=payment_min_amount,
        payment_keywords=payment_keywords,
        trace=trace,
    )
    recurring = detect_recurring_patterns(
        df,
        now,
        amount_tolerance=amount_tolerance,
        min_months=min_months,
        active_months=active_months,
    )
    series = consolidate_installment_series(df, match_hours=series_match_hours, trace=trace)

    future = build_monthly_projections(series, _active(recurring), now, months)
    return {
        "current_month": build_current_month_projection(cycle, recurring, now),
        "future_months": future[1:],
    }


def _project_parcel(series: InstallmentSeries, target: pd.Period) -> Optional[InstallmentProjection]:
    months_since = month_diff(target, series.transaction_date)
    if not 0 < months_since <= series.remaining:
        return None

    parcel = series.current + months_since
    if parcel > series.total:
        return None

    return {
        "description": series.base_description,
        "amount": series.amount,
        "parcel": f"{parcel}/{series.total}",
        "current_parcel": parcel,
        "total_parcels": series.total,
    }


def _monthly_projection(
    target: pd.Period,
    installments: list[InstallmentProjection],
    recurring: list[RecurringTransaction],
) -> MonthlyProjection:
    installments_total = float(sum(item["amount"] for item in installments))
    recurring_total = float(sum(item["amount"] for item in recurring))
    return {
        "month": format_month_label(target),
        "month_key": month_key(target),
        "total": installments_total + recurring_total,
        "installments": installments,
        "recurring": recurring,
        "breakdown": {
            "installments_total": installments_total,
            "recurring_total": recurring_total,
        },
    }


def _active(recurring: Iterable[RecurringTransaction]) -> list[RecurringTransaction]:
    return [pattern for pattern in recurring if pattern["is_active"]]
