"""Assemble the invoice overview consumed by dashboards."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from analytics.forecasting import build_current_month_projection, build_monthly_projections
from analytics.hybrid import calculate_hybrid_invoices
from analytics.invoice_cycle import reconstruct_invoice_cycle
from analytics.periods import DateLike, resolve_reference_date
from analytics.recurring import detect_recurring_patterns
from analytics.series import consolidate_installment_series
from config.settings import BillingSettings, get_settings
from core.data_loader import TransactionsLike, prepare_transactions
from core.logging import get_logger
from core.models import BillingOverview
from core.tracing import TraceSink

__all__ = ["prepare_billing_overview"]

logger = get_logger(__name__)


def prepare_billing_overview(
    transactions: TransactionsLike,
    bills: Optional[Iterable[Any]] = None,
    reference_date: Optional[DateLike] = None,
    settings: Optional[BillingSettings] = None,
    trace: Optional[TraceSink] = None,
) -> BillingOverview:
    settings = settings or get_settings()
    df = prepare_transactions(transactions)
    now = resolve_reference_date(reference_date)

    cycle = reconstruct_invoice_cycle(df, trace=trace, **settings.payment_kwargs)
    recurring = detect_recurring_patterns(df, now, **settings.recurring_kwargs)
    series = consolidate_installment_series(df, match_hours=settings.series_match_hours, trace=trace)

    active = [pattern for pattern in recurring if pattern["is_active"]]
    future = build_monthly_projections(series, active, now, settings.projection_months)

    hybrid_invoices = (
        calculate_hybrid_invoices(df, bills, now, cycle=cycle, trace=trace)
        if bills is not None
        else []
    )

    logger.info(
        "Billing overview for %s: open invoice %.2f, %d recurring, %d installment series",
        now.strftime("%Y-%m"),
        cycle.total,
        len(recurring),
        len(series),
    )

    return {
        "current_invoice_total": cycle.total,
        "recurring": recurring,
        "current_month": build_current_month_projection(cycle, recurring, now),
        "future_months": future[1:],
        "hybrid_invoices": hybrid_invoices,
    }
