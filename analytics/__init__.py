"""Credit-card invoice analytics: installments, recurring charges and projections."""

from analytics.forecasting import (
    DEFAULT_PROJECTION_MONTHS,
    build_current_month_projection,
    build_monthly_projections,
    calculate_monthly_projections,
    project_future_invoices,
)
from analytics.hybrid import calculate_hybrid_invoices
from analytics.installments import base_description, detect_installment, find_installment_marker
from analytics.invoice_cycle import (
    DEFAULT_PAYMENT_KEYWORDS,
    DEFAULT_PAYMENT_MIN_AMOUNT,
    calculate_current_invoice,
    is_statement_payment,
    reconstruct_invoice_cycle,
)
from analytics.periods import month_diff, resolve_reference_date, shift_months
from analytics.recurring import (
    DEFAULT_ACTIVE_MONTHS,
    DEFAULT_AMOUNT_TOLERANCE,
    DEFAULT_MIN_MONTHS,
    amounts_similar,
    detect_recurring_patterns,
)
from analytics.series import DEFAULT_SERIES_MATCH_HOURS, consolidate_installment_series
from analytics.signs import AmountKind, classify_amount, is_card_credit, is_card_expense

__all__ = [
    "AmountKind",
    "classify_amount",
    "is_card_credit",
    "is_card_expense",
    "base_description",
    "detect_installment",
    "find_installment_marker",
    "DEFAULT_AMOUNT_TOLERANCE",
    "DEFAULT_MIN_MONTHS",
    "DEFAULT_ACTIVE_MONTHS",
    "amounts_similar",
    "detect_recurring_patterns",
    "DEFAULT_PAYMENT_MIN_AMOUNT",
    "DEFAULT_PAYMENT_KEYWORDS",
    "is_statement_payment",
    "reconstruct_invoice_cycle",
    "calculate_current_invoice",
    "DEFAULT_SERIES_MATCH_HOURS",
    "consolidate_installment_series",
    "DEFAULT_PROJECTION_MONTHS",
    "build_monthly_projections",
    "build_current_month_projection",
    "project_future_invoices",
    "calculate_monthly_projections",
    "calculate_hybrid_invoices",
    "month_diff",
    "resolve_reference_date",
    "shift_months",
]
