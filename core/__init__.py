"""Core domain package for invoicecast."""

from .data_loader import load_transactions, prepare_transactions
from .exceptions import BillingError, ConfigurationError, TransactionDataError
from .formatting import format_brl, format_month_label, month_key
from .models import (
    BillingOverview,
    HybridInvoice,
    InstallmentInfo,
    InstallmentProjection,
    InstallmentSeries,
    InvoiceCycle,
    MonthlyProjection,
    MonthlyProjections,
    ProjectionBreakdown,
    RecurringTransaction,
)
from .tracing import TraceEvent, TraceSink, Tracer

__all__ = [
    "BillingOverview",
    "HybridInvoice",
    "InstallmentInfo",
    "InstallmentProjection",
    "InstallmentSeries",
    "InvoiceCycle",
    "MonthlyProjection",
    "MonthlyProjections",
    "ProjectionBreakdown",
    "RecurringTransaction",
    "BillingError",
    "ConfigurationError",
    "TransactionDataError",
    "TraceEvent",
    "TraceSink",
    "Tracer",
    "format_brl",
    "format_month_label",
    "month_key",
    "load_transactions",
    "prepare_transactions",
]
