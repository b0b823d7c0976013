"""Shared data model definitions for the invoice projection pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypedDict

import pandas as pd


class InstallmentProjection(TypedDict):
    description: str
    amount: float
    parcel: str
    current_parcel: int
    total_parcels: int


class RecurringTransaction(TypedDict):
    """A subscription-like card charge observed across several months."""

    description: str
    amount: float
    frequency: int
    is_active: bool
    last_occurrence: str


class ProjectionBreakdown(TypedDict):
    installments_total: float
    recurring_total: float


class MonthlyProjection(TypedDict):
    month: str
    month_key: str
    total: float
    installments: list[InstallmentProjection]
    recurring: list[RecurringTransaction]
    breakdown: ProjectionBreakdown


class MonthlyProjections(TypedDict):
    current_month: MonthlyProjection
    future_months: list[MonthlyProjection]


class HybridInvoice(TypedDict):
    """One invoice row, either a closed bill or the calculated open cycle."""

    mes: str
    ano: int
    mes_key: str
    valor: float
    fonte: Literal["bill", "calculado"]
    transacoes: int
    detalhes: str


class BillingOverview(TypedDict):
    current_invoice_total: float
    recurring: list[RecurringTransaction]
    current_month: MonthlyProjection
    future_months: list[MonthlyProjection]
    hybrid_invoices: list[HybridInvoice]


@dataclass(frozen=True)
class InstallmentInfo:
    has_installment: bool
    current: int
    total: int
    remaining: int


@dataclass
class InstallmentSeries:
    """One real purchase spread across ``total`` monthly charges.

    ``current``, ``transaction_id`` and ``transaction_date`` follow the most
    recent observation of the series and are updated in place.
    """

    series_id: str
    base_description: str
    amount: float
    total: int
    first_parcel_date: pd.Timestamp
    current: int
    transaction_id: str | None
    transaction_date: pd.Timestamp

    @property
    def remaining(self) -> int:
        return self.total - self.current


@dataclass(frozen=True)
class InvoiceCycle:
    """The open card cycle reconstructed from the ledger."""

    boundary: pd.Series | None
    transactions: pd.DataFrame
    total: float

    @property
    def transaction_count(self) -> int:
        return int(len(self.transactions))


__all__ = [
    "InstallmentProjection",
    "RecurringTransaction",
    "ProjectionBreakdown",
    "MonthlyProjection",
    "MonthlyProjections",
    "HybridInvoice",
    "BillingOverview",
    "InstallmentInfo",
    "InstallmentSeries",
    "InvoiceCycle",
]
