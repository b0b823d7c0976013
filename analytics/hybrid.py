"""Merge closed provider bills with the calculated open invoice."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

import pandas as pd

from analytics.invoice_cycle import (
    DEFAULT_PAYMENT_KEYWORDS,
    DEFAULT_PAYMENT_MIN_AMOUNT,
    reconstruct_invoice_cycle,
)
from analytics.periods import DateLike, resolve_reference_date
from core.data_loader import TransactionsLike
from core.formatting import format_brl, format_month_label, month_key
from core.logging import get_logger
from core.models import HybridInvoice, InvoiceCycle
from core.tracing import TraceSink, Tracer

__all__ = ["calculate_hybrid_invoices"]

logger = get_logger(__name__)


def calculate_hybrid_invoices(
    transactions: TransactionsLike,
    bills: Iterable[Any],
    reference_date: Optional[DateLike] = None,
    *,
    payment_min_amount: float = DEFAULT_PAYMENT_MIN_AMOUNT,
    payment_keywords: Iterable[str] = DEFAULT_PAYMENT_KEYWORDS,
    cycle: Optional[InvoiceCycle] = None,
    trace: Optional[TraceSink] = None,
) -> list[HybridInvoice]:
    """Combine closed statements with the open-cycle invoice.

    Closed bills (``dueDate``, ``totalAmount``, optional ``lineItems``) pass
    through unchanged as ``fonte="bill"``; bills missing either required field
    are skipped. Exactly one ``fonte="calculado"`` entry is added for the
    reference month. No deduplication by month happens: when a bill and the
    calculated entry share a month both are kept. Sorted newest first.

    A ``cycle`` already reconstructed from the same transactions is reused
    instead of being rebuilt.
    """

    tracer = Tracer(logger, trace)
    now = resolve_reference_date(reference_date)
    invoices: list[HybridInvoice] = []

    for bill in bills:
        invoice = _bill_invoice(bill)
        if invoice is None:
            tracer.emit("hybrid.bill_skipped", bill=bill)
            continue
        invoices.append(invoice)
        tracer.emit(
            "hybrid.bill",
            mes=invoice["mes"],
            valor=format_brl(invoice["valor"]),
            itens=invoice["transacoes"],
        )

    if cycle is None:
        cycle = reconstruct_invoice_cycle(
            transactions,
            payment_min_amount=payment_min_amount,
            payment_keywords=payment_keywords,
            trace=trace,
        )
    count = cycle.transaction_count
    invoices.append(
        {
            "mes": format_month_label(now),
            "ano": int(now.year),
            "mes_key": month_key(now),
            "valor": cycle.total,
            "fonte": "calculado",
            "transacoes": count,
            "detalhes": f"Fatura atual calculada com {count} transações do ciclo",
        }
    )
    tracer.emit("hybrid.calculated", valor=format_brl(cycle.total), transacoes=count)

    invoices.sort(key=lambda invoice: (invoice["ano"], invoice["mes_key"]), reverse=True)
    return invoices


def _bill_invoice(bill: Any) -> Optional[HybridInvoice]:
    if not isinstance(bill, Mapping):
        return None

    due_date = _parse_due_date(bill.get("dueDate"))
    total_amount = _parse_amount(bill.get("totalAmount"))
    if due_date is None or total_amount is None:
        return None

    line_items = bill.get("lineItems") or []
    item_count = len(line_items)
    return {
        "mes": format_month_label(due_date),
        "ano": int(due_date.year),
        "mes_key": month_key(due_date),
        "valor": total_amount,
        "fonte": "bill",
        "transacoes": item_count,
        "detalhes": f"Fatura fechada com {item_count} itens",
    }


def _parse_due_date(value: Any) -> Optional[pd.Timestamp]:
    if value is None or value == "":
        return None
    try:
        moment = pd.Timestamp(value)
    except (TypeError, ValueError):
        return None
    if pd.isna(moment):
        return None
    if moment.tzinfo is not None:
        moment = moment.tz_convert("UTC").tz_localize(None)
    return moment


def _parse_amount(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    return None if pd.isna(amount) else amount
