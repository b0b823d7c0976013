"""Open invoice cycle reconstruction for credit-card ledgers.

Bank feeds report a running card ledger rather than discrete statements.
The most recent statement payment is inferred from amount and description
heuristics, and everything after it forms the open (not yet billed) cycle.
"""

from __future__ import annotations

from typing import Final, Iterable, Optional

from analytics.signs import CREDIT, credit_mask, is_card_credit
from core.data_loader import TransactionsLike, prepare_transactions
from core.logging import get_logger
from core.models import InvoiceCycle
from core.tracing import TraceSink, Tracer

__all__ = [
    "DEFAULT_PAYMENT_MIN_AMOUNT",
    "DEFAULT_PAYMENT_KEYWORDS",
    "is_statement_payment",
    "reconstruct_invoice_cycle",
    "calculate_current_invoice",
]

DEFAULT_PAYMENT_MIN_AMOUNT: Final[float] = 1000.0
DEFAULT_PAYMENT_KEYWORDS: Final[tuple[str, ...]] = ("pagamento", "fatura", "pago", "pgt")

_LARGE_CREDIT_AMOUNT: Final[float] = 100.0

logger = get_logger(__name__)


def is_statement_payment(
    amount: float,
    description: str,
    *,
    min_amount: float = DEFAULT_PAYMENT_MIN_AMOUNT,
    keywords: Iterable[str] = DEFAULT_PAYMENT_KEYWORDS,
) -> bool:
    """Return ``True`` when a card entry looks like a bill payment.

    It must reduce the balance and either exceed ``min_amount`` in magnitude
    or mention one of ``keywords`` (case-insensitive). Smaller refunds
    without payment wording are not payments.
    """

    if not is_card_credit(amount, CREDIT):
        return False
    if amount < -min_amount:
        return True
    text = (description or "").lower()
    return any(keyword.lower() in text for keyword in keywords)


def reconstruct_invoice_cycle(
    transactions: TransactionsLike,
    *,
    payment_min_amount: float = DEFAULT_PAYMENT_MIN_AMOUNT,
    payment_keywords: Iterable[str] = DEFAULT_PAYMENT_KEYWORDS,
    trace: Optional[TraceSink] = None,
) -> InvoiceCycle:
    """Locate the last statement payment and collect the open cycle after it.

    Without any payment the whole CREDIT history is the open cycle. The
    total is the signed sum of the cycle: expenses add, refunds subtract.
    """

    tracer = Tracer(logger, trace)
    keywords = tuple(payment_keywords)

    df = prepare_transactions(transactions)
    credit = df[credit_mask(df)].sort_values("date", kind="stable")
    if credit.empty:
        tracer.emit("invoice_cycle.empty")
        return InvoiceCycle(boundary=None, transactions=credit, total=0.0)

    large_credits = credit[credit["amount"] < -_LARGE_CREDIT_AMOUNT]
    if not large_credits.empty:
        tracer.emit(
            "invoice_cycle.large_credits",
            entries=[
                (row.date.strftime("%Y-%m-%d"), float(row.amount), row.description)
                for row in large_credits.itertuples()
            ],
        )

    amounts = credit["amount"].tolist()
    descriptions = credit["description"].tolist()
    boundary_position: Optional[int] = None
    for position in range(len(credit) - 1, -1, -1):
        if is_statement_payment(
            amounts[position],
            descriptions[position],
            min_amount=payment_min_amount,
            keywords=keywords,
        ):
            boundary_position = position
            break

    if boundary_position is None:
        boundary = None
        cycle = credit
    else:
        boundary = credit.iloc[boundary_position]
        cycle = credit.iloc[boundary_position + 1 :]
        tracer.emit(
            "invoice_cycle.boundary",
            date=boundary["date"].strftime("%Y-%m-%d"),
            amount=float(boundary["amount"]),
            description=boundary["description"],
        )

    total = float(cycle["amount"].sum()) if not cycle.empty else 0.0
    tracer.emit(
        "invoice_cycle.total",
        since=boundary["date"].strftime("%Y-%m-%d") if boundary is not None else None,
        transactions=int(len(cycle)),
        total=round(total, 2),
    )
    return InvoiceCycle(boundary=boundary, transactions=cycle, total=total)


def calculate_current_invoice(
    transactions: TransactionsLike,
    *,
    payment_min_amount: float = DEFAULT_PAYMENT_MIN_AMOUNT,
    payment_keywords: Iterable[str] = DEFAULT_PAYMENT_KEYWORDS,
    trace: Optional[TraceSink] = None,
) -> float:
    """Return the open invoice total; ``0.0`` without CREDIT transactions."""

    cycle = reconstruct_invoice_cycle(
        transactions,
        payment_min_amount=payment_min_amount,
        payment_keywords=payment_keywords,
        trace=trace,
    )
    return cycle.total
