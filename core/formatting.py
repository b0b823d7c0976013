"""Formatting helpers for invoice labels and amounts."""

from __future__ import annotations

from typing import Final

import pandas as pd

__all__ = ["format_brl", "format_month_label", "month_key"]

_MONTH_NAMES_PT: Final[tuple[str, ...]] = (
    "janeiro",
    "fevereiro",
    "março",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
)


def month_key(moment: pd.Timestamp | pd.Period) -> str:
    """Return the ``YYYY-MM`` key for a timestamp or monthly period."""

    return f"{moment.year:04d}-{moment.month:02d}"


def format_month_label(moment: pd.Timestamp | pd.Period) -> str:
    """Return a pt-BR month label such as ``"outubro de 2026"``.

    Built from a fixed table so the output does not depend on the
    process locale.
    """

    return f"{_MONTH_NAMES_PT[moment.month - 1]} de {moment.year}"


def format_brl(amount: float) -> str:
    """Format ``amount`` as Brazilian reais, e.g. ``R$ -1.234,56``."""

    sign = "-" if amount < 0 else ""
    grouped = f"{abs(amount):,.2f}"
    localized = grouped.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"R$ {sign}{localized}"
