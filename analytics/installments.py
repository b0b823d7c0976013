"""Installment marker parsing for card transaction descriptions.

Card issuers encode installment purchases as ``current/total`` somewhere in
the free-text description, e.g. ``"MERCADOLIVRE*5PRODUTO 9/10"`` or
``"Produto9/10"``. The marker is searched anywhere in the string: no
anchoring to the end, and other digits (merchant codes) may precede it.
The first ``digits/digits`` run wins, so descriptions that happen to
contain a date-like ``12/05`` are read as installments too.
"""

from __future__ import annotations

from typing import NamedTuple, Optional

from core.models import InstallmentInfo

__all__ = ["detect_installment", "base_description", "find_installment_marker", "InstallmentMarker"]

_DIGITS = frozenset("0123456789")
_NO_INSTALLMENT = InstallmentInfo(has_installment=False, current=0, total=0, remaining=0)


class InstallmentMarker(NamedTuple):
    """Location and values of a ``current/total`` marker.

    ``start`` includes one whitespace character immediately before the
    digits, when present, so that removing ``[start:end]`` leaves no gap.
    """

    start: int
    end: int
    current: int
    total: int


def find_installment_marker(description: str) -> Optional[InstallmentMarker]:
    """Return the leftmost ``digits/digits`` marker in ``description``."""

    text = description or ""
    length = len(text)
    index = 0
    while index < length:
        if text[index] not in _DIGITS:
            index += 1
            continue

        run_start = index
        while index < length and text[index] in _DIGITS:
            index += 1
        run_end = index

        if index + 1 < length and text[index] == "/" and text[index + 1] in _DIGITS:
            total_start = index + 1
            total_end = total_start
            while total_end < length and text[total_end] in _DIGITS:
                total_end += 1

            start = run_start
            if start > 0 and text[start - 1].isspace():
                start -= 1
            return InstallmentMarker(
                start=start,
                end=total_end,
                current=int(text[run_start:run_end]),
                total=int(text[total_start:total_end]),
            )

    return None


def detect_installment(description: str) -> InstallmentInfo:
    """Parse the installment marker of ``description``.

    Only the first marker is considered. It counts as an installment when
    both numbers are positive and ``total >= current``; anything else
    reports ``has_installment=False`` with zeroed fields.
    """

    marker = find_installment_marker(description)
    if marker is None:
        return _NO_INSTALLMENT

    current, total = marker.current, marker.total
    if current > 0 and total > 0 and total >= current:
        return InstallmentInfo(
            has_installment=True,
            current=current,
            total=total,
            remaining=total - current,
        )
    return _NO_INSTALLMENT


def base_description(description: str) -> str:
    """Strip the first installment marker and surrounding whitespace.

    Used as the grouping key for recurring detection and series
    consolidation, so ``"Loja 2/10"`` and ``"Loja 3/10"`` share a key.
    """

    text = description or ""
    marker = find_installment_marker(text)
    if marker is not None:
        text = text[: marker.start] + text[marker.end :]
    return text.strip()
