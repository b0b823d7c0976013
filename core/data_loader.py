"""Transaction loading and normalisation for the projection pipeline."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Final, Iterable, Mapping, Union

import pandas as pd

from core.exceptions import TransactionDataError

__all__ = [
    "ACCOUNT_TYPES",
    "TransactionsLike",
    "load_transactions",
    "prepare_transactions",
]


ACCOUNT_TYPES: Final[frozenset[str]] = frozenset({"CREDIT", "CHECKING", "SAVINGS"})

TransactionsLike = Union[pd.DataFrame, Iterable[Mapping[str, Any]]]

_CACHE_SIZE: Final[int] = 8
_REQUIRED_COLUMNS: Final[tuple[str, ...]] = ("description", "amount", "date")
_COLUMNS: Final[tuple[str, ...]] = (
    "id",
    "description",
    "amount",
    "date",
    "account_type",
    "category",
    "currency_code",
    "status",
    "account_id",
)
_COLUMN_ALIASES: Final[dict[str, str]] = {
    "accountType": "account_type",
    "currencyCode": "currency_code",
    "accountId": "account_id",
}


def prepare_transactions(transactions: TransactionsLike) -> pd.DataFrame:
    """Return a normalised copy of provider transactions.

    Accepts a dataframe or any iterable of provider records (camelCase keys).
    Dates are parsed as ISO-8601 and made timezone-naive in UTC, amounts are
    coerced to floats and account types outside ``ACCOUNT_TYPES`` become
    ``None``. Unparsable values turn into ``NaT``/``NaN`` rather than raising,
    so the affected rows simply drop out of card-specific logic. The input is
    never modified and the function is idempotent.
    """

    if isinstance(transactions, pd.DataFrame):
        df = transactions.copy()
    else:
        df = pd.DataFrame.from_records(list(transactions))

    df = df.rename(columns=_COLUMN_ALIASES)
    for column in _COLUMNS:
        if column not in df.columns:
            df[column] = None

    df["description"] = df["description"].fillna("").astype(str)
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").astype(float)
    df["date"] = _parse_dates(df["date"])
    df["account_type"] = df["account_type"].map(_normalize_account_type).astype(object)
    return df.reset_index(drop=True)


@lru_cache(maxsize=_CACHE_SIZE)
def load_transactions(path: str | Path) -> pd.DataFrame:
    """Return prepared transactions read from a CSV or JSON export.

    JSON exports may be a plain list of records or a provider page with a
    ``results`` list. Results are cached per path.
    """

    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"Transaction export not found: {source}")

    suffix = source.suffix.lower()
    if suffix == ".csv":
        raw = pd.read_csv(source)
    elif suffix == ".json":
        raw = pd.DataFrame.from_records(_read_json_records(source))
    else:
        raise TransactionDataError(f"Unsupported transaction export format: {source.suffix or '<none>'}")

    missing = [column for column in _REQUIRED_COLUMNS if column not in raw.columns]
    if missing:
        raise TransactionDataError(f"Transaction export {source.name} is missing columns: {', '.join(missing)}")

    return prepare_transactions(raw)


def _read_json_records(source: Path) -> list[Mapping[str, Any]]:
    with source.open(encoding="utf-8") as handle:
        try:
            payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise TransactionDataError(f"Invalid JSON in {source.name}: {exc}") from exc

    if isinstance(payload, Mapping):
        payload = payload.get("results")
    if not isinstance(payload, list):
        raise TransactionDataError(f"Expected a list of transactions in {source.name}")
    return payload


def _parse_dates(values: pd.Series) -> pd.Series:
    if isinstance(values.dtype, pd.DatetimeTZDtype):
        return values.dt.tz_convert("UTC").dt.tz_localize(None)
    if pd.api.types.is_datetime64_dtype(values):
        return values

    parsed = pd.to_datetime(values, errors="coerce", utc=True, format="ISO8601")
    return parsed.dt.tz_localize(None)


def _normalize_account_type(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    account_type = value.strip().upper()
    return account_type if account_type in ACCOUNT_TYPES else None
