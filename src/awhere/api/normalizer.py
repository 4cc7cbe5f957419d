from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from .errors import MalformedResponseError

logger = logging.getLogger(__name__)

# Keys dropped wherever they appear (HAL-style self/pagination links)
METADATA_KEYS = frozenset({"_links"})
# Keys dropped only inside nested objects, e.g. meanTemp.units
NESTED_METADATA_KEYS = frozenset({"units"})

LEAP_DAY = "02-29"


def _strip_record(record: Dict[str, Any], nested: bool = False) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for key, value in record.items():
        if key in METADATA_KEYS:
            continue
        if nested and key in NESTED_METADATA_KEYS:
            continue
        if isinstance(value, dict):
            value = _strip_record(value, nested=True)
        cleaned[key] = value
    return cleaned


def _is_metadata_column(column: str) -> bool:
    parts = str(column).split(".")
    if any(p in METADATA_KEYS for p in parts):
        return True
    return len(parts) > 1 and parts[-1] in NESTED_METADATA_KEYS


def _locate_records(payload: Any, data_key: Optional[str]) -> List[Dict[str, Any]]:
    """
    Find the data array in a parsed payload.

    With `data_key` the array must live under that key. Without it the
    payload may itself be the array, hold it as its first list value, or be
    a single record.
    """
    if data_key is not None:
        if not isinstance(payload, dict) or data_key not in payload:
            raise MalformedResponseError(
                f"Response has no '{data_key}' key"
            )
        records = payload[data_key]
        if not isinstance(records, list):
            raise MalformedResponseError(
                f"Expected a list under '{data_key}', got {type(records).__name__}"
            )
    elif isinstance(payload, list):
        records = payload
    elif isinstance(payload, dict):
        records = next(
            (v for v in payload.values() if isinstance(v, list)),
            None,
        )
        if records is None:
            records = [payload]
    else:
        raise MalformedResponseError(
            f"Unexpected response shape; got {type(payload).__name__}"
        )

    if not all(isinstance(r, dict) for r in records):
        raise MalformedResponseError("Data array contains non-object entries")
    return records


def strip_metadata_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Drop link and unit-annotation columns from an already flattened table.

    Idempotent: a table without such columns comes back unchanged.
    """
    drop = [c for c in df.columns if _is_metadata_column(c)]
    if not drop:
        return df
    return df.drop(columns=drop)


def drop_leap_days(df: pd.DataFrame, date_field: str = "day") -> pd.DataFrame:
    """
    Remove February 29 rows, keeping the order of the rest.

    Works for both `MM-DD` (norms) and `YYYY-MM-DD` (daily) date values.
    """
    if df.empty:
        return df
    if date_field not in df.columns:
        raise MalformedResponseError(
            f"Cannot drop leap days: no '{date_field}' column in response"
        )
    mask = df[date_field].astype("string").str.endswith(LEAP_DAY).fillna(False)
    return df.loc[~mask].reset_index(drop=True)


def normalize(
    body_text: str,
    data_key: Optional[str] = None,
    drop_leap_day: bool = False,
    date_field: str = "day",
) -> pd.DataFrame:
    """
    Parse an aWhere JSON response into a flat DataFrame.

    Nested objects become dotted columns (meanTemp.average); `_links` and
    nested `units` fields are removed from the parsed records before
    flattening so legitimate columns that merely contain those words
    survive.

    Args:
        body_text: Raw response body
        data_key: Key holding the data array (e.g. "norms"); None to take
            the first top-level array
        drop_leap_day: Remove rows dated February 29
        date_field: Column holding the row date

    Returns:
        DataFrame with one row per returned record, in API order

    Raises:
        MalformedResponseError: body is not JSON or lacks the data array
    """
    try:
        payload = json.loads(body_text)
    except (TypeError, ValueError) as e:
        raise MalformedResponseError("Response body is not valid JSON") from e

    records = [_strip_record(r) for r in _locate_records(payload, data_key)]
    df = pd.json_normalize(records, sep=".")

    if drop_leap_day:
        before = len(df)
        df = drop_leap_days(df, date_field=date_field)
        logger.debug("Dropped %d leap-day rows", before - len(df))

    return df.reset_index(drop=True)
