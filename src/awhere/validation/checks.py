"""
Pre-flight checks for aWhere request parameters.

Every check either returns quietly or raises ValidationError naming the
parameter and the rule it broke, so bad input never reaches the network.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Union

import pandas as pd

from ..api.errors import ApiRequestError, MalformedResponseError, ValidationError

if TYPE_CHECKING:
    from ..api.awhere_api import AWhereClient

logger = logging.getLogger(__name__)

MIN_NORMS_YEARS = 3

# Leap year used to resolve month-day strings to calendar days
_REFERENCE_YEAR = 2016
_MONTHDAY_RE = re.compile(r"^\d{2}-\d{2}$")

YearLike = Union[int, str, None]


def _is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def check_credentials(api_key: Optional[str], api_secret: Optional[str]) -> None:
    for name, value in (("api_key", api_key), ("api_secret", api_secret)):
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(
                f"{name} must be a non-empty string. "
                "Set AWHERE_API_KEY / AWHERE_API_SECRET or pass them explicitly."
            )


def check_valid_lat_long(latitude: Any, longitude: Any) -> None:
    for name, value, limit in (
        ("latitude", latitude, 90),
        ("longitude", longitude, 180),
    ):
        if isinstance(value, bool):
            raise ValidationError(f"{name} must be numeric, got {value!r}")
        try:
            number = float(value)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"{name} must be numeric, got {value!r}") from e
        if not -limit <= number <= limit:
            raise ValidationError(
                f"{name} must be between {-limit} and {limit}, got {number}"
            )


def parse_monthday(value: str, name: str = "monthday") -> dt.date:
    """Resolve 'MM-DD' to a date in a leap year; Feb 29 is valid."""
    if not isinstance(value, str) or not _MONTHDAY_RE.match(value):
        raise ValidationError(f"{name} must be in MM-DD form, got {value!r}")
    try:
        return dt.datetime.strptime(f"{_REFERENCE_YEAR}-{value}", "%Y-%m-%d").date()
    except ValueError as e:
        raise ValidationError(f"{name} is not a calendar day: {value!r}") from e


def check_norms_start_end_dates(
    monthday_start: str, monthday_end: Optional[str] = None
) -> None:
    start = parse_monthday(monthday_start, "monthday_start")
    if _is_blank(monthday_end):
        return
    end = parse_monthday(monthday_end, "monthday_end")
    if end < start:
        raise ValidationError(
            f"monthday_end ({monthday_end}) must not be before "
            f"monthday_start ({monthday_start})"
        )


def _to_year(value: YearLike, name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a four digit year, got {value!r}")
    try:
        year = int(str(value).strip())
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a four digit year, got {value!r}") from e
    if not 1000 <= year <= 9999:
        raise ValidationError(f"{name} must be a four digit year, got {value!r}")
    return year


def check_norms_years_to_request(
    year_start: YearLike,
    year_end: YearLike,
    monthday_start: str,
    monthday_end: Optional[str] = None,
    exclude_years: Optional[Iterable[Any]] = None,
    today: Optional[dt.date] = None,
) -> List[int]:
    """
    Validate the span of years norms are averaged over.

    Returns the years that remain after exclusions. When both years are
    blank the API default range applies and only `exclude_years` is checked.
    """
    excluded = {_to_year(y, "exclude_years") for y in exclude_years or []}

    if _is_blank(year_start) and _is_blank(year_end):
        return []
    if _is_blank(year_start) or _is_blank(year_end):
        raise ValidationError(
            "year_start and year_end must be given together (or both left empty)"
        )

    start = _to_year(year_start, "year_start")
    end = _to_year(year_end, "year_end")
    today = today or dt.date.today()

    if start > end:
        raise ValidationError(
            f"year_start ({start}) must not be after year_end ({end})"
        )
    if end > today.year:
        raise ValidationError(f"year_end ({end}) is in the future")
    if end == today.year:
        last_day = monthday_end if not _is_blank(monthday_end) else monthday_start
        md = parse_monthday(last_day, "monthday_end")
        if (md.month, md.day) >= (today.month, today.day):
            raise ValidationError(
                f"year_end is the current year but {last_day} has not passed yet; "
                "norms need complete data for every requested day"
            )

    outside = sorted(y for y in excluded if not start <= y <= end)
    if outside:
        raise ValidationError(
            f"exclude_years {outside} fall outside {start}-{end}"
        )

    remaining = [y for y in range(start, end + 1) if y not in excluded]
    if len(remaining) < MIN_NORMS_YEARS:
        raise ValidationError(
            f"At least {MIN_NORMS_YEARS} years are needed to calculate norms; "
            f"{len(remaining)} remain after exclusions"
        )
    return remaining


def check_valid_field(client: "AWhereClient", field_id: str) -> None:
    if not isinstance(field_id, str) or not field_id.strip():
        raise ValidationError("field_id must be a non-empty string")
    try:
        client.get_field(field_id)
    except ApiRequestError as e:
        if e.status == 404:
            raise ValidationError(
                f"field_id '{field_id}' does not exist for these credentials"
            ) from e
        raise


def expected_norms_rows(
    monthday_start: str,
    monthday_end: Optional[str] = None,
    include_feb29: bool = True,
) -> int:
    start = parse_monthday(monthday_start, "monthday_start")
    end = (
        start
        if _is_blank(monthday_end)
        else parse_monthday(monthday_end, "monthday_end")
    )
    days = (end - start).days + 1
    leap_day = dt.date(_REFERENCE_YEAR, 2, 29)
    if not include_feb29 and start <= leap_day <= end:
        days -= 1
    return days


def check_data_return_norms(
    df: pd.DataFrame,
    monthday_start: str,
    monthday_end: Optional[str] = None,
    include_feb29: bool = True,
) -> None:
    """
    Confirm a norms table covers every requested calendar day.

    When Feb 29 is inside the range and kept, the API may still leave it out
    (no leap year among the averaged years), so one row fewer is accepted.
    """
    expected = expected_norms_rows(monthday_start, monthday_end, include_feb29)
    accepted = {expected}

    start = parse_monthday(monthday_start, "monthday_start")
    end = start if _is_blank(monthday_end) else parse_monthday(monthday_end, "monthday_end")
    if include_feb29 and start <= dt.date(_REFERENCE_YEAR, 2, 29) <= end:
        accepted.add(expected - 1)

    if len(df) not in accepted:
        raise MalformedResponseError(
            f"Expected {expected} norms rows for {monthday_start}..{monthday_end or monthday_start}, "
            f"got {len(df)}"
        )
    logger.debug("Norms table covers %d days", len(df))
