"""URL templates for the aWhere v2 endpoints used by the client."""

from __future__ import annotations

from typing import Iterable, Optional, Union
from urllib.parse import quote

YearLike = Union[int, str, None]


def _blank(value: YearLike) -> bool:
    return value is None or str(value).strip() == ""


def field_url(base_url: str, field_id: Optional[str] = None) -> str:
    url = f"{base_url.rstrip('/')}/v2/fields"
    if field_id is not None:
        url += f"/{quote(str(field_id), safe='')}"
    return url


def field_location_path(field_id: str) -> str:
    return f"/fields/{quote(str(field_id), safe='')}"


def latlng_location_path(latitude: float, longitude: float) -> str:
    return f"/locations/{latitude},{longitude}"


def norms_url(
    base_url: str,
    location_path: str,
    monthday_start: str,
    monthday_end: Optional[str] = None,
    year_start: YearLike = None,
    year_end: YearLike = None,
    exclude_years: Optional[Iterable[int]] = None,
) -> str:
    """
    Build a weather norms URL.

    A missing `monthday_end` asks for the single day `monthday_start`. The
    years segment is only added when both years are given; without it the
    API uses its default range.
    """
    end = monthday_end if monthday_end else monthday_start
    url = (
        f"{base_url.rstrip('/')}/v2/weather{location_path}"
        f"/norms/{monthday_start},{end}"
    )

    if not _blank(year_start) and not _blank(year_end):
        url += f"/years/{int(year_start)},{int(year_end)}"

    excluded = sorted({int(y) for y in exclude_years or []})
    if excluded:
        url += "?excludeYears=" + ",".join(str(y) for y in excluded)

    return url
