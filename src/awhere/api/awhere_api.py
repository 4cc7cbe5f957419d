from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, Optional, Union

import pandas as pd

from ..validation import checks
from . import urls
from .auth import TokenSession
from .client_base import BaseAPIClient
from .config import AWhereConfig
from .errors import MalformedResponseError, ValidationError
from .schema import RequestDescriptor


logger = logging.getLogger(__name__)

YearLike = Union[int, str, None]


class AWhereClient(BaseAPIClient):
    """
    aWhere API client: fields and long-term weather norms.

    Configuration comes from an explicit AWhereConfig, or from the
    AWHERE_* environment variables when none is given. Each client owns its
    own token session, so several accounts can be used side by side.
    """

    def __init__(
        self,
        config: Optional[AWhereConfig] = None,
        token: Optional[str] = None,
    ) -> None:
        self.config = config or AWhereConfig.from_env()
        checks.check_credentials(self.config.api_key, self.config.api_secret)

        tokens = TokenSession(
            api_key=self.config.api_key,
            api_secret=self.config.api_secret,
            token=token,
            token_url=self.config.token_url,
            timeout=self.config.timeout,
        )
        super().__init__(
            tokens=tokens,
            timeout=self.config.timeout,
            max_token_refreshes=self.config.max_token_refreshes,
        )
        self.base_url = self.config.base_url.rstrip("/")
        logger.info("AWhereClient initialized for %s", self.base_url)

    # -------------------------------------------------
    # Fields
    # -------------------------------------------------
    def get_field(self, field_id: str) -> Dict[str, Any]:
        """Fetch one field record."""
        descriptor = RequestDescriptor(url=urls.field_url(self.base_url, field_id))
        data = self.get_json(descriptor)
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Expected a field object from {descriptor.url}"
            )
        return data

    def create_field(
        self,
        field_id: str,
        name: str,
        farm_id: str,
        latitude: float,
        longitude: float,
        acres: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Register a field so weather data can be requested by field id.

        Returns:
            The created field record as returned by the API
        """
        if not isinstance(field_id, str) or not field_id.strip():
            raise ValidationError("field_id must be a non-empty string")
        if not isinstance(farm_id, str) or not farm_id.strip():
            raise ValidationError("farm_id must be a non-empty string")
        checks.check_valid_lat_long(latitude, longitude)

        body: Dict[str, Any] = {
            "id": field_id,
            "name": name,
            "farmId": farm_id,
            "centerPoint": {"latitude": float(latitude), "longitude": float(longitude)},
        }
        if acres is not None:
            body["acres"] = float(acres)

        descriptor = RequestDescriptor(
            url=urls.field_url(self.base_url),
            method="POST",
            body=json.dumps(body),
        )
        logger.info("Creating field %s", field_id)
        data = self.get_json(descriptor)
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Expected a field object from {descriptor.url}"
            )
        return data

    # -------------------------------------------------
    # Weather norms
    # -------------------------------------------------
    def weather_norms_fields(
        self,
        field_id: str,
        monthday_start: str,
        monthday_end: str,
        year_start: YearLike,
        year_end: YearLike,
        exclude_years: Optional[Iterable[int]] = None,
        include_feb29: bool = True,
    ) -> pd.DataFrame:
        """
        Long-term norms for a registered field.

        Averages (and standard deviations) of temperature, precipitation,
        solar radiation, humidity and wind for each calendar day in
        `monthday_start`..`monthday_end`, computed over `year_start`..`year_end`
        minus `exclude_years`. At least three years must remain.

        Args:
            field_id: Field created with create_field
            monthday_start: First day, 'MM-DD'
            monthday_end: Last day, 'MM-DD' (empty for a single day)
            year_start: First year of the averaging range (inclusive)
            year_end: Last year of the averaging range (inclusive)
            exclude_years: Years to leave out of the average
            include_feb29: Keep the Feb 29 row; it is often sparse because
                only leap years contribute to it

        Returns:
            DataFrame with one row per calendar day
        """
        checks.check_norms_start_end_dates(monthday_start, monthday_end)
        checks.check_norms_years_to_request(
            year_start, year_end, monthday_start, monthday_end, exclude_years
        )
        checks.check_valid_field(self, field_id)

        url = urls.norms_url(
            self.base_url,
            urls.field_location_path(field_id),
            monthday_start,
            monthday_end,
            year_start,
            year_end,
            exclude_years,
        )
        df = self.get_table(
            RequestDescriptor(url=url),
            data_key="norms",
            drop_leap_day=not include_feb29,
        )
        checks.check_data_return_norms(df, monthday_start, monthday_end, include_feb29)
        return df

    def weather_norms_latlng(
        self,
        latitude: float,
        longitude: float,
        monthday_start: str,
        monthday_end: str,
        year_start: YearLike = None,
        year_end: YearLike = None,
        exclude_years: Optional[Iterable[int]] = None,
        include_feb29: bool = True,
    ) -> pd.DataFrame:
        """
        Long-term norms for a latitude/longitude.

        Same as weather_norms_fields, but for an arbitrary point. The year
        range is optional here; leaving both years empty uses the API's
        default range.
        """
        checks.check_valid_lat_long(latitude, longitude)
        checks.check_norms_start_end_dates(monthday_start, monthday_end)
        checks.check_norms_years_to_request(
            year_start, year_end, monthday_start, monthday_end, exclude_years
        )

        url = urls.norms_url(
            self.base_url,
            urls.latlng_location_path(latitude, longitude),
            monthday_start,
            monthday_end,
            year_start,
            year_end,
            exclude_years,
        )
        df = self.get_table(
            RequestDescriptor(url=url),
            data_key="norms",
            drop_leap_day=not include_feb29,
        )
        checks.check_data_return_norms(df, monthday_start, monthday_end, include_feb29)
        return df
