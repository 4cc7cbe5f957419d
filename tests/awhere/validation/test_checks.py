import datetime as dt

import pandas as pd
import pytest
from unittest.mock import MagicMock

from awhere.api.errors import ApiRequestError, MalformedResponseError, ValidationError
from awhere.validation import (
    check_credentials,
    check_data_return_norms,
    check_norms_start_end_dates,
    check_norms_years_to_request,
    check_valid_field,
    check_valid_lat_long,
    expected_norms_rows,
)


TODAY = dt.date(2024, 6, 15)


@pytest.mark.unit
def test_check_credentials():
    check_credentials("key", "secret")
    with pytest.raises(ValidationError, match="api_key"):
        check_credentials("", "secret")
    with pytest.raises(ValidationError, match="api_secret"):
        check_credentials("key", None)


@pytest.mark.unit
def test_validation_error_is_value_error():
    with pytest.raises(ValueError):
        check_credentials(None, None)


@pytest.mark.unit
def test_check_valid_lat_long():
    check_valid_lat_long(39.8282, -98.5795)
    check_valid_lat_long("-90", "180")
    for lat, lng in [(91, 0), (0, -181), ("north", 0), (None, 0), (True, 0)]:
        with pytest.raises(ValidationError):
            check_valid_lat_long(lat, lng)


@pytest.mark.unit
def test_check_norms_start_end_dates():
    check_norms_start_end_dates("02-01", "03-10")
    check_norms_start_end_dates("02-29", "02-29")
    check_norms_start_end_dates("07-01", "")
    check_norms_start_end_dates("07-01", None)

    for start, end in [
        ("2-1", "03-10"),
        ("02-30", "03-10"),
        ("13-01", "13-02"),
        ("03-10", "02-01"),
        ("02-01", "0310"),
    ]:
        with pytest.raises(ValidationError):
            check_norms_start_end_dates(start, end)


@pytest.mark.unit
def test_years_to_request_returns_remaining_years():
    remaining = check_norms_years_to_request(
        2008, "2015", "02-01", "03-10", exclude_years=[2010, 2011], today=TODAY
    )
    assert remaining == [2008, 2009, 2012, 2013, 2014, 2015]


@pytest.mark.unit
def test_years_to_request_blank_years_skip_checks():
    assert check_norms_years_to_request("", None, "02-01", "03-10", today=TODAY) == []


@pytest.mark.unit
@pytest.mark.parametrize(
    "year_start, year_end, exclude, message",
    [
        (2015, 2010, None, "must not be after"),
        (2020, 2025, None, "future"),
        (2010, 2012, [2011], "At least 3 years"),
        (2010, 2011, None, "At least 3 years"),
        (2008, 2015, [2001], "outside"),
        (2010, "", None, "together"),
        ("20x0", 2015, None, "four digit year"),
    ],
)
def test_years_to_request_rejects(year_start, year_end, exclude, message):
    with pytest.raises(ValidationError, match=message):
        check_norms_years_to_request(
            year_start, year_end, "02-01", "03-10", exclude_years=exclude, today=TODAY
        )


@pytest.mark.unit
def test_years_to_request_current_year_needs_past_end_day():
    check_norms_years_to_request(2020, 2024, "05-01", "06-14", today=TODAY)
    with pytest.raises(ValidationError, match="has not passed"):
        check_norms_years_to_request(2020, 2024, "06-01", "06-15", today=TODAY)
    with pytest.raises(ValidationError, match="has not passed"):
        check_norms_years_to_request(2020, 2024, "07-04", "", today=TODAY)


@pytest.mark.unit
def test_check_valid_field():
    client = MagicMock()
    client.get_field.return_value = {"id": "f1"}
    check_valid_field(client, "f1")
    client.get_field.assert_called_once_with("f1")

    client.get_field.side_effect = ApiRequestError("HTTP 404", status=404, body="")
    with pytest.raises(ValidationError, match="does not exist"):
        check_valid_field(client, "nope")

    client.get_field.side_effect = ApiRequestError("HTTP 500", status=500, body="")
    with pytest.raises(ApiRequestError):
        check_valid_field(client, "f1")

    with pytest.raises(ValidationError):
        check_valid_field(client, "  ")


@pytest.mark.unit
def test_expected_norms_rows():
    assert expected_norms_rows("01-01", "01-31") == 31
    assert expected_norms_rows("02-01", "03-01") == 30
    assert expected_norms_rows("02-01", "03-01", include_feb29=False) == 29
    assert expected_norms_rows("07-04", "") == 1
    assert expected_norms_rows("01-01", "12-31") == 366


@pytest.mark.unit
def test_check_data_return_norms():
    df = pd.DataFrame({"day": ["02-27", "02-28", "03-01"]})

    # Feb 29 kept but absent from the reply is accepted
    check_data_return_norms(df, "02-27", "03-01", include_feb29=True)
    check_data_return_norms(df, "02-27", "03-01", include_feb29=False)

    with pytest.raises(MalformedResponseError, match="Expected 5"):
        check_data_return_norms(df, "02-27", "03-02", include_feb29=True)


@pytest.mark.unit
def test_years_to_request_checks_exclusions_even_without_years():
    with pytest.raises(ValidationError, match="exclude_years"):
        check_norms_years_to_request("", "", "02-01", "03-10", exclude_years=["x"], today=TODAY)
