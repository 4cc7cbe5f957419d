"""
Parameter validation for aWhere requests.

Usage:
    from awhere.validation import check_norms_start_end_dates

    check_norms_start_end_dates("06-01", "09-01")
"""

from .checks import (
    MIN_NORMS_YEARS,
    check_credentials,
    check_data_return_norms,
    check_norms_start_end_dates,
    check_norms_years_to_request,
    check_valid_field,
    check_valid_lat_long,
    expected_norms_rows,
    parse_monthday,
)

__all__ = [
    "MIN_NORMS_YEARS",
    "check_credentials",
    "check_data_return_norms",
    "check_norms_start_end_dates",
    "check_norms_years_to_request",
    "check_valid_field",
    "check_valid_lat_long",
    "expected_norms_rows",
    "parse_monthday",
]
