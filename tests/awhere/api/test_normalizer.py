import json

import pandas as pd
import pytest

from awhere.api.errors import MalformedResponseError
from awhere.api.normalizer import drop_leap_days, normalize, strip_metadata_columns


def norms_record(day, mean=10.0):
    return {
        "day": day,
        "location": {"latitude": 39.8, "longitude": -98.5},
        "meanTemp": {"average": mean, "stdDev": 1.1, "units": "C"},
        "precipitation": {"average": 0.2, "stdDev": 0.1, "units": "mm"},
        "_links": {"self": {"href": f"/v2/weather/norms/{day}"}},
    }


def norms_body(*days):
    return json.dumps(
        {
            "norms": [norms_record(d, mean=float(i)) for i, d in enumerate(days)],
            "_links": {"next": {"href": "/v2/weather/...?offset=10"}},
        }
    )


@pytest.mark.unit
def test_normalize_flattens_and_strips_metadata():
    df = normalize(norms_body("01-01", "01-02", "01-03"), data_key="norms")

    assert len(df) == 3
    assert list(df.columns) == [
        "day",
        "location.latitude",
        "location.longitude",
        "meanTemp.average",
        "meanTemp.stdDev",
        "precipitation.average",
        "precipitation.stdDev",
    ]
    assert not any("_links" in c or c.endswith(".units") for c in df.columns)
    assert df["meanTemp.average"].tolist() == [0.0, 1.0, 2.0]


@pytest.mark.unit
def test_normalize_row_and_column_counts_match_payload():
    records = [{"day": f"03-{d:02d}", "a": d, "b": {"c": d, "units": "mm"}} for d in range(1, 6)]
    df = normalize(json.dumps({"norms": records}), data_key="norms")

    # day, a, b.c
    assert df.shape == (5, 3)


@pytest.mark.unit
def test_normalize_keeps_legitimate_fields_resembling_metadata():
    body = json.dumps({"norms": [{"day": "01-01", "units": "metric", "links_count": 2}]})
    df = normalize(body, data_key="norms")

    assert list(df.columns) == ["day", "units", "links_count"]


@pytest.mark.unit
def test_normalize_uses_first_top_level_array_without_key():
    body = json.dumps({"count": 1, "norms": [{"day": "05-05", "x": 1}]})
    df = normalize(body)

    assert df["day"].tolist() == ["05-05"]


@pytest.mark.unit
def test_normalize_accepts_bare_list_and_single_object():
    assert len(normalize(json.dumps([{"a": 1}, {"a": 2}]))) == 2

    df = normalize(json.dumps({"id": "field1", "centerPoint": {"latitude": 1, "longitude": 2}}))
    assert df.loc[0, "id"] == "field1"
    assert df.loc[0, "centerPoint.latitude"] == 1


@pytest.mark.unit
def test_normalize_is_idempotent_on_metadata_stripping():
    df = normalize(norms_body("02-27", "02-28"), data_key="norms")
    again = strip_metadata_columns(df)

    pd.testing.assert_frame_equal(df, again)


@pytest.mark.unit
def test_strip_metadata_columns_on_flattened_frame():
    df = pd.DataFrame(
        {
            "day": ["01-01"],
            "meanTemp.average": [1.0],
            "meanTemp.units": ["C"],
            "_links.self.href": ["/x"],
        }
    )
    stripped = strip_metadata_columns(df)
    assert list(stripped.columns) == ["day", "meanTemp.average"]
    pd.testing.assert_frame_equal(stripped, strip_metadata_columns(stripped))


@pytest.mark.unit
def test_drop_leap_day_removes_only_feb29_and_keeps_order():
    df = normalize(
        norms_body("02-27", "02-28", "02-29", "03-01"),
        data_key="norms",
        drop_leap_day=True,
    )

    assert df["day"].tolist() == ["02-27", "02-28", "03-01"]
    assert df["meanTemp.average"].tolist() == [0.0, 1.0, 3.0]
    assert list(df.index) == [0, 1, 2]


@pytest.mark.unit
def test_drop_leap_day_handles_full_dates():
    df = pd.DataFrame({"date": ["2016-02-28", "2016-02-29", "2017-02-28", "2020-02-29"]})
    out = drop_leap_days(df, date_field="date")
    assert out["date"].tolist() == ["2016-02-28", "2017-02-28"]


@pytest.mark.unit
def test_single_leap_day_row_dropped_gives_empty_table():
    body = json.dumps(
        {
            "norms": [
                {
                    "day": "02-29",
                    "meanTemp": {"average": 10.2, "units": "C"},
                    "_links": {"self": {"href": "/v2/weather/..."}},
                }
            ]
        }
    )
    df = normalize(body, data_key="norms", drop_leap_day=True)

    assert len(df) == 0


@pytest.mark.unit
def test_drop_leap_day_missing_date_column_raises():
    body = json.dumps({"norms": [{"x": 1}]})
    with pytest.raises(MalformedResponseError):
        normalize(body, data_key="norms", drop_leap_day=True)


@pytest.mark.unit
def test_normalize_empty_array_returns_empty_frame():
    df = normalize(json.dumps({"norms": []}), data_key="norms", drop_leap_day=True)
    assert df.empty


@pytest.mark.unit
@pytest.mark.parametrize(
    "body, key",
    [
        ("{not json", "norms"),
        ("", None),
        (json.dumps({"data": []}), "norms"),
        (json.dumps({"norms": {"day": "01-01"}}), "norms"),
        (json.dumps({"norms": [1, 2]}), "norms"),
        (json.dumps("just a string"), None),
    ],
)
def test_normalize_malformed_payloads_raise(body, key):
    with pytest.raises(MalformedResponseError):
        normalize(body, data_key=key)
