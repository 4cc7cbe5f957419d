import pytest

from awhere.api import urls


BASE = "https://api.awhere.com/"


@pytest.mark.unit
def test_field_url():
    assert urls.field_url(BASE) == "https://api.awhere.com/v2/fields"
    assert urls.field_url(BASE, "my field") == "https://api.awhere.com/v2/fields/my%20field"


@pytest.mark.unit
def test_norms_url_for_field_with_years_and_exclusions():
    url = urls.norms_url(
        BASE,
        urls.field_location_path("field_test"),
        "06-01",
        "09-01",
        "2006",
        2015,
        exclude_years=[2012, 2010, 2010],
    )
    assert url == (
        "https://api.awhere.com/v2/weather/fields/field_test"
        "/norms/06-01,09-01/years/2006,2015?excludeYears=2010,2012"
    )


@pytest.mark.unit
def test_norms_url_single_day_without_years():
    url = urls.norms_url(BASE, urls.latlng_location_path(1.5, -2.25), "03-10", "", "", "")
    assert url == "https://api.awhere.com/v2/weather/locations/1.5,-2.25/norms/03-10,03-10"


@pytest.mark.unit
def test_norms_url_omits_years_when_only_one_given():
    url = urls.norms_url(BASE, "/locations/1,2", "03-10", "03-12", 2010, None)
    assert "/years/" not in url
