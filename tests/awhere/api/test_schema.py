import pytest
from pydantic import ValidationError as PydanticValidationError

from awhere.api.schema import RawResponse, RequestDescriptor, TokenGrant


@pytest.mark.unit
def test_request_descriptor_is_immutable():
    d = RequestDescriptor(url="https://api.awhere.com/v2/fields", method="post", body="{}")
    assert d.method == "POST"

    with pytest.raises(PydanticValidationError):
        d.url = "https://elsewhere.example.com"


@pytest.mark.unit
def test_request_descriptor_rejects_other_methods():
    with pytest.raises(PydanticValidationError):
        RequestDescriptor(url="https://api.awhere.com/v2/fields/f1", method="DELETE")


@pytest.mark.unit
def test_raw_response_ok_range():
    assert RawResponse(status_code=200).ok
    assert RawResponse(status_code=204).ok
    assert not RawResponse(status_code=301).ok
    assert not RawResponse(status_code=401, body_text="x").ok


@pytest.mark.unit
def test_token_grant_coerces_expires_in():
    assert TokenGrant(access_token="t", expires_in="3600").expires_in == 3600
    assert TokenGrant(access_token="t", expires_in="soon").expires_in is None
    with pytest.raises(PydanticValidationError):
        TokenGrant(access_token="")
