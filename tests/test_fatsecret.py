from urllib.parse import parse_qsl, urlsplit

import pytest
import requests

import fatsecret
from errors import UpstreamError, UpstreamRejection
from oauth1 import sign
from tests.conftest import FakeResponse, FakeSession


def _sent_params(call):
    if call["method"] == "POST":
        return dict(parse_qsl(call["data"], keep_blank_values=True))
    return dict(parse_qsl(urlsplit(call["url"]).query, keep_blank_values=True))


def test_post_sends_signed_form_body(credentials):
    session = FakeSession(FakeResponse(payload={"food_id": {"value": "33691"}}))
    result = fatsecret.call_fatsecret("food.find_id_for_barcode", {"barcode": "041570054161"},
                                      credentials=credentials, session=session)
    assert result == {"food_id": {"value": "33691"}}

    call = session.calls[0]
    assert call["url"] == fatsecret.FATSECRET_URL
    assert call["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
    assert call["timeout"] == fatsecret.TIMEOUT
    sent = _sent_params(call)
    assert sent["method"] == "food.find_id_for_barcode"
    assert sent["format"] == "json"
    assert sent["barcode"] == "041570054161"
    assert sent["oauth_consumer_key"] == credentials.key
    unsigned = {k: v for k, v in sent.items() if k != "oauth_signature"}
    assert sent["oauth_signature"] == sign("POST", fatsecret.FATSECRET_URL, unsigned, credentials.secret)


def test_get_puts_signed_params_in_query(credentials):
    session = FakeSession(FakeResponse(payload={"food": {}}))
    fatsecret.call_fatsecret("food.get.v4", {"food_id": 33691}, credentials=credentials,
                             http_method="GET", session=session)
    call = session.calls[0]
    assert call["method"] == "GET"
    assert call["url"].startswith(fatsecret.FATSECRET_URL + "?")
    sent = _sent_params(call)
    assert sent["food_id"] == "33691"
    unsigned = {k: v for k, v in sent.items() if k != "oauth_signature"}
    assert sent["oauth_signature"] == sign("GET", fatsecret.FATSECRET_URL, unsigned, credentials.secret)


def test_values_are_stringified_and_none_dropped(credentials):
    session = FakeSession(FakeResponse(payload={}))
    fatsecret.call_fatsecret("foods.search", {"page_number": 0, "include_sub_categories": True,
                                              "region": None}, credentials=credentials, session=session)
    sent = _sent_params(session.calls[0])
    assert sent["page_number"] == "0"
    assert sent["include_sub_categories"] == "true"
    assert "region" not in sent


def test_credentials_default_to_environment(fatsecret_env):
    session = FakeSession(FakeResponse(payload={}))
    fatsecret.call_fatsecret("food.get.v4", {"food_id": "1"}, session=session)
    assert _sent_params(session.calls[0])["oauth_consumer_key"] == "test-consumer-key"


def test_replay_rejection_is_retried_once_with_fresh_nonce(credentials):
    session = FakeSession(
        FakeResponse(payload={"error": {"code": 7, "message": "Invalid/used nonce"}}),
        FakeResponse(payload={"food_id": {"value": "1"}}),
    )
    result = fatsecret.signed_request("food.find_id_for_barcode", {"barcode": "1"},
                                      credentials=credentials, session=session)
    assert result == {"food_id": {"value": "1"}}
    first, second = (_sent_params(c) for c in session.calls)
    assert first["oauth_nonce"] != second["oauth_nonce"]


def test_second_rejection_propagates(credentials):
    stale = {"error": {"code": 6, "message": "Invalid/expired timestamp"}}
    session = FakeSession(FakeResponse(payload=stale), FakeResponse(payload=stale))
    with pytest.raises(UpstreamRejection):
        fatsecret.signed_request("food.get.v4", {"food_id": "1"}, credentials=credentials, session=session)
    assert len(session.calls) == 2


def test_bad_signature_is_not_retried(credentials):
    session = FakeSession(FakeResponse(payload={"error": {"code": 8, "message": "Invalid signature"}}))
    with pytest.raises(UpstreamError) as exc:
        fatsecret.signed_request("food.get.v4", {"food_id": "1"}, credentials=credentials, session=session)
    assert not isinstance(exc.value, UpstreamRejection)
    assert len(session.calls) == 1


def test_non_json_response_raises(credentials):
    session = FakeSession(FakeResponse(status_code=502, text="<html>Bad gateway</html>"))
    with pytest.raises(UpstreamError) as exc:
        fatsecret.call_fatsecret("food.get.v4", {"food_id": "1"}, credentials=credentials, session=session)
    assert exc.value.status == 502


@pytest.mark.parametrize("payload", [[], ["food_id"], "ok", 42])
def test_non_object_json_raises(credentials, payload):
    session = FakeSession(FakeResponse(payload=payload))
    with pytest.raises(UpstreamError) as exc:
        fatsecret.lookup_barcode("041570054161", credentials=credentials, session=session)
    assert exc.value.payload == payload


def test_transport_error_raises(credentials):
    session = FakeSession(requests.ConnectionError("boom"))
    with pytest.raises(UpstreamError):
        fatsecret.call_fatsecret("food.get.v4", {"food_id": "1"}, credentials=credentials, session=session)


def test_lookup_barcode_chains_two_calls(credentials):
    food = {"food": {"food_id": "33691", "food_name": "Oat Milk"}}
    session = FakeSession(FakeResponse(payload={"food_id": {"value": "33691"}}), FakeResponse(payload=food))
    result = fatsecret.lookup_barcode("041570054161", credentials=credentials, session=session)
    assert result == {"barcode": "041570054161", "food_id": "33691", "data": food}
    assert _sent_params(session.calls[1])["food_id"] == "33691"


@pytest.mark.parametrize("payload", [
    {"food_id": {"value": "0"}},
    {"food_id": None},
    {"error": {"code": 211, "message": "No food item detected"}},
])
def test_lookup_barcode_unknown(credentials, payload):
    session = FakeSession(FakeResponse(payload=payload))
    assert fatsecret.lookup_barcode("000", credentials=credentials, session=session) is None
    assert len(session.calls) == 1


def test_get_food_error_raises(credentials):
    session = FakeSession(FakeResponse(payload={"error": {"code": 106, "message": "Invalid ID"}}))
    with pytest.raises(UpstreamError):
        fatsecret.get_food("nope", credentials=credentials, session=session)
