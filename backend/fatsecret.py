# -*- coding: utf-8 -*-
# fatsecret.py — FatSecret platform REST client (two-legged OAuth 1.0a)

import logging
import requests

from config import get_fatsecret_credentials
from errors import UpstreamError, UpstreamRejection
from oauth1 import authorize, encode_params

logger = logging.getLogger(__name__)

FATSECRET_URL = "https://platform.fatsecret.com/rest/server.api"
TIMEOUT = 15

# FatSecret error codes for a stale timestamp / reused nonce. A fresh
# nonce+timestamp can fix these; the other auth codes (2-9) cannot.
REPLAY_CODES = {6, 7}
AUTH_CODES = set(range(2, 10))


def _stringify(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _error_code(payload) -> int | None:
    err = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(err, dict):
        return None
    try:
        return int(err.get("code"))
    except (TypeError, ValueError):
        return None


def call_fatsecret(method: str, params: dict | None = None, credentials=None,
                   http_method: str = "POST", url: str = FATSECRET_URL, session=None) -> dict:
    """
    Sign and send one FatSecret API call.

    POST puts the signed parameters in a form body, GET in the query string.
    API-level errors (e.g. unknown food) come back as the parsed payload;
    OAuth errors raise.
    """
    credentials = credentials or get_fatsecret_credentials()
    data = {"method": method, "format": "json"}
    data.update({k: _stringify(v) for k, v in (params or {}).items() if v is not None})

    signed = authorize(http_method, url, data, credentials)
    body = encode_params(signed)
    http = session or requests

    logger.info("Calling FatSecret: %s (%s)", method, http_method.upper())
    try:
        if http_method.upper() == "POST":
            r = http.request(
                "POST", url, data=body, timeout=TIMEOUT,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        else:
            r = http.request("GET", f"{url}?{body}", timeout=TIMEOUT)
    except requests.RequestException as e:
        raise UpstreamError(f"FatSecret request failed: {e}") from e

    text = r.text or ""
    logger.debug("FatSecret response (%s): %s", r.status_code, text[:300])
    try:
        payload = r.json()
    except ValueError as e:
        raise UpstreamError(
            f"FatSecret returned non-JSON ({r.status_code}): {text[:300]}", status=r.status_code
        ) from e
    if not isinstance(payload, dict):
        raise UpstreamError(
            f"FatSecret returned unexpected JSON ({r.status_code}): {text[:300]}", r.status_code, payload
        )

    code = _error_code(payload)
    if code in REPLAY_CODES:
        raise UpstreamRejection(f"FatSecret rejected request: {payload['error']}", r.status_code, payload)
    if code in AUTH_CODES:
        raise UpstreamError(f"FatSecret auth error: {payload['error']}", r.status_code, payload)
    if r.status_code >= 400 and code is None:
        raise UpstreamError(f"FatSecret HTTP {r.status_code}: {text[:300]}", r.status_code, payload)
    return payload


def signed_request(method: str, params: dict | None = None, **kwargs) -> dict:
    """call_fatsecret with one retry on a replay rejection (fresh nonce/timestamp)."""
    try:
        return call_fatsecret(method, params, **kwargs)
    except UpstreamRejection as e:
        logger.warning("FatSecret rejected %s, retrying once: %s", method, e)
        return call_fatsecret(method, params, **kwargs)


# ---------- Barcode lookup ----------
def find_id_for_barcode(barcode: str, **kwargs) -> str | None:
    lookup = signed_request("food.find_id_for_barcode", {"barcode": barcode}, **kwargs)
    if lookup.get("error"):
        logger.info("Barcode %s not found: %s", barcode, lookup["error"])
        return None
    food_id = lookup.get("food_id")
    if isinstance(food_id, dict):
        food_id = food_id.get("value")
    if food_id in (None, "", "0", 0):
        return None
    return str(food_id)


def get_food(food_id: str, **kwargs) -> dict:
    food = signed_request("food.get.v4", {"food_id": food_id}, **kwargs)
    if food.get("error"):
        raise UpstreamError(f"Failed to fetch food {food_id}: {food['error']}", payload=food)
    return food


def lookup_barcode(barcode: str, **kwargs) -> dict | None:
    food_id = find_id_for_barcode(barcode, **kwargs)
    if not food_id:
        return None
    logger.info("Found food_id %s for barcode %s", food_id, barcode)
    return {"barcode": barcode, "food_id": food_id, "data": get_food(food_id, **kwargs)}
