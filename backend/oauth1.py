# -*- coding: utf-8 -*-
# oauth1.py — OAuth 1.0a request signing (RFC 5849 §3.4, HMAC-SHA1)

import base64, hashlib, hmac, logging, secrets, time
from collections.abc import Iterable, Mapping
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = ("GET", "POST")
SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"
UNRESERVED = frozenset(b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~")


class InvalidInput(ValueError):
    """Bad signing input: unsupported method, non-string parameter, empty secret."""


# ---------- Encoding ----------
def percent_encode(value: str) -> str:
    """
    RFC 3986 percent-encoding of the UTF-8 bytes. Only ALPHA / DIGIT / - . _ ~
    stay as-is, hex is uppercase, space is %20.
    """
    if not isinstance(value, str):
        raise InvalidInput(f"Expected str, got {type(value).__name__}: {value!r}")
    try:
        raw = value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidInput(f"Value is not valid UTF-8 text: {value!r}") from e
    return "".join(chr(b) if b in UNRESERVED else f"%{b:02X}" for b in raw)


def _pairs(parameters) -> list[tuple[str, str]]:
    if isinstance(parameters, Mapping):
        items = list(parameters.items())
    elif isinstance(parameters, Iterable) and not isinstance(parameters, (str, bytes)):
        items = [tuple(p) for p in parameters]
    else:
        raise InvalidInput(f"Parameters must be a mapping or (name, value) pairs, got {type(parameters).__name__}")

    for item in items:
        if len(item) != 2:
            raise InvalidInput(f"Parameter pair must have two elements: {item!r}")
        k, v = item
        if not isinstance(k, str):
            raise InvalidInput(f"Parameter name must be str: {k!r}")
        if not isinstance(v, str):
            raise InvalidInput(f"Parameter {k!r} must be str, got {type(v).__name__}")
    return items


def normalize_parameters(parameters) -> str:
    """Canonical parameter string: encoded pairs sorted by key, then value."""
    encoded = [
        (percent_encode(k), percent_encode(v))
        for k, v in _pairs(parameters)
        if k != "oauth_signature"
    ]
    encoded.sort()
    return "&".join(f"{k}={v}" for k, v in encoded)


def encode_params(parameters) -> str:
    """Query string / form body for transmission, same encoding as signing."""
    return "&".join(f"{percent_encode(k)}={percent_encode(v)}" for k, v in _pairs(parameters))


# ---------- Base string & key ----------
def _check_method(method: str) -> str:
    if not isinstance(method, str) or method.upper() not in SUPPORTED_METHODS:
        raise InvalidInput(f"Unsupported HTTP method: {method!r}")
    return method.upper()


def _check_url(base_url: str) -> str:
    if not isinstance(base_url, str) or not base_url:
        raise InvalidInput(f"Base URL must be a non-empty str: {base_url!r}")
    p = urlsplit(base_url)
    if not p.scheme or not p.netloc:
        raise InvalidInput(f"Base URL must be absolute: {base_url!r}")
    if p.query or p.fragment or "?" in base_url or "#" in base_url:
        raise InvalidInput(f"Base URL must not carry a query string or fragment: {base_url!r}")
    return base_url


def signature_base_string(method: str, base_url: str, normalized_params: str) -> str:
    return "&".join((
        _check_method(method),
        percent_encode(_check_url(base_url)),
        percent_encode(normalized_params),
    ))


def signing_key(consumer_secret: str, token_secret: str = "") -> str:
    if not isinstance(consumer_secret, str) or not consumer_secret:
        # an empty secret yields the key "&"
        raise InvalidInput("Consumer secret is empty")
    if token_secret is None:
        token_secret = ""
    return f"{percent_encode(consumer_secret)}&{percent_encode(token_secret)}"


# ---------- Signing ----------
def sign(method: str, base_url: str, parameters, consumer_secret: str, token_secret: str = "") -> str:
    """
    Compute oauth_signature for a request.

    :Parameters:
        method : `str`
            GET or POST (case-insensitive).
        base_url : `str`
            Absolute URL without query string or fragment.
        parameters : `Mapping[str, str]` | iterable of `(str, str)`
            Protocol and request parameters. ``oauth_signature`` is ignored.
        consumer_secret : `str`
            Never transmitted, only used in the HMAC key.
        token_secret : `str`
            Empty for two-legged requests.

    :Returns:
        The base64 HMAC-SHA1 digest, not percent-encoded.
    """
    key = signing_key(consumer_secret, token_secret)
    base_string = signature_base_string(method, base_url, normalize_parameters(parameters))
    digest = hmac.new(key.encode("utf-8"), base_string.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


# ---------- Call-site helpers ----------
def generate_nonce() -> str:
    return secrets.token_hex(16)


def generate_timestamp() -> str:
    return str(int(time.time()))


def protocol_params(consumer_key: str, nonce: str | None = None, timestamp: str | None = None) -> dict:
    if not isinstance(consumer_key, str) or not consumer_key:
        raise InvalidInput("Consumer key is empty")
    return {
        "oauth_consumer_key": consumer_key,
        "oauth_nonce": nonce or generate_nonce(),
        "oauth_signature_method": SIGNATURE_METHOD,
        "oauth_timestamp": str(timestamp) if timestamp is not None else generate_timestamp(),
        "oauth_version": OAUTH_VERSION,
    }


def authorize(method: str, base_url: str, parameters, credentials, token_secret: str = "",
              nonce: str | None = None, timestamp: str | None = None) -> dict:
    """
    Merge request parameters with fresh protocol parameters and sign them.
    Returns a new dict that includes oauth_signature; ``parameters`` is untouched.
    """
    request_params = dict(_pairs(parameters or {}))
    oauth = protocol_params(credentials.key, nonce=nonce, timestamp=timestamp)
    clash = sorted(set(request_params) & (set(oauth) | {"oauth_signature"}))
    if clash:
        raise InvalidInput(f"Request parameters collide with protocol parameters: {clash}")

    signed = {**request_params, **oauth}
    signed["oauth_signature"] = sign(method, base_url, signed, credentials.secret, token_secret)
    logger.debug("Signed %s %s (%d params)", method.upper(), base_url, len(signed))
    return signed


def to_header(parameters, realm: str | None = None) -> dict:
    """Authorization header from the oauth_* entries of a signed mapping."""
    parts = [f'realm="{percent_encode(realm)}"'] if realm else []
    parts += [
        f'{percent_encode(k)}="{percent_encode(v)}"'
        for k, v in sorted(_pairs(parameters))
        if k.startswith("oauth_")
    ]
    return {"Authorization": "OAuth " + ", ".join(parts)}
