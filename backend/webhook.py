# -*- coding: utf-8 -*-
# webhook.py — Stripe-Signature verification (t=<ts>,v1=<hmac-sha256 hex>)

import hashlib, hmac, json, logging, time

from errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 300
SCHEME = "v1"


class SignatureVerificationError(ValueError):
    pass


def compute_signature(payload: bytes, timestamp: int, secret: str) -> str:
    signed = f"{timestamp}.".encode("utf-8") + payload
    return hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def parse_header(sig_header: str) -> tuple[int, list[str]]:
    timestamp, signatures = None, []
    for item in (sig_header or "").split(","):
        k, sep, v = item.strip().partition("=")
        if not sep:
            continue
        if k == "t":
            try:
                timestamp = int(v)
            except ValueError:
                raise SignatureVerificationError(f"Bad timestamp in signature header: {v!r}") from None
        elif k == SCHEME:
            signatures.append(v)
    if timestamp is None:
        raise SignatureVerificationError("No timestamp in signature header")
    if not signatures:
        raise SignatureVerificationError(f"No {SCHEME} signatures in signature header")
    return timestamp, signatures


def verify_signature(payload: bytes, sig_header: str, secret: str,
                     tolerance: int = DEFAULT_TOLERANCE, now: float | None = None) -> int:
    """
    Check a webhook body against its signature header.

    :Returns:
        The signed timestamp, once verified.
    :Raises:
        SignatureVerificationError on a bad header, no matching v1, or a
        timestamp older than ``tolerance`` seconds.
    """
    if not secret:
        raise ConfigError("Missing webhook signing secret")
    if isinstance(payload, str):
        payload = payload.encode("utf-8")

    timestamp, signatures = parse_header(sig_header)
    expected = compute_signature(payload, timestamp, secret)
    if not any(hmac.compare_digest(expected, s) for s in signatures):
        raise SignatureVerificationError("No signatures found matching the expected signature")

    now = time.time() if now is None else now
    if tolerance and timestamp < now - tolerance:
        raise SignatureVerificationError(f"Timestamp outside the tolerance zone ({timestamp})")
    return timestamp


def construct_event(payload: bytes, sig_header: str, secret: str, **kwargs) -> dict:
    verify_signature(payload, sig_header, secret, **kwargs)
    try:
        return json.loads(payload)
    except ValueError as e:
        raise SignatureVerificationError(f"Webhook body is not JSON: {e}") from e
