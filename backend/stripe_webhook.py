# stripe_webhook.py — verify a Stripe webhook and ACK it
import binascii, logging

from config import configure_logging, get_stripe_webhook_secret
from http_utils import error_response, header, json_response, raw_body, request_method
from webhook import SignatureVerificationError, construct_event

configure_logging()
logger = logging.getLogger(__name__)


def lambda_handler(event, context):
    if request_method(event) != "POST":
        return error_response(405, "Method Not Allowed", {"Allow": "POST"})

    secret = get_stripe_webhook_secret()
    if not secret:
        logger.error("STRIPE_WEBHOOK_SECRET is not set")
        return error_response(500, "Missing STRIPE_WEBHOOK_SECRET env var")

    sig = header(event, "stripe-signature")
    if not sig:
        return error_response(400, "Missing Stripe-Signature header")

    try:
        payload = raw_body(event)
    except (ValueError, binascii.Error) as e:
        logger.warning("Could not decode webhook body: %s", e)
        return error_response(400, "Could not read request body", details=str(e))

    try:
        stripe_event = construct_event(payload, sig, secret)
    except SignatureVerificationError as e:
        # Stripe keeps retrying until it gets a 2xx
        logger.warning("Webhook signature verification failed: %s", e)
        return error_response(400, "Webhook signature verification failed", details=str(e))

    event_type = stripe_event.get("type") if isinstance(stripe_event, dict) else None
    logger.info("Stripe webhook received: %s", event_type)
    return json_response(200, {"received": True, "type": event_type})
