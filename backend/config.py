# -*- coding: utf-8 -*-
# config.py — credentials and settings from env / .env / SSM

import os, logging
from collections import namedtuple
from functools import lru_cache
import boto3

from errors import ConfigError

logger = logging.getLogger(__name__)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

ConsumerCredentials = namedtuple("ConsumerCredentials", ["key", "secret"])
"""
The consumer key/secret pair issued by an OAuth1 provider.

:Parameters:
    key : `str`
        Sent with every request as oauth_consumer_key
    secret : `str`
        Only ever used as HMAC key material
"""


def configure_logging(level: str | None = None) -> logging.Logger:
    """Root logger setup for Lambda (the runtime already installs a handler)."""
    root = logging.getLogger()
    root.setLevel(level or LOG_LEVEL)
    if not root.handlers:
        logging.basicConfig(format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    return root


# ---------- SSM (optional secret source) ----------
def get_ssm_parameter(name: str) -> str:
    logger.info("Loading SSM parameter %s", name)
    resp = boto3.client("ssm").get_parameter(Name=name, WithDecryption=True)
    return resp["Parameter"]["Value"]


def get_secret(env_name: str, required: bool = True) -> str | None:
    """
    Read a secret from ``env_name``; if ``{env_name}_SSM`` names an SSM
    parameter instead, fetch it from Parameter Store.
    """
    value = os.getenv(env_name)
    ssm_name = os.getenv(f"{env_name}_SSM")
    if not value and ssm_name:
        value = get_ssm_parameter(ssm_name)
    if required and not value:
        raise ConfigError(f"Missing {env_name} (set it or {env_name}_SSM)")
    return value or None


# ---------- Provider credentials ----------
@lru_cache(maxsize=None)
def get_fatsecret_credentials() -> ConsumerCredentials:
    creds = ConsumerCredentials(
        get_secret("FATSECRET_CONSUMER_KEY"),
        get_secret("FATSECRET_CONSUMER_SECRET"),
    )
    logger.info("FatSecret credentials loaded (key %d chars, secret %d chars)",
                len(creds.key), len(creds.secret))
    return creds


@lru_cache(maxsize=None)
def get_kroger_credentials() -> tuple[str, str]:
    return get_secret("KROGER_CLIENT_ID"), get_secret("KROGER_CLIENT_SECRET")


def get_stripe_webhook_secret() -> str | None:
    return get_secret("STRIPE_WEBHOOK_SECRET", required=False)


def cors_origin() -> str:
    return os.getenv("CORS_ORIGIN", "*")
