# -*- coding: utf-8 -*-
# kroger.py — Kroger public API: OAuth2 client-credentials token + GET helper

import logging
import requests

from config import get_kroger_credentials
from errors import ConfigError, UpstreamError
from ttl_cache import TTLCache

logger = logging.getLogger(__name__)

KROGER_AUTH_URL = "https://api.kroger.com/v1/connect/oauth2/token"
KROGER_API_BASE = "https://api.kroger.com/v1"
DEFAULT_SCOPE = "product.compact"
DEFAULT_EXPIRES_IN = 1800
EXPIRY_BUFFER = 60
TIMEOUT = 15


class ClientCredentialsAuth:
    """
    Fetches and caches an app-level bearer token.

    :Parameters:
        client_id, client_secret : `str`
            Sent as HTTP Basic auth to the token endpoint.
        cache : :class:`~ttl_cache.TTLCache`
            Where the token lives between calls. One per container is enough.
    """

    CACHE_KEY = "oauth2:access_token"

    def __init__(self, client_id: str, client_secret: str, token_url: str = KROGER_AUTH_URL,
                 scope: str = DEFAULT_SCOPE, cache: TTLCache | None = None, session=None):
        if not client_id or not client_secret:
            raise ConfigError("Missing KROGER_CLIENT_ID or KROGER_CLIENT_SECRET")
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.scope = scope
        self.cache = cache if cache is not None else TTLCache(ttl=DEFAULT_EXPIRES_IN - EXPIRY_BUFFER)
        self.session = session if session is not None else requests

    @classmethod
    def from_env(cls, **kwargs) -> "ClientCredentialsAuth":
        client_id, client_secret = get_kroger_credentials()
        return cls(client_id, client_secret, **kwargs)

    def get_token(self) -> str:
        token = self.cache.get(self.CACHE_KEY)
        if token:
            return token

        try:
            r = self.session.request(
                "POST", self.token_url,
                data={"grant_type": "client_credentials", "scope": self.scope},
                auth=(self.client_id, self.client_secret),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=TIMEOUT,
            )
        except requests.RequestException as e:
            raise UpstreamError(f"Kroger auth request failed: {e}") from e

        text = r.text or ""
        if not r.ok:
            raise UpstreamError(f"Kroger auth failed ({r.status_code}): {text[:300]}", r.status_code)
        try:
            data = r.json()
        except ValueError as e:
            raise UpstreamError(f"Kroger auth returned non-JSON: {text[:300]}", r.status_code) from e
        if not isinstance(data, dict) or not data.get("access_token"):
            raise UpstreamError("Kroger auth response missing access_token", r.status_code)

        expires_in = int(data.get("expires_in") or DEFAULT_EXPIRES_IN)
        self.cache.set(self.CACHE_KEY, data["access_token"], ttl=expires_in - EXPIRY_BUFFER)
        logger.info("Kroger token refreshed, expires in %ss", expires_in)
        return data["access_token"]

    def invalidate(self) -> None:
        self.cache.expire(self.CACHE_KEY)


class KrogerClient:
    def __init__(self, auth: ClientCredentialsAuth, base_url: str = KROGER_API_BASE, session=None):
        self.auth = auth
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests

    def get(self, endpoint: str, params: dict | None = None):
        query = {k: v for k, v in (params or {}).items() if v not in (None, "")}
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        try:
            r = self.session.request(
                "GET", url, params=query, timeout=TIMEOUT,
                headers={"Accept": "application/json",
                         "Authorization": f"Bearer {self.auth.get_token()}"},
            )
        except requests.RequestException as e:
            raise UpstreamError(f"Kroger request failed: {e}") from e

        if not r.ok:
            if r.status_code == 401:
                self.auth.invalidate()
            raise UpstreamError(f"Kroger API error ({r.status_code}): {(r.text or '')[:500]}", r.status_code)
        try:
            return r.json()
        except ValueError as e:
            raise UpstreamError(f"Kroger returned non-JSON: {(r.text or '')[:300]}", r.status_code) from e
