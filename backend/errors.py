# -*- coding: utf-8 -*-
# errors.py — exceptions shared by the upstream clients and handlers


class ConfigError(RuntimeError):
    """A required setting or secret is missing."""


class UpstreamError(RuntimeError):
    def __init__(self, message: str, status: int | None = None, payload=None):
        super().__init__(message)
        self.status = status
        self.payload = payload


class UpstreamRejection(UpstreamError):
    """Upstream refused a correctly signed request (clock skew or nonce reuse)."""
