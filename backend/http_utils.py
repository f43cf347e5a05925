# -*- coding: utf-8 -*-
# http_utils.py — API Gateway event parsing and Lambda proxy responses

import base64, json

from config import cors_origin
from ttl_cache import RateLimitStatus


# ---------- Event helpers (REST v1 and HTTP v2 payloads) ----------
def _headers(event: dict) -> dict:
    return {str(k).lower(): v for k, v in (event.get("headers") or {}).items()}


def header(event: dict, name: str, default=None):
    return _headers(event).get(name.lower(), default)


def request_method(event: dict) -> str:
    method = event.get("httpMethod") or (
        event.get("requestContext", {}).get("http", {}).get("method", "")
    )
    return method.upper()


def query_params(event: dict) -> dict:
    return event.get("queryStringParameters") or {}


def raw_body(event: dict) -> bytes:
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        return base64.b64decode(body)
    return body.encode("utf-8")


def client_ip(event: dict) -> str:
    xff = header(event, "x-forwarded-for")
    if isinstance(xff, str) and xff.strip():
        return xff.split(",")[0].strip()
    real_ip = header(event, "x-real-ip")
    if real_ip:
        return real_ip
    ctx = event.get("requestContext") or {}
    return (ctx.get("http", {}).get("sourceIp")
            or ctx.get("identity", {}).get("sourceIp")
            or "unknown")


# ---------- Headers ----------
def cors_headers(methods: str = "GET, OPTIONS", allow_headers: str = "Content-Type") -> dict:
    return {
        "Access-Control-Allow-Origin": cors_origin(),
        "Access-Control-Allow-Methods": methods,
        "Access-Control-Allow-Headers": allow_headers,
    }


def cdn_cache_headers(s_maxage: int, stale_while_revalidate: int) -> dict:
    return {"Cache-Control": f"public, s-maxage={s_maxage}, stale-while-revalidate={stale_while_revalidate}"}


def rate_limit_headers(status: RateLimitStatus) -> dict:
    return {
        "X-RateLimit-Limit": str(status.limit),
        "X-RateLimit-Remaining": str(status.remaining),
        "X-RateLimit-Reset": str(status.reset_seconds),
    }


# ---------- Responses ----------
def json_response(status: int, data, headers: dict | None = None) -> dict:
    return {"statusCode": status,
            "headers": {**(headers or {}), "Content-Type": "application/json"},
            "body": json.dumps(data, ensure_ascii=False)}


def error_response(status: int, msg: str, headers: dict | None = None, **extra) -> dict:
    return json_response(status, {"error": msg, **extra}, headers)


def empty_response(status: int = 200, headers: dict | None = None) -> dict:
    return {"statusCode": status, "headers": headers or {}, "body": ""}
