# lambda_handler.py — barcode lookup (FatSecret) for Lambda
import logging

from config import configure_logging
from errors import ConfigError, UpstreamError
from fatsecret import lookup_barcode
from http_utils import (cdn_cache_headers, client_ip, cors_headers, empty_response,
                        error_response, json_response, query_params, rate_limit_headers,
                        request_method)
from oauth1 import InvalidInput
from ttl_cache import RateLimiter, TTLCache, make_key

configure_logging()
logger = logging.getLogger(__name__)

CACHE_TTL = 5 * 60

# survive across warm invocations of the same container
limiter = RateLimiter(limit=200, window=60)
responses = TTLCache(ttl=CACHE_TTL)


def lambda_handler(event, context, limiter: RateLimiter = limiter, cache: TTLCache = responses):
    limiter.cleanup()
    cache.cleanup()
    cors = cors_headers("GET, OPTIONS")

    method = request_method(event)
    if method == "OPTIONS":
        return empty_response(200, cors)
    if method != "GET":
        return error_response(405, "GET only", cors)

    rl = limiter.check(client_ip(event))
    headers = {**cors, **rate_limit_headers(rl)}
    if not rl.allowed:
        return error_response(429, "Too many requests", headers,
                              message=f"Rate limit exceeded. Try again in ~{rl.reset_seconds}s.")

    code = (query_params(event).get("code") or "").strip()
    if not code:
        return error_response(400, "Missing ?code=", headers)

    key = make_key("barcode", {"code": code})
    result = cache.get(key)
    if result is None:
        logger.info("Looking up barcode: %s", code)
        try:
            result = lookup_barcode(code)
        except (ConfigError, InvalidInput):
            logger.exception("barcode lookup misconfigured")
            return error_response(500, "Server error", headers, message="Signing is not configured")
        except UpstreamError as e:
            logger.exception("FatSecret error")
            return error_response(502, "Upstream error", headers, message=str(e))
        except Exception as e:
            logger.exception("barcode lookup failed")
            return error_response(500, "Server error", headers, message=str(e))

        if result is None:
            return error_response(404, "Not found", headers, barcode=code)
        cache.set(key, result)
    else:
        logger.info("Cache hit for barcode %s", code)

    headers.update(cdn_cache_headers(86400, 604800))
    return json_response(200, {"success": True, **result}, headers)
