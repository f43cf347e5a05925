# kroger_handler.py — Kroger store and product search for Lambda
#
# Two entry points, one per Lambda function:
#   locations_handler  ?lat=&lng=[&radius=25][&limit=10]
#   products_handler   ?term=[&locationId=][&limit=10]
# Kroger payloads are returned as-is.
import logging, math

from config import configure_logging
from errors import ConfigError, UpstreamError
from http_utils import (cdn_cache_headers, client_ip, cors_headers, empty_response,
                        error_response, json_response, query_params, rate_limit_headers,
                        request_method)
from kroger import ClientCredentialsAuth, KrogerClient
from ttl_cache import RateLimiter, TTLCache, make_key

configure_logging()
logger = logging.getLogger(__name__)

CACHE_TTL = 5 * 60
DEFAULT_RADIUS = 25
DEFAULT_LIMIT = 10

# survive across warm invocations of the same container
limiter = RateLimiter(limit=200, window=60)
responses = TTLCache(ttl=CACHE_TTL)
_client: KrogerClient | None = None


def get_client() -> KrogerClient:
    global _client
    if _client is None:
        _client = KrogerClient(ClientCredentialsAuth.from_env())
    return _client


def _int(value, default: int) -> int:
    try:
        return int(value) or default
    except (TypeError, ValueError):
        return default


def _proxy(event, endpoint, build, cdn, limiter, cache, client):
    """
    Shared request flow: CORS/method checks, rate limit, parameter parsing,
    response cache, then one GET against the Kroger API.

    ``build(query)`` returns ``(cache_params, kroger_params)`` or an error
    string for a 400.
    """
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

    built = build(query_params(event))
    if isinstance(built, str):
        return error_response(400, built, headers)
    cache_params, params = built

    key = make_key(endpoint, cache_params)
    data = cache.get(key)
    if data is None:
        logger.info("Kroger %s %s", endpoint, cache_params)
        try:
            data = (client if client is not None else get_client()).get(endpoint, params)
        except ConfigError:
            logger.exception("Kroger credentials missing")
            return error_response(500, "Server error", headers, message="Kroger is not configured")
        except UpstreamError as e:
            logger.exception("Kroger error")
            return error_response(502, "Upstream error", headers, message=str(e))
        except Exception as e:
            logger.exception("Kroger %s failed", endpoint)
            return error_response(500, "Server error", headers, message=str(e))
        cache.set(key, data)
    else:
        logger.info("Cache hit for %s", key)

    headers.update(cdn_cache_headers(*cdn))
    return json_response(200, data, headers)


# ---------- Locations ----------
def _location_params(query: dict):
    try:
        lat = float(query.get("lat"))
        lng = float(query.get("lng"))
    except (TypeError, ValueError):
        return "Missing ?lat= and ?lng= parameters"
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return "Invalid ?lat= or ?lng= value"
    radius = _int(query.get("radius"), DEFAULT_RADIUS)
    limit = _int(query.get("limit"), DEFAULT_LIMIT)
    # nearby coordinates share a cache entry
    cache_params = {"lat": round(lat, 2), "lng": round(lng, 2), "radius": radius, "limit": limit}
    return cache_params, {
        "filter.lat.near": lat,
        "filter.lon.near": lng,
        "filter.radiusInMiles": radius,
        "filter.limit": limit,
    }


def locations_handler(event, context, limiter: RateLimiter = limiter, cache: TTLCache = responses,
                      client: KrogerClient | None = None):
    return _proxy(event, "/locations", _location_params, (3600, 7200), limiter, cache, client)


# ---------- Products ----------
def _product_params(query: dict):
    term = (query.get("term") or "").strip()
    if not term:
        return "Missing ?term= parameter"
    location_id = (query.get("locationId") or "").strip() or None
    limit = _int(query.get("limit"), DEFAULT_LIMIT)
    return {"term": term, "locationId": location_id, "limit": limit}, {
        "filter.term": term,
        "filter.locationId": location_id,
        "filter.limit": limit,
    }


def products_handler(event, context, limiter: RateLimiter = limiter, cache: TTLCache = responses,
                     client: KrogerClient | None = None):
    return _proxy(event, "/products", _product_params, (300, 600), limiter, cache, client)
