import json

import pytest

import config


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


class FakeSession:
    """Stands in for the requests module: records calls, replays queued responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def clear_config_cache():
    config.get_fatsecret_credentials.cache_clear()
    config.get_kroger_credentials.cache_clear()
    yield
    config.get_fatsecret_credentials.cache_clear()
    config.get_kroger_credentials.cache_clear()


@pytest.fixture
def fatsecret_env(monkeypatch):
    monkeypatch.setenv("FATSECRET_CONSUMER_KEY", "test-consumer-key")
    monkeypatch.setenv("FATSECRET_CONSUMER_SECRET", "test-consumer-secret")
    monkeypatch.delenv("FATSECRET_CONSUMER_KEY_SSM", raising=False)
    monkeypatch.delenv("FATSECRET_CONSUMER_SECRET_SSM", raising=False)


@pytest.fixture
def credentials():
    return config.ConsumerCredentials("test-consumer-key", "test-consumer-secret")
