"""
Pytest configuration for Discover Cymru tests.

Provides a fake aiohttp session that mimics the Google Geocoding API and
records every call, so tests can assert exactly how many provider requests
were made and how many were in flight at once.
"""
import asyncio
import os

import pytest

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ["REDIS_URL"] = ""


def google_body(lat, lng):
    return {"status": "OK", "results": [{"geometry": {"location": {"lat": lat, "lng": lng}}}]}


EMPTY_BODY = {"status": "ZERO_RESULTS", "results": []}


class FakeGeocodeSession:
    """Stands in for aiohttp.ClientSession.get against the Geocoding API.

    `responses` maps organisation name -> (status, body) or an exception
    instance to raise. Unknown names get (200, EMPTY_BODY).
    """

    class Resp:
        def __init__(self, session, name, status, payload):
            self._session = session
            self._name = name
            self.status = status
            self._payload = payload

        async def __aenter__(self):
            s = self._session
            s.started_after.append(s.completed)
            s.in_flight += 1
            s.peak_in_flight = max(s.peak_in_flight, s.in_flight)
            try:
                await asyncio.sleep(s.delay)
            except BaseException:
                s.in_flight -= 1
                raise
            if isinstance(self._payload, BaseException):
                s.in_flight -= 1
                s.completed += 1
                raise self._payload
            return self

        async def __aexit__(self, exc_type, exc, tb):
            self._session.in_flight -= 1
            self._session.completed += 1
            return False

        async def json(self):
            return self._payload

    def __init__(self, responses=None, delay=0.01, region_suffix=", Wales, UK"):
        self.responses = dict(responses or {})
        self.delay = delay
        self.region_suffix = region_suffix
        self.calls = []
        self.started_after = []
        self.in_flight = 0
        self.peak_in_flight = 0
        self.completed = 0

    def _name_for(self, address):
        if address.endswith(self.region_suffix):
            return address[: -len(self.region_suffix)]
        return address

    def get(self, url, params=None, timeout=None, headers=None):
        address = (params or {}).get("address", "")
        name = self._name_for(address)
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout, "name": name})
        outcome = self.responses.get(name, (200, EMPTY_BODY))
        if isinstance(outcome, BaseException):
            return FakeGeocodeSession.Resp(self, name, 0, outcome)
        status, payload = outcome
        return FakeGeocodeSession.Resp(self, name, status, payload)

    def call_count(self, name=None):
        if name is None:
            return len(self.calls)
        return sum(1 for c in self.calls if c["name"] == name)


@pytest.fixture
def cache_path(tmp_path):
    return tmp_path / "geocode-cache.json"


@pytest.fixture(autouse=True)
def clean_metrics():
    from discover_cymru.src.metrics import reset_memory_metrics
    reset_memory_metrics()
    yield
    reset_memory_metrics()
