"""
Shared pytest fixtures for the Nest poller tests.

Provides:
- Fake aiohttp session/response objects for the fetcher
- A scripted fetcher for the resolution loop
- A sample Nest API payload
- A validated configuration dict
"""
import copy

import pytest

from config_loader import load_config


# ============================================================================
# HTTP fakes
# ============================================================================

class FakeResponse:
    """Minimal stand-in for aiohttp.ClientResponse used as an async context manager"""

    def __init__(self, status=200, body="", headers=None):
        self.status = status
        self.body = body
        self.headers = headers or {}

    async def text(self):
        return self.body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Returns queued responses (or raises queued exceptions) from get()"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class ScriptedFetcher:
    """Fetcher double that replays FetchResults and records the endpoints it was asked for"""

    def __init__(self, *results):
        self.results = list(results)
        self.endpoints = []

    async def fetch(self, host, port, bearer_token):
        self.endpoints.append((host, port))
        item = self.results.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


# ============================================================================
# Data fixtures
# ============================================================================

SAMPLE_PAYLOAD = {
    "devices": {
        "thermostats": {
            "dev-1": {
                "device_id": "dev-1",
                "name": "Hallway",
                "ambient_temperature_f": 68,
                "target_temperature_f": 70,
                "target_temperature_high_f": 75,
                "target_temperature_low_f": 65,
                "humidity": 40,
                "hvac_mode": "heat",
                "hvac_state": "heating",
                "is_online": True,
                "has_fan": True,
                "has_leaf": False,
                "structure_id": "struct-1",
                "where_id": "where-1"
            }
        }
    },
    "structures": {
        "struct-1": {
            "wheres": {
                "where-1": {"name": "Hallway"},
                "where-2": {"name": "Bedroom"}
            }
        }
    }
}


@pytest.fixture
def sample_payload():
    return copy.deepcopy(SAMPLE_PAYLOAD)


@pytest.fixture
def config(tmp_path):
    """Validated config with a fast polling interval"""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "nest:\n"
        "  token: test-token\n"
        "influxdb:\n"
        "  host: influx.local\n"
        "polling:\n"
        "  interval_ms: 20\n"
    )
    return load_config(str(config_file), environ={})
