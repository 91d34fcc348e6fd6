"""
Shared fixtures for the status backend tests

Sample payloads mirror the shapes returned by api.helldivers2.dev.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import pytest

from hd2backend.aggregator import ENDPOINT_PATHS, Aggregator, Endpoint
from hd2backend.config import BackendConfig
from hd2backend.errors import NetworkError, TransportError
from hd2backend.orchestrator import Orchestrator
from hd2backend.rate_limiter import RateLimiter

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    return dt.isoformat().replace('+00:00', 'Z')


WAR_PAYLOAD = {
    "started": "2024-01-23T20:05:13Z",
    "ended": "2028-02-08T20:04:55Z",
    "now": iso(NOW),
    "clientVersion": "0.3.0",
    "statistics": {
        "missionsWon": 350000000,
        "missionsLost": 35000000,
        "missionTime": 1000,
        "terminidKills": 90000000000,
        "automatonKills": 30000000000,
        "illuminateKills": 4000000000,
        "bulletsFired": 1,
        "bulletsHit": 1,
        "timePlayed": 2000000,
        "deaths": 1500000000,
        "revives": 0,
        "friendlies": 200000000,
        "missionSuccessRate": 91,
        "accuracy": 68,
        "playerCount": 54321
    }
}

ASSIGNMENTS_PAYLOAD = [
    {
        "id": 1296810439,
        "progress": [25],
        "title": "MAJOR ORDER",
        "briefing": "Hold the line on the eastern front.",
        "description": "Successfully complete 50 operations.",
        "tasks": [{"type": 11, "values": [1, 1, 50], "valueTypes": [3, 11, 12]}],
        "reward": {"type": 1, "amount": 45},
        "expiration": iso(NOW + timedelta(days=2, hours=4))
    }
]

PLANETS_PAYLOAD = [
    {
        "index": 0,
        "name": "SUPER EARTH",
        "sector": "Sol",
        "biome": None,
        "hazards": [],
        "position": {"x": 0, "y": 0},
        "currentOwner": "Humans",
        "health": 1000000,
        "maxHealth": 1000000,
        "statistics": {"playerCount": 120, "missionsWon": 10, "missionsLost": 1}
    },
    {
        "index": 5,
        "name": "MALEVELON CREEK",
        "sector": "Severin",
        "biome": {"name": "Rainforest", "description": "Wet."},
        "hazards": [{"name": "Rainstorms", "description": "Rain."}],
        "position": {"x": 0.1, "y": -0.4},
        "currentOwner": "Automaton",
        "health": 250000,
        "maxHealth": 1000000,
        "statistics": {"playerCount": 40000, "missionsWon": 900, "missionsLost": 100}
    }
]

CAMPAIGNS_PAYLOAD = [
    {
        "id": 50001,
        "planet": {
            "index": 5,
            "name": "MALEVELON CREEK",
            "currentOwner": "Automaton",
            "health": 250000,
            "maxHealth": 1000000,
            "event": None
        },
        "type": 0,
        "count": 3,
        "faction": "Automaton"
    },
    {
        "id": 50002,
        "planet": {
            "index": 7,
            "name": "ESTANU",
            "currentOwner": "Humans",
            "health": 1000000,
            "maxHealth": 1000000,
            "event": {
                "id": 4000,
                "eventType": 1,
                "faction": "Terminids",
                "health": 300000,
                "maxHealth": 1000000,
                "startTime": iso(NOW - timedelta(hours=6)),
                "endTime": iso(NOW + timedelta(hours=18))
            }
        },
        "type": 0,
        "count": 1,
        "faction": "Terminids"
    }
]

DISPATCHES_PAYLOAD = [
    {"id": 2801, "published": iso(NOW - timedelta(hours=2)), "type": 0, "message": "Reinforcements inbound."},
    {"id": 2790, "published": iso(NOW - timedelta(hours=40)), "type": 1, "message": "Old news."}
]

STEAM_PAYLOAD = [
    {
        "id": "5124549120193584",
        "title": "PATCH 01.001.100",
        "url": "https://store.steampowered.com/news/app/553850/view/5124549120193584",
        "author": "Arrowhead",
        "content": "Balance changes.",
        "publishedAt": iso(NOW - timedelta(days=1))
    },
    {
        "id": "5124549120193000",
        "title": "PATCH 01.001.000",
        "url": "https://store.steampowered.com/news/app/553850/view/5124549120193000",
        "author": "Arrowhead",
        "content": "Older changes.",
        "publishedAt": iso(NOW - timedelta(days=9))
    }
]

SPACE_STATIONS_PAYLOAD = [
    {
        "id32": 749875195,
        "planet": {"index": 64, "name": "MERIDIA", "position": {"x": -0.05, "y": 0.2}},
        "electionEnd": iso(NOW + timedelta(days=1)),
        "flags": 1
    }
]

LIVE_PAYLOADS: Dict[Endpoint, Any] = {
    Endpoint.WAR: WAR_PAYLOAD,
    Endpoint.ASSIGNMENTS: ASSIGNMENTS_PAYLOAD,
    Endpoint.PLANETS: PLANETS_PAYLOAD,
    Endpoint.CAMPAIGNS: CAMPAIGNS_PAYLOAD,
    Endpoint.DISPATCHES: DISPATCHES_PAYLOAD,
    Endpoint.STEAM_NEWS: STEAM_PAYLOAD,
    Endpoint.SPACE_STATIONS: SPACE_STATIONS_PAYLOAD,
}


class FakeFetcher:
    """Serves canned payloads; exceptions in the table are raised instead"""

    def __init__(self, responses: Dict[Endpoint, Any], delays: Dict[Endpoint, float] = None):
        self.responses = {ENDPOINT_PATHS[endpoint]: value for endpoint, value in responses.items()}
        self.delays = {ENDPOINT_PATHS[endpoint]: value for endpoint, value in (delays or {}).items()}
        self.calls = []

    async def fetch(self, path: str) -> Any:
        self.calls.append(path)
        await asyncio.sleep(self.delays.get(path, 0))
        value = self.responses.get(path)
        if isinstance(value, Exception):
            raise value
        return value


def make_orchestrator(responses: Dict[Endpoint, Any], config: BackendConfig = None,
                      delays: Dict[Endpoint, float] = None) -> Orchestrator:
    fetcher = FakeFetcher(responses, delays)
    limiter = RateLimiter(max_calls=100, time_window=10.0)
    return Orchestrator(Aggregator(fetcher, limiter), config or BackendConfig(), clock=lambda: NOW)


@pytest.fixture
def live_payloads() -> Dict[Endpoint, Any]:
    return dict(LIVE_PAYLOADS)


@pytest.fixture
def network_failure():
    def _make(endpoint: Endpoint, status: int = 503):
        return NetworkError(ENDPOINT_PATHS[endpoint], status)
    return _make


@pytest.fixture
def transport_failure():
    def _make(endpoint: Endpoint):
        return TransportError(ENDPOINT_PATHS[endpoint], "Connection refused")
    return _make
