#!/usr/bin/env python3
"""
Tests for the status backend

Covers configuration loading, one polling cycle with callbacks, failure
handling and the presentation helpers, without network connectivity.
"""

import asyncio
import json
from datetime import timedelta

from hd2backend.aggregator import Endpoint
from hd2backend.config import BackendConfig, create_sample_config, load_config
from hd2backend.main import StatusBackend
from hd2backend.models import Planet
from hd2backend.presenter import (
    format_time_ago, format_time_remaining, snapshot_summary, top_planets,
)

from conftest import NOW, make_orchestrator


def test_default_config():
    config = BackendConfig()

    assert config.api.base_url == "https://api.helldivers2.dev/api"
    assert config.rate_limit.max_calls == 5
    assert config.rate_limit.time_window == 10.0
    assert config.rate_limit.buffer == 1.0
    assert config.filters.dispatch_window_hours == 36
    assert config.fallback.enabled is True
    assert set(config.api.get_headers()) == {'X-Super-Client', 'X-Super-Contact'}


def test_config_from_dict_keeps_defaults_for_missing_keys():
    config = BackendConfig.from_dict({
        'api': {'client': 'my-dashboard', 'contact': 'me@example.com'},
        'rate_limit': {'max_calls': 3},
        'log_level': 'DEBUG'
    })

    assert config.api.client == 'my-dashboard'
    assert config.api.request_timeout == 15.0
    assert config.rate_limit.max_calls == 3
    assert config.rate_limit.time_window == 10.0
    assert config.polling.interval == 60
    assert config.log_level == 'DEBUG'


def test_sample_config_round_trip(tmp_path):
    path = tmp_path / "conf" / "hd2backend.yaml"
    create_sample_config(str(path))

    loaded = BackendConfig.load_from_file(str(path))

    assert loaded.to_dict() == BackendConfig().to_dict()


def test_json_config_is_supported(tmp_path):
    path = tmp_path / "hd2backend.json"
    path.write_text(json.dumps({'polling': {'interval': 30}, 'fallback': {'enabled': False}}))

    config = load_config(str(path))

    assert config.polling.interval == 30
    assert config.fallback.enabled is False


def test_missing_or_broken_config_uses_defaults(tmp_path):
    assert load_config(str(tmp_path / "absent.yaml")).to_dict() == BackendConfig().to_dict()

    broken = tmp_path / "broken.yaml"
    broken.write_text("api:\n  unknown_key: 1\n")
    assert load_config(str(broken)).to_dict() == BackendConfig().to_dict()


def _ready_backend(responses) -> StatusBackend:
    backend = StatusBackend(config=BackendConfig())
    backend.orchestrator = make_orchestrator(responses)
    backend.startup_complete = True
    return backend


def test_poll_once_notifies_sync_and_async_callbacks(live_payloads):
    backend = _ready_backend(live_payloads)
    received = []

    async def async_callback(snapshot):
        received.append(('async', snapshot))

    backend.register_snapshot_callback(lambda snapshot: received.append(('sync', snapshot)))
    backend.register_snapshot_callback(async_callback)

    snapshot = asyncio.run(backend.poll_once())

    assert snapshot is not None
    assert backend.latest_snapshot is snapshot
    assert [kind for kind, _ in received] == ['sync', 'async']
    assert all(item is snapshot for _, item in received)
    assert backend.stats['successful_polls'] == 1
    assert backend.stats['degraded_polls'] == 0


def test_failing_callback_does_not_break_cycle(live_payloads):
    backend = _ready_backend(live_payloads)

    def broken_callback(snapshot):
        raise RuntimeError("display unplugged")

    backend.register_snapshot_callback(broken_callback)

    assert asyncio.run(backend.poll_once()) is not None
    assert backend.last_error is None


def test_degraded_cycle_is_counted(live_payloads, network_failure):
    live_payloads[Endpoint.CAMPAIGNS] = network_failure(Endpoint.CAMPAIGNS)
    backend = _ready_backend(live_payloads)

    snapshot = asyncio.run(backend.poll_once())

    assert snapshot.degraded == ("campaigns",)
    assert backend.stats['degraded_polls'] == 1
    assert backend.get_status()['degraded'] == ["campaigns"]


def test_failed_cycle_keeps_previous_snapshot(live_payloads):
    backend = _ready_backend(live_payloads)
    first = asyncio.run(backend.poll_once())

    class BrokenAggregator:
        async def fetch_all(self):
            raise RuntimeError("pipeline defect")

    backend.orchestrator.aggregator = BrokenAggregator()
    second = asyncio.run(backend.poll_once())

    assert second is None
    assert backend.latest_snapshot is first
    assert "pipeline defect" in backend.last_error
    assert backend.stats == {
        'total_polls': 2,
        'successful_polls': 1,
        'failed_polls': 1,
        'degraded_polls': 0
    }


def test_snapshot_to_dict_is_json_ready(live_payloads):
    snapshot = asyncio.run(make_orchestrator(live_payloads).build_snapshot())

    data = snapshot.to_dict()
    json.dumps(data)

    assert data['lastUpdated'] == NOW.isoformat()
    assert data['warStats']['playerCount'] == 54321
    assert data['assignments'][0]['progressPercentage'] == 50
    assert data['planets'][1]['enemyFaction'] == "Automaton"
    assert data['spaceStations'][0]['planetIndex'] == 64
    assert data['degraded'] == []


def test_top_planets_orders_by_players(live_payloads):
    snapshot = asyncio.run(make_orchestrator(live_payloads).build_snapshot())
    planets = snapshot.planets + (Planet(index=20, name="EMPTY", current_owner="Terminids"),)

    top = top_planets(planets, snapshot.campaigns)

    assert [activity.planet.index for activity in top] == [5, 0]
    assert top[0].campaign.id == 50001
    assert top[1].campaign is None
    assert top_planets(planets, snapshot.campaigns, limit=1)[0].player_count == 40000


def test_time_formatting():
    assert format_time_ago(NOW - timedelta(minutes=5), NOW) == "5m ago"
    assert format_time_ago(NOW - timedelta(hours=3), NOW) == "3h ago"
    assert format_time_ago(NOW - timedelta(days=2, hours=1), NOW) == "2d ago"
    assert format_time_ago(None, NOW) == "Unknown time"

    assert format_time_remaining(NOW + timedelta(days=2, hours=4), NOW) == "2d 4h"
    assert format_time_remaining(NOW + timedelta(hours=3, minutes=15), NOW) == "3h 15m"
    assert format_time_remaining(NOW + timedelta(minutes=42), NOW) == "42m"
    assert format_time_remaining(NOW - timedelta(minutes=1), NOW) == "Expired"
    assert format_time_remaining(None, NOW) == "Unknown"


def test_snapshot_summary_mentions_fallback(live_payloads, transport_failure):
    live_payloads[Endpoint.WAR] = transport_failure(Endpoint.WAR)
    snapshot = asyncio.run(make_orchestrator(live_payloads).build_snapshot())

    summary = snapshot_summary(snapshot)

    assert summary.startswith("0 players")
    assert "(fallback: war)" in summary
