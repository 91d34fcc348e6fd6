"""
Static fallback data, substituted per category when an endpoint fails

Values are fixed so that every degraded snapshot looks the same.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Tuple

from .aggregator import Endpoint
from .models import (
    Assignment, Campaign, Dispatch, Event, Planet, Position, Reward,
    SpaceStation, SteamNewsItem, Task, WarStatistics,
)

FALLBACK_EPOCH = datetime(2024, 2, 8, 0, 0, tzinfo=timezone.utc)


def fallback_war_statistics() -> WarStatistics:
    return WarStatistics(
        missions_won=0,
        missions_lost=0,
        mission_success_rate=0,
        terminid_kills=0,
        automaton_kills=0,
        illuminate_kills=0,
        deaths=0,
        accuracy=0,
        time_played=0,
        player_count=0
    )


def fallback_assignments() -> Tuple[Assignment, ...]:
    return (
        Assignment(
            id=0,
            title="MAJOR ORDER",
            briefing="Major Order data is currently unavailable",
            description="Stand by for new orders from Super Earth High Command.",
            tasks=(Task(type="Unknown", values=(0, 0, 1), current=0, target=1),),
            progress=0,
            target=1,
            progress_percentage=0,
            expires_at=None,
            reward=Reward(type="Medals", amount=0)
        ),
    )


def fallback_planets() -> Tuple[Planet, ...]:
    return (
        Planet(
            index=0,
            name="Super Earth",
            current_owner="Humans",
            enemy_faction=None,
            sector="Sol",
            biome="Unknown",
            position=Position(x=0, y=0),
            health=1000000,
            max_health=1000000
        ),
    )


def fallback_campaigns() -> Tuple[Campaign, ...]:
    return (
        Campaign(
            id=0,
            planet_index=0,
            planet_name="Super Earth",
            faction="Humans",
            progress=0,
            event=Event(health=0, max_health=0, progress=0, end_time=None, faction="Unknown")
        ),
    )


def fallback_dispatches() -> Tuple[Dispatch, ...]:
    return (
        Dispatch(
            id=0,
            type="DISPATCH",
            message="Dispatches are temporarily unavailable. Await further orders, Helldiver.",
            published=FALLBACK_EPOCH,
            author="High Command"
        ),
    )


def fallback_steam_news() -> Tuple[SteamNewsItem, ...]:
    return (
        SteamNewsItem(
            id="0",
            title="Steam news unavailable",
            url="https://store.steampowered.com/news/app/553850",
            contents="Latest patch notes and announcements could not be loaded.",
            published=FALLBACK_EPOCH,
            author="Arrowhead Game Studios"
        ),
    )


def fallback_space_stations() -> Tuple[SpaceStation, ...]:
    return (
        SpaceStation(id=0, planet_index=0, position=Position(x=0, y=0), election_end=None),
    )


FALLBACK_BUILDERS: Dict[Endpoint, Callable[[], Any]] = {
    Endpoint.WAR: fallback_war_statistics,
    Endpoint.ASSIGNMENTS: fallback_assignments,
    Endpoint.PLANETS: fallback_planets,
    Endpoint.CAMPAIGNS: fallback_campaigns,
    Endpoint.DISPATCHES: fallback_dispatches,
    Endpoint.STEAM_NEWS: fallback_steam_news,
    Endpoint.SPACE_STATIONS: fallback_space_stations,
}


def fallback_for(endpoint: Endpoint) -> Any:
    """Mock value for one category"""
    return FALLBACK_BUILDERS[endpoint]()
