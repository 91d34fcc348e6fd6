"""
Canonical entity shapes produced by the normalizers

All entities are frozen and use tuples for sequences, so a snapshot cannot
change once it has been handed to the presentation layer.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

HUMAN_FACTION = "Humans"
UNKNOWN = "Unknown"


@dataclass(frozen=True)
class WarStatistics:
    """Galaxy-wide counters from the war summary"""
    missions_won: int = 0
    missions_lost: int = 0
    mission_success_rate: float = 0
    terminid_kills: int = 0
    automaton_kills: int = 0
    illuminate_kills: int = 0
    deaths: int = 0
    accuracy: float = 0
    time_played: int = 0
    player_count: int = 0


@dataclass(frozen=True)
class Task:
    type: str = UNKNOWN
    values: Tuple[float, ...] = ()
    current: float = 0
    target: float = 1


@dataclass(frozen=True)
class Reward:
    type: str = UNKNOWN
    amount: float = 0


@dataclass(frozen=True)
class Assignment:
    """An active Major Order"""
    id: int
    title: str = UNKNOWN
    briefing: str = UNKNOWN
    description: Optional[str] = None
    tasks: Tuple[Task, ...] = ()
    progress: float = 0
    target: float = 1
    progress_percentage: float = 0
    expires_at: Optional[datetime] = None
    reward: Optional[Reward] = None


@dataclass(frozen=True)
class Position:
    x: float = 0
    y: float = 0


@dataclass(frozen=True)
class Planet:
    index: int
    name: str = UNKNOWN
    current_owner: str = UNKNOWN
    enemy_faction: Optional[str] = None
    player_count: int = 0
    missions_won: int = 0
    missions_lost: int = 0
    sector: str = UNKNOWN
    biome: str = UNKNOWN
    hazards: Tuple[str, ...] = ()
    position: Optional[Position] = None
    health: float = 0
    max_health: float = 0


@dataclass(frozen=True)
class Event:
    """A time-boxed defense event on a campaign planet"""
    health: float = 0
    max_health: float = 0
    progress: float = 0
    end_time: Optional[datetime] = None
    faction: str = UNKNOWN


@dataclass(frozen=True)
class Campaign:
    id: int
    planet_index: int
    planet_name: str = UNKNOWN
    faction: str = UNKNOWN
    progress: float = 0
    event: Optional[Event] = None


@dataclass(frozen=True)
class Dispatch:
    id: int
    type: str = "DISPATCH"
    message: str = ""
    published: Optional[datetime] = None
    author: Optional[str] = None


@dataclass(frozen=True)
class SteamNewsItem:
    id: str
    title: str = UNKNOWN
    url: str = ""
    contents: str = ""
    published: Optional[datetime] = None
    author: str = UNKNOWN


@dataclass(frozen=True)
class SpaceStation:
    id: int
    planet_index: Optional[int] = None
    position: Optional[Position] = None
    election_end: Optional[datetime] = None


@dataclass(frozen=True)
class AggregateSnapshot:
    """Composed result of one polling cycle"""
    last_updated: datetime
    war_statistics: Optional[WarStatistics] = None
    assignments: Tuple[Assignment, ...] = ()
    planets: Tuple[Planet, ...] = ()
    campaigns: Tuple[Campaign, ...] = ()
    dispatches: Tuple[Dispatch, ...] = ()
    steam_news: Tuple[SteamNewsItem, ...] = ()
    space_stations: Tuple[SpaceStation, ...] = ()
    degraded: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready form with the key names the presentation layer uses"""
        return {
            'warStats': _to_json(self.war_statistics),
            'assignments': _to_json(self.assignments),
            'planets': _to_json(self.planets),
            'campaigns': _to_json(self.campaigns),
            'dispatches': _to_json(self.dispatches),
            'steamNews': _to_json(self.steam_news),
            'spaceStations': _to_json(self.space_stations),
            'degraded': list(self.degraded),
            'lastUpdated': self.last_updated.isoformat(),
        }


def _camel_case(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)


def _to_json(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_to_json(item) for item in value]
    if hasattr(value, '__dataclass_fields__'):
        return {
            _camel_case(name): _to_json(getattr(value, name))
            for name in value.__dataclass_fields__
        }
    return value
