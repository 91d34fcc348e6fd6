"""
Normalizers from resolved payloads to canonical entities

Every function here is total: missing or malformed fields fall back to
defaults (0, empty, "Unknown") and entries that are not objects are
skipped. Nothing in this module raises on bad upstream data.
"""

import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .models import (
    HUMAN_FACTION, UNKNOWN, Assignment, Campaign, Dispatch, Event, Planet,
    Position, Reward, SpaceStation, SteamNewsItem, Task, WarStatistics,
)
from .parser import extract_value_by_path

logger = logging.getLogger(__name__)

DEFAULT_DISPATCH_LABEL = "DISPATCH"

NUMERIC_DISPATCH_TYPES = {
    0: "DISPATCH",
    1: "MAJOR ORDER",
    2: "TACTICAL",
}

SYMBOLIC_DISPATCH_TYPES = {
    "MAJOR_ORDER": "MAJOR ORDER",
    "TACTICAL_UPDATE": "TACTICAL",
    "SUPPLY_DROP": "SUPPLY",
    "INTELLIGENCE": "INTEL",
}

# fromisoformat on 3.10 only takes 3 or 6 fractional digits
_FRACTION_PATTERN = re.compile(r'(\d{2}:\d{2}:\d{2})\.(\d+)')


def _six_digit_fraction(match: re.Match) -> str:
    return f"{match.group(1)}.{match.group(2)[:6].ljust(6, '0')}"


# Field coercion helpers

def _as_number(value: Any, default: float = 0) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        # Integers beyond float range would overflow later divisions
        try:
            float(value)
        except OverflowError:
            return default
        return value
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return default
    if isinstance(value, float):
        return value if math.isfinite(value) else default
    return default


def _as_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    number = _as_number(value, None)
    if number is None:
        return default
    try:
        return int(number)
    except (OverflowError, ValueError):
        return default


def _as_str(value: Any, default: str = UNKNOWN) -> str:
    if isinstance(value, str) and value.strip():
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return str(value)
        except ValueError:
            return default
    return default


def _as_optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _entries(payload: Any) -> List[Dict[str, Any]]:
    return [entry for entry in _as_list(payload) if isinstance(entry, dict)]


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def _remaining_fraction(health: float, max_health: float) -> float:
    """Progress toward zero health, as a fraction in [0, 1]"""
    if max_health <= 0:
        return 0.0
    return _clamp(1 - health / max_health, 0.0, 1.0)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse ISO-8601 strings or epoch seconds into an aware UTC datetime"""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if re.fullmatch(r'\d+(\.\d+)?', text):
            value = float(text)
        else:
            text = _FRACTION_PATTERN.sub(_six_digit_fraction, text.replace('Z', '+00:00'))
            try:
                parsed = datetime.fromisoformat(text)
            except ValueError:
                logger.debug(f"Unparseable timestamp: {value!r}")
                return None
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc)

    if isinstance(value, (int, float)):
        try:
            # Milliseconds show up occasionally
            seconds = value / 1000 if value > 1e11 else value
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    return None


def _position(value: Any) -> Optional[Position]:
    data = _as_dict(value)
    if not data:
        return None
    return Position(x=_as_number(data.get('x')), y=_as_number(data.get('y')))


# Normalizers

def normalize_war_summary(payload: Any) -> WarStatistics:
    """War summary counters; they normally live under 'statistics'"""
    data = _as_dict(payload)
    stats = _as_dict(data.get('statistics')) or data

    return WarStatistics(
        missions_won=_as_int(stats.get('missionsWon')),
        missions_lost=_as_int(stats.get('missionsLost')),
        mission_success_rate=_as_number(stats.get('missionSuccessRate')),
        terminid_kills=_as_int(stats.get('terminidKills')),
        automaton_kills=_as_int(stats.get('automatonKills')),
        illuminate_kills=_as_int(stats.get('illuminateKills')),
        deaths=_as_int(stats.get('deaths')),
        accuracy=_as_number(stats.get('accuracy')),
        time_played=_as_int(stats.get('timePlayed')),
        player_count=_as_int(stats.get('playerCount'))
    )


def _normalize_task(task: Dict[str, Any], current: Any) -> Task:
    values = tuple(_as_number(v) for v in _as_list(task.get('values')))
    target = values[2] if len(values) > 2 and values[2] else 1
    return Task(
        type=_as_str(task.get('type')),
        values=values,
        current=_as_number(current),
        target=target
    )


def normalize_assignment(entry: Dict[str, Any]) -> Assignment:
    progress_values = _as_list(entry.get('progress'))
    tasks = tuple(
        _normalize_task(task, progress_values[i] if i < len(progress_values) else 0)
        for i, task in enumerate(_entries(entry.get('tasks')))
    )

    # progress[0] counts toward tasks[0]; without tasks there is nothing to measure
    progress = _as_number(extract_value_by_path(entry, 'progress[0]')) if tasks else 0
    target = _as_number(extract_value_by_path(entry, 'tasks[0].values[2]'), 1) or 1

    reward_data = entry.get('reward')
    reward = None
    if isinstance(reward_data, dict):
        reward = Reward(
            type=_as_str(reward_data.get('type')),
            amount=_as_number(reward_data.get('amount'))
        )

    return Assignment(
        id=_as_int(entry.get('id')),
        title=_as_str(entry.get('title')),
        briefing=_as_str(entry.get('briefing')),
        description=_as_optional_str(entry.get('description')),
        tasks=tasks,
        progress=progress,
        target=target,
        progress_percentage=_clamp(progress / target * 100, 0, 100),
        expires_at=parse_timestamp(entry.get('expiration', entry.get('expiresAt'))),
        reward=reward
    )


def normalize_assignments(payload: Any) -> Tuple[Assignment, ...]:
    return tuple(normalize_assignment(entry) for entry in _entries(payload))


def _biome_name(value: Any) -> str:
    if isinstance(value, dict):
        return _as_str(value.get('name'))
    return _as_str(value)


def _hazard_names(value: Any) -> Tuple[str, ...]:
    names = []
    for hazard in _as_list(value):
        name = hazard.get('name') if isinstance(hazard, dict) else hazard
        if _as_optional_str(name):
            names.append(name)
    return tuple(names)


def normalize_planet(entry: Dict[str, Any]) -> Optional[Planet]:
    """A planet, or None when it has no usable index"""
    index = _as_int(entry.get('index'), None)
    if index is None:
        logger.debug(f"Skipping planet without index: {entry.get('name')!r}")
        return None

    owner = _as_str(entry.get('currentOwner'))
    stats = _as_dict(entry.get('statistics'))

    return Planet(
        index=index,
        name=_as_str(entry.get('name')),
        current_owner=owner,
        enemy_faction=None if owner in (HUMAN_FACTION, UNKNOWN) else owner,
        player_count=_as_int(stats.get('playerCount')),
        missions_won=_as_int(stats.get('missionsWon')),
        missions_lost=_as_int(stats.get('missionsLost')),
        sector=_as_str(entry.get('sector')),
        biome=_biome_name(entry.get('biome')),
        hazards=_hazard_names(entry.get('hazards')),
        position=_position(entry.get('position')),
        health=_as_number(entry.get('health')),
        max_health=_as_number(entry.get('maxHealth'))
    )


def normalize_planets(payload: Any) -> Tuple[Planet, ...]:
    planets = (normalize_planet(entry) for entry in _entries(payload))
    return tuple(planet for planet in planets if planet is not None)


def normalize_event(value: Any) -> Optional[Event]:
    data = _as_dict(value)
    if not data:
        return None

    health = _as_number(data.get('health'))
    max_health = _as_number(data.get('maxHealth'))
    return Event(
        health=health,
        max_health=max_health,
        progress=_remaining_fraction(health, max_health),
        end_time=parse_timestamp(data.get('endTime')),
        faction=_as_str(data.get('faction'))
    )


def normalize_campaign(entry: Dict[str, Any]) -> Optional[Campaign]:
    planet = _as_dict(entry.get('planet'))
    planet_index = _as_int(planet.get('index', entry.get('planetIndex')), None)
    if planet_index is None:
        logger.debug(f"Skipping campaign without planet index: {entry.get('id')!r}")
        return None

    event = normalize_event(planet.get('event'))
    if event is not None:
        progress = event.progress
    elif isinstance(entry.get('progress'), (int, float)) and not isinstance(entry.get('progress'), bool):
        progress = _clamp(entry['progress'], 0.0, 1.0)
    else:
        progress = _remaining_fraction(_as_number(planet.get('health')), _as_number(planet.get('maxHealth')))

    return Campaign(
        id=_as_int(entry.get('id')),
        planet_index=planet_index,
        planet_name=_as_str(planet.get('name')),
        faction=_as_str(entry.get('faction'), _as_str(planet.get('currentOwner'))),
        progress=progress,
        event=event
    )


def normalize_campaigns(payload: Any) -> Tuple[Campaign, ...]:
    campaigns = (normalize_campaign(entry) for entry in _entries(payload))
    return tuple(campaign for campaign in campaigns if campaign is not None)


def dispatch_type_label(value: Any) -> str:
    """Map numeric or symbolic dispatch types onto one label set"""
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())

    if isinstance(value, int) and not isinstance(value, bool):
        return NUMERIC_DISPATCH_TYPES.get(value, DEFAULT_DISPATCH_LABEL)

    if isinstance(value, str):
        return SYMBOLIC_DISPATCH_TYPES.get(value.strip().upper(), DEFAULT_DISPATCH_LABEL)

    return DEFAULT_DISPATCH_LABEL


def normalize_dispatches(payload: Any) -> Tuple[Dispatch, ...]:
    return tuple(
        Dispatch(
            id=_as_int(entry.get('id')),
            type=dispatch_type_label(entry.get('type')),
            message=_as_str(entry.get('message'), ""),
            published=parse_timestamp(entry.get('published')),
            author=_as_optional_str(entry.get('author'))
        )
        for entry in _entries(payload)
    )


def normalize_steam_news(payload: Any) -> Tuple[SteamNewsItem, ...]:
    items = []
    for entry in _entries(payload):
        # Steam's own feed uses gid/contents/date, the API mirror id/content/publishedAt
        published = entry.get('date') if 'date' in entry else entry.get('publishedAt')
        items.append(SteamNewsItem(
            id=_as_str(entry.get('id', entry.get('gid'))),
            title=_as_str(entry.get('title')),
            url=_as_str(entry.get('url'), ""),
            contents=_as_str(entry.get('contents', entry.get('content')), ""),
            published=parse_timestamp(published),
            author=_as_str(entry.get('author'))
        ))
    return tuple(items)


def normalize_space_stations(payload: Any) -> Tuple[SpaceStation, ...]:
    stations = []
    for entry in _entries(payload):
        planet = _as_dict(entry.get('planet'))
        stations.append(SpaceStation(
            id=_as_int(entry.get('id32', entry.get('id'))),
            planet_index=_as_int(planet.get('index'), None),
            position=_position(planet.get('position', entry.get('position'))),
            election_end=parse_timestamp(entry.get('electionEnd'))
        ))
    return tuple(stations)
