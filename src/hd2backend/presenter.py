"""
Presentation helpers for snapshot consumers

Provides the derived views the dashboard shows next to the raw snapshot:
top planets by activity, relative times and remaining time on orders.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from .models import HUMAN_FACTION, AggregateSnapshot, Campaign, Planet


@dataclass(frozen=True)
class PlanetActivity:
    """A planet joined with its active campaign, if any"""
    planet: Planet
    campaign: Optional[Campaign]

    @property
    def player_count(self) -> int:
        return self.planet.player_count


def top_planets(planets: Iterable[Planet], campaigns: Iterable[Campaign],
                limit: int = 5) -> List[PlanetActivity]:
    """Most populated planets that are human-held or have players on them"""
    campaign_map = {campaign.planet_index: campaign for campaign in campaigns}

    active = [
        PlanetActivity(planet=planet, campaign=campaign_map.get(planet.index))
        for planet in planets
        if planet.current_owner == HUMAN_FACTION or planet.player_count > 0
    ]
    active.sort(key=lambda activity: activity.player_count, reverse=True)
    return active[:limit]


def format_time_ago(timestamp: Optional[datetime], now: datetime) -> str:
    """Relative age such as '5m ago', '3h ago' or '2d ago'"""
    if timestamp is None:
        return "Unknown time"

    seconds = (now - timestamp).total_seconds()
    hours = int(seconds // 3600)

    if hours < 1:
        return f"{max(0, int(seconds // 60))}m ago"
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def format_time_remaining(expires_at: Optional[datetime], now: datetime) -> str:
    """Time left on an order such as '2d 4h', '3h 15m' or '42m'"""
    if expires_at is None:
        return "Unknown"

    seconds = (expires_at - now).total_seconds()
    if seconds <= 0:
        return "Expired"

    days = int(seconds // 86400)
    hours = int(seconds % 86400 // 3600)
    minutes = int(seconds % 3600 // 60)

    if days > 0:
        return f"{days}d {hours}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def snapshot_summary(snapshot: AggregateSnapshot) -> str:
    """One-line status text for logs"""
    players = snapshot.war_statistics.player_count if snapshot.war_statistics else 0
    summary = (
        f"{players} players, {len(snapshot.assignments)} major orders, "
        f"{len(snapshot.campaigns)} campaigns, {len(snapshot.dispatches)} dispatches, "
        f"{len(snapshot.steam_news)} news items"
    )
    if snapshot.degraded:
        summary += f" (fallback: {', '.join(snapshot.degraded)})"
    return summary
