"""
Snapshot orchestrator

Runs the aggregator once per cycle and sends each endpoint outcome through
its own pipeline: shape resolution, normalization and filtering for live
data, or fallback substitution for a rejected or unusable category. The
result is one immutable AggregateSnapshot.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from .aggregator import Aggregator, Endpoint, EndpointOutcome
from .config import BackendConfig
from .errors import OrchestrationError
from .fallback import fallback_for
from .fetcher import Fetcher
from .filters import filter_recent_dispatches, filter_steam_news
from .models import AggregateSnapshot
from .normalizers import (
    normalize_assignments, normalize_campaigns, normalize_dispatches,
    normalize_planets, normalize_space_stations, normalize_steam_news,
    normalize_war_summary,
)
from .parser import resolve_payload
from .rate_limiter import RateLimiter, create_rate_limiter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryPipeline:
    """How one endpoint's payload becomes one snapshot field"""
    field_name: str
    transform: Callable[[Any, datetime], Any]
    empty_value: Any = ()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Orchestrator:
    """Composes aggregator, normalizers, filters and fallback into snapshots"""

    def __init__(self, aggregator: Aggregator, config: Optional[BackendConfig] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.aggregator = aggregator
        self.config = config or BackendConfig()
        self.clock = clock or _utc_now
        self.pipelines = self._initialize_pipelines()

    def _initialize_pipelines(self) -> Dict[Endpoint, CategoryPipeline]:
        dispatch_window = timedelta(hours=self.config.filters.dispatch_window_hours)
        news_window = timedelta(days=self.config.filters.news_window_days)

        return {
            Endpoint.WAR: CategoryPipeline(
                'war_statistics', lambda payload, now: normalize_war_summary(payload), None),
            Endpoint.ASSIGNMENTS: CategoryPipeline(
                'assignments', lambda payload, now: normalize_assignments(payload)),
            Endpoint.PLANETS: CategoryPipeline(
                'planets', lambda payload, now: normalize_planets(payload)),
            Endpoint.CAMPAIGNS: CategoryPipeline(
                'campaigns', lambda payload, now: normalize_campaigns(payload)),
            Endpoint.DISPATCHES: CategoryPipeline(
                'dispatches',
                lambda payload, now: filter_recent_dispatches(normalize_dispatches(payload), now, dispatch_window)),
            Endpoint.STEAM_NEWS: CategoryPipeline(
                'steam_news',
                lambda payload, now: filter_steam_news(normalize_steam_news(payload), now, news_window)),
            Endpoint.SPACE_STATIONS: CategoryPipeline(
                'space_stations', lambda payload, now: normalize_space_stations(payload)),
        }

    async def build_snapshot(self) -> AggregateSnapshot:
        """Produce one snapshot; raises OrchestrationError on pipeline defects"""
        try:
            outcomes = await self.aggregator.fetch_all()
            now = self.clock()

            fields: Dict[str, Any] = {}
            degraded = []
            for endpoint, pipeline in self.pipelines.items():
                value, live = self._process_outcome(endpoint, pipeline, outcomes.get(endpoint), now)
                fields[pipeline.field_name] = value
                if not live:
                    degraded.append(endpoint.value)

            snapshot = AggregateSnapshot(last_updated=now, degraded=tuple(degraded), **fields)

        except OrchestrationError:
            raise
        except Exception as e:
            logger.error(f"Snapshot pipeline failed: {e}")
            raise OrchestrationError(f"Failed to build snapshot: {e}") from e

        if degraded:
            logger.warning(f"Snapshot built with fallback data for: {', '.join(degraded)}")
        else:
            logger.info("Snapshot built from live data")
        return snapshot

    def _process_outcome(self, endpoint: Endpoint, pipeline: CategoryPipeline,
                         outcome: Optional[EndpointOutcome], now: datetime):
        """Return (value, live) for one category"""
        if outcome is not None and outcome.fulfilled:
            payload = resolve_payload(endpoint, outcome.value)
            if payload is not None:
                return pipeline.transform(payload, now), True
            logger.warning(f"Unusable payload for {endpoint.value}, substituting fallback")
        elif outcome is None:
            logger.warning(f"No outcome for {endpoint.value}, substituting fallback")

        if not self.config.fallback.enabled:
            return pipeline.empty_value, False
        return fallback_for(endpoint), False


def create_orchestrator(config: BackendConfig, fetcher: Fetcher, rate_limiter: RateLimiter) -> Orchestrator:
    """Wire an orchestrator around an existing fetcher and shared rate limiter"""
    return Orchestrator(Aggregator(fetcher, rate_limiter), config)


async def fetch_snapshot(config: Optional[BackendConfig] = None,
                         rate_limiter: Optional[RateLimiter] = None) -> AggregateSnapshot:
    """One-shot convenience: open a fetcher, build a snapshot, close it"""
    config = config or BackendConfig()
    if rate_limiter is None:
        rate_limiter = create_rate_limiter(config.rate_limit)

    async with Fetcher(config.api) as fetcher:
        return await create_orchestrator(config, fetcher, rate_limiter).build_snapshot()
