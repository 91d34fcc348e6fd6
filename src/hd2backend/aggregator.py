"""
Settle-all fan-out over the seven status endpoints

Every endpoint is fetched concurrently through the shared rate limiter.
The batch waits for all of them to settle, and one endpoint's failure never
cancels or short-circuits the others. Outcomes are keyed by endpoint, not
by completion order.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from .fetcher import Fetcher
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class Endpoint(str, Enum):
    """The status categories exposed by the upstream API"""
    WAR = "war"
    ASSIGNMENTS = "assignments"
    PLANETS = "planets"
    CAMPAIGNS = "campaigns"
    DISPATCHES = "dispatches"
    STEAM_NEWS = "steam_news"
    SPACE_STATIONS = "space_stations"


ENDPOINT_PATHS: Dict[Endpoint, str] = {
    Endpoint.WAR: "/v1/war",
    Endpoint.ASSIGNMENTS: "/v1/assignments",
    Endpoint.PLANETS: "/v1/planets",
    Endpoint.CAMPAIGNS: "/v1/campaigns",
    Endpoint.DISPATCHES: "/v1/dispatches",
    Endpoint.STEAM_NEWS: "/v1/steam",
    Endpoint.SPACE_STATIONS: "/v1/space-stations",
}


@dataclass(frozen=True)
class EndpointOutcome:
    """Settled result of one endpoint call"""
    endpoint: Endpoint
    fulfilled: bool
    value: Any = None
    error: Optional[BaseException] = None
    duration_ms: int = 0

    @property
    def rejected(self) -> bool:
        return not self.fulfilled


class Aggregator:
    """Fans out one rate-limited fetch per endpoint and collects outcomes"""

    def __init__(self, fetcher: Fetcher, rate_limiter: RateLimiter,
                 endpoints: Optional[Iterable[Endpoint]] = None):
        self.fetcher = fetcher
        self.rate_limiter = rate_limiter
        self.endpoints = list(endpoints) if endpoints is not None else list(Endpoint)

    async def _fetch_endpoint(self, endpoint: Endpoint) -> EndpointOutcome:
        await self.rate_limiter.admit()
        start_time = time.time()
        value = await self.fetcher.fetch(ENDPOINT_PATHS[endpoint])
        return EndpointOutcome(
            endpoint=endpoint,
            fulfilled=True,
            value=value,
            duration_ms=int((time.time() - start_time) * 1000)
        )

    async def fetch_all(self) -> Dict[Endpoint, EndpointOutcome]:
        """Fetch every endpoint and wait for all of them to settle"""
        results = await asyncio.gather(
            *(self._fetch_endpoint(endpoint) for endpoint in self.endpoints),
            return_exceptions=True
        )

        outcomes: Dict[Endpoint, EndpointOutcome] = {}
        for endpoint, result in zip(self.endpoints, results):
            if isinstance(result, EndpointOutcome):
                outcomes[endpoint] = result
            elif isinstance(result, Exception):
                logger.warning(f"Endpoint {endpoint.value} rejected: {result}")
                outcomes[endpoint] = EndpointOutcome(endpoint=endpoint, fulfilled=False, error=result)
            else:
                # Cancellation and other BaseExceptions are not endpoint failures
                raise result

        fulfilled = sum(1 for outcome in outcomes.values() if outcome.fulfilled)
        logger.info(f"Fetched {fulfilled}/{len(outcomes)} endpoints")
        return outcomes
