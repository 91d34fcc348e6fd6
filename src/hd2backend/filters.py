"""
Time-window filters for dispatches and Steam news
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Tuple

from .models import Dispatch, SteamNewsItem

logger = logging.getLogger(__name__)

DISPATCH_WINDOW = timedelta(hours=36)
NEWS_WINDOW = timedelta(days=7)


def filter_recent_dispatches(dispatches: Iterable[Dispatch], now: datetime,
                             window: timedelta = DISPATCH_WINDOW) -> Tuple[Dispatch, ...]:
    """Keep dispatches published strictly after now - window"""
    cutoff = now - window
    return tuple(
        dispatch for dispatch in dispatches
        if dispatch.published is not None and dispatch.published > cutoff
    )


def filter_steam_news(items: Iterable[SteamNewsItem], now: datetime,
                      window: timedelta = NEWS_WINDOW) -> Tuple[SteamNewsItem, ...]:
    """
    Newest-first news limited to the window.

    When the whole feed is older than the window, only the newest item is
    kept so there is always something to show. A feed with no parseable
    dates keeps its first item. Empty input stays empty.
    """
    items = list(items)
    dated = [item for item in items if item.published is not None]
    if not dated:
        if items:
            logger.debug("Steam news feed has no dates, keeping first item only")
        return tuple(items[:1])

    ordered = sorted(dated, key=lambda item: item.published, reverse=True)
    cutoff = now - window

    if ordered[0].published > cutoff:
        return tuple(item for item in ordered if item.published > cutoff)

    logger.debug(f"Steam news feed is stale, keeping newest item only ({ordered[0].published.isoformat()})")
    return (ordered[0],)
