"""
Payload shape resolution

Handles:
- Key-path lookups into raw JSON ("tasks[0].values[2]")
- Resolving every known shape variant of an endpoint payload into one
  canonical form (a list of entries, or a single object for the war
  summary) before any normalizer runs
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .aggregator import Endpoint

logger = logging.getLogger(__name__)

_INDEX_PATTERN = re.compile(r'^([^\[\]]*)((?:\[\d+\])*)$')


@dataclass(frozen=True)
class PayloadShape:
    """Where an endpoint's data may live and what kind it must be"""
    candidate_paths: List[str]
    expects_list: bool = True


PAYLOAD_SHAPES: Dict[Endpoint, PayloadShape] = {
    Endpoint.WAR: PayloadShape(['war', ''], expects_list=False),
    Endpoint.ASSIGNMENTS: PayloadShape(['', 'assignments', 'data']),
    Endpoint.PLANETS: PayloadShape(['', 'planets', 'data']),
    Endpoint.CAMPAIGNS: PayloadShape(['', 'campaigns', 'data']),
    Endpoint.DISPATCHES: PayloadShape(['', 'dispatches', 'data']),
    Endpoint.STEAM_NEWS: PayloadShape(['', 'newsitems', 'appnews.newsitems', 'data']),
    Endpoint.SPACE_STATIONS: PayloadShape(['', 'spaceStations', 'space_stations', 'data']),
}


def extract_value_by_path(data: Any, path: str, default: Any = None) -> Any:
    """Extract value from nested data using dot notation with list indexes"""
    if not path:
        return data if data is not None else default

    current = data
    for part in path.split('.'):
        match = _INDEX_PATTERN.match(part)
        if not match:
            return default

        key, indexes = match.groups()
        if key:
            if not isinstance(current, dict) or key not in current:
                return default
            current = current[key]

        for index_str in re.findall(r'\[(\d+)\]', indexes):
            index = int(index_str)
            if not isinstance(current, list) or index >= len(current):
                return default
            current = current[index]

        if current is None:
            return default

    return current


def resolve_payload(endpoint: Endpoint, raw_data: Any) -> Optional[Any]:
    """Resolve a raw payload to its canonical form, or None when unusable"""
    shape = PAYLOAD_SHAPES[endpoint]

    for path in shape.candidate_paths:
        value = extract_value_by_path(raw_data, path)

        if shape.expects_list:
            if isinstance(value, list):
                if path:
                    logger.debug(f"Resolved {endpoint.value} payload at '{path}'")
                return value
        elif isinstance(value, dict):
            return value

    # A lone entry where a list was expected
    if shape.expects_list and isinstance(raw_data, dict) and 'id' in raw_data:
        return [raw_data]

    logger.warning(f"Unrecognized payload shape for {endpoint.value}: {type(raw_data).__name__}")
    return None
