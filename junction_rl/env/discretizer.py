"""
Traffic level discretization for the tabular Q-table.

Each incoming road maps to one of three levels; the per-road levels,
joined in topology order, form the state key.
"""

import itertools
from enum import Enum
from typing import Dict, List

from junction_rl.env.topology import Topology

SEPARATOR = "_"

# Upper bounds (exclusive) for LOW and MEDIUM
LOW_THRESHOLD = 3
MEDIUM_THRESHOLD = 7


class TrafficLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def traffic_level(count: int) -> TrafficLevel:
    if count < LOW_THRESHOLD:
        return TrafficLevel.LOW
    if count < MEDIUM_THRESHOLD:
        return TrafficLevel.MEDIUM
    return TrafficLevel.HIGH


def state_key(road_traffic: Dict[str, int], topology: Topology) -> str:
    """
    Encodes the traffic level of every incoming road.

    Example: {'road_west': 0, 'road_east': 4, 'road_north': 9, 'road_south': 1}
             -> 'low_medium_high_low'
    """
    return SEPARATOR.join(
        traffic_level(road_traffic[road]).value for road in topology.incoming_roads
    )


def q_key(key: str, phase: int) -> str:
    return f"{key}{SEPARATOR}{phase}"


def all_state_keys(topology: Topology) -> List[str]:
    """Every reachable state key (levels ** incoming roads)."""
    levels = [lvl.value for lvl in TrafficLevel]
    return [
        SEPARATOR.join(combo)
        for combo in itertools.product(levels, repeat=len(topology.incoming_roads))
    ]
