"""
Static junction layout: roads, light phases and nodes.

Default layout (four-arm junction, two phases):

Phase 0: East-West Green   (road_west, road_east)
Phase 1: North-South Green (road_north, road_south)

Outgoing roads exist for the display layer only and carry no traffic
dynamics.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from junction_rl.config import TopologyError

GREEN = "#4ade80"
RED = "#ef4444"


@dataclass(frozen=True)
class Road:
    id: str
    incoming: bool = True


@dataclass(frozen=True)
class Phase:
    id: int
    name: str
    active_roads: FrozenSet[str]
    color: str = GREEN


@dataclass(frozen=True)
class Node:
    id: str
    has_traffic_light: bool = False
    # Incoming road feeding this node, None for the junction itself
    road_id: Optional[str] = None


@dataclass(frozen=True)
class Topology:
    """
    Immutable description of a single junction.

    Road order is significant: it fixes the layout of state keys.
    """
    roads: Tuple[Road, ...]
    phases: Tuple[Phase, ...]
    nodes: Tuple[Node, ...] = ()

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Fails fast on a malformed layout."""
        if not self.phases:
            raise TopologyError("Topology needs at least one phase")

        ids = [r.id for r in self.roads]
        if len(set(ids)) != len(ids):
            raise TopologyError(f"Duplicate road ids: {ids}")

        incoming = set(self.incoming_roads)
        if not incoming:
            raise TopologyError("Topology needs at least one incoming road")

        for index, phase in enumerate(self.phases):
            if phase.id != index:
                raise TopologyError(f"Phase '{phase.name}' has id {phase.id}, expected {index}")
            unknown = set(phase.active_roads) - incoming
            if unknown:
                raise TopologyError(
                    f"Phase {phase.id} references unknown or outgoing roads: {sorted(unknown)}")

        unserved = incoming - set().union(*(p.active_roads for p in self.phases))
        if unserved:
            raise TopologyError(f"Incoming roads not served by any phase: {sorted(unserved)}")

        for node in self.nodes:
            if node.road_id is not None and node.road_id not in incoming:
                raise TopologyError(f"Node '{node.id}' is fed by unknown road '{node.road_id}'")

    @property
    def incoming_roads(self) -> List[str]:
        return [r.id for r in self.roads if r.incoming]

    @property
    def phase_count(self) -> int:
        return len(self.phases)

    def active_roads(self, phase: int) -> FrozenSet[str]:
        return self.phases[phase].active_roads

    def is_served(self, road_id: str, phase: int) -> bool:
        return road_id in self.phases[phase].active_roads

    def phase_name(self, phase: int) -> str:
        return self.phases[phase].name

    def phase_traffic(self, road_traffic: Dict[str, int]) -> List[int]:
        """Total vehicles on the roads each phase serves, in phase order."""
        return [sum(road_traffic[r] for r in p.active_roads) for p in self.phases]


def default_topology() -> Topology:
    roads = (
        Road("road_west"),
        Road("road_east"),
        Road("road_north"),
        Road("road_south"),
        Road("road_west_out", incoming=False),
        Road("road_east_out", incoming=False),
        Road("road_north_out", incoming=False),
        Road("road_south_out", incoming=False),
    )
    phases = (
        Phase(0, "East-West Green", frozenset({"road_west", "road_east"})),
        Phase(1, "North-South Green", frozenset({"road_north", "road_south"})),
    )
    nodes = (
        Node("center", has_traffic_light=True),
        Node("west", road_id="road_west"),
        Node("east", road_id="road_east"),
        Node("north", road_id="road_north"),
        Node("south", road_id="road_south"),
    )
    return Topology(roads=roads, phases=phases, nodes=nodes)
