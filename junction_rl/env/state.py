from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class NodeTrafficState:
    vehicle_count: int
    waiting_time: float
    signal_color: str


@dataclass(frozen=True)
class SimulationState:
    """Snapshot produced by the step engine. Replaced wholesale every tick."""
    step: int
    road_traffic: Mapping[str, int]
    current_phase: int
    q_table: Mapping[str, float]
    average_waiting_time: float = 0.0
    average_speed: float = 0.0
    current_reward: float = 0.0
    vehicle_count: int = 0
    node_traffic_state: Mapping[str, NodeTrafficState] = field(default_factory=dict)
    adaptive_mode: bool = False

    # Mapping fields are read-only views, not hashable values
    __hash__ = None

    def __post_init__(self):
        # Read-only views so a held snapshot cannot be edited in place
        for name in ("road_traffic", "q_table", "node_traffic_state"):
            value = getattr(self, name)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    def as_row(self) -> dict:
        """Flat scalar view, one row per tick."""
        row = {
            "step": self.step,
            "reward": self.current_reward,
            "vehicle_count": self.vehicle_count,
            "avg_waiting_time": self.average_waiting_time,
            "avg_speed": self.average_speed,
            "phase": self.current_phase,
        }
        row.update(self.road_traffic)
        return row
