from typing import Dict

from junction_rl.env.topology import Topology

W_WAIT = -1.0
W_SPEED = 2.0
W_EFFICIENCY = 10.0


def traffic_efficiency(road_traffic: Dict[str, int], phase: int, topology: Topology) -> float:
    """Share of incoming traffic sitting on roads the phase serves (0 when empty)."""
    total = sum(road_traffic[r] for r in topology.incoming_roads)
    if total == 0:
        return 0.0
    served = sum(road_traffic[r] for r in topology.active_roads(phase))
    return served / total


def reward_components(avg_waiting_time: float, avg_speed: float,
                      road_traffic: Dict[str, int], phase: int,
                      topology: Topology) -> Dict[str, float]:
    return {
        "waiting_penalty": W_WAIT * avg_waiting_time,
        "speed_reward": W_SPEED * avg_speed,
        "efficiency_reward": W_EFFICIENCY * traffic_efficiency(road_traffic, phase, topology),
    }


def calculate_reward(avg_waiting_time: float, avg_speed: float,
                     road_traffic: Dict[str, int], phase: int,
                     topology: Topology) -> float:
    """
    reward = -wait + 2 * speed + 10 * efficiency

    Higher is better: less waiting, more speed, and the active phase
    serving the heavier roads.
    """
    return sum(reward_components(avg_waiting_time, avg_speed, road_traffic, phase, topology).values())
