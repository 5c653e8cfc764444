"""
Per-tick transition function for the junction simulation.

step() is pure given its random source: it reads the previous snapshot and
the configuration and returns a brand new SimulationState.
"""

import numpy as np
from typing import Dict, Mapping

from junction_rl.agents.q_learning import initial_q_table, select_action, update_q_value
from junction_rl.config import SimulationConfig
from junction_rl.env.discretizer import all_state_keys, state_key
from junction_rl.env.rewards import calculate_reward
from junction_rl.env.state import NodeTrafficState, SimulationState
from junction_rl.env.topology import RED, Topology

VMAX = 13.9  # m/s, ~50 km/h
DEPARTURE_PROB = 0.3
WAIT_INCREMENT = 0.2
WAIT_DECREMENT = 0.1
SPEED_DROP_PER_VEHICLE = 0.1


def reset(topology: Topology, adaptive_mode: bool = False) -> SimulationState:
    """Zeroed initial state with an eagerly zero-filled Q-table."""
    road_traffic = {road: 0 for road in topology.incoming_roads}
    return SimulationState(
        step=0,
        road_traffic=road_traffic,
        current_phase=0,
        q_table=initial_q_table(all_state_keys(topology), topology),
        node_traffic_state=project_nodes(road_traffic, 0, 0.0, topology),
        adaptive_mode=adaptive_mode,
    )


def step(state: SimulationState,
         config: SimulationConfig,
         topology: Topology,
         rng: np.random.Generator) -> SimulationState:
    phase = state.current_phase

    road_traffic = _simulate_dynamics(state.road_traffic, phase, config, topology, rng)
    vehicle_count = sum(road_traffic.values())

    inactive_traffic = sum(count for road, count in road_traffic.items()
                           if not topology.is_served(road, phase))
    if inactive_traffic > 0:
        waiting_time = state.average_waiting_time + WAIT_INCREMENT
    else:
        waiting_time = max(0.0, state.average_waiting_time - WAIT_DECREMENT)

    speed = float(np.clip(VMAX - vehicle_count * SPEED_DROP_PER_VEHICLE, 0.0, VMAX))

    nodes = project_nodes(road_traffic, phase, waiting_time, topology)

    key = state_key(road_traffic, topology)
    # Reward is credited to the phase that was active during this tick
    reward = calculate_reward(waiting_time, speed, road_traffic, phase, topology)

    next_phase = select_action(key, state.q_table, config.epsilon, road_traffic,
                               config.adaptive_mode, topology, rng)

    # Continuing-task formulation: next state shares this tick's key
    q_table = update_q_value(key, phase, reward, key, state.q_table,
                             config.learning_rate, config.discount_factor, topology)

    return SimulationState(
        step=state.step + 1,
        road_traffic=road_traffic,
        current_phase=next_phase,
        q_table=q_table,
        average_waiting_time=waiting_time,
        average_speed=speed,
        current_reward=reward,
        vehicle_count=vehicle_count,
        node_traffic_state=nodes,
        adaptive_mode=config.adaptive_mode,
    )


def should_continue(state: SimulationState, config: SimulationConfig) -> bool:
    """max_steps <= 0 means run until stopped externally."""
    if config.unbounded:
        return True
    return state.step < config.max_steps


def _simulate_dynamics(road_traffic: Mapping[str, int],
                       phase: int,
                       config: SimulationConfig,
                       topology: Topology,
                       rng: np.random.Generator) -> Dict[str, int]:
    """
    Arrivals and departures, independent per road.

    Draw order per road (topology order): arrival, then departure when the
    road is green and was non-empty at the start of the tick.
    """
    arrival_prob = config.arrival_probability
    new_traffic = {}
    for road in topology.incoming_roads:
        count = road_traffic[road]
        arrived = rng.random() < arrival_prob
        departed = False
        if topology.is_served(road, phase) and count > 0:
            departed = rng.random() < DEPARTURE_PROB
        new_traffic[road] = max(0, count + int(arrived) - int(departed))
    return new_traffic


def project_nodes(road_traffic: Mapping[str, int],
                  phase: int,
                  average_waiting_time: float,
                  topology: Topology) -> Dict[str, NodeTrafficState]:
    """Display-only per-node view; never fed back into the simulation."""
    total = sum(road_traffic.values())
    phase_color = topology.phases[phase].color
    nodes = {}
    for node in topology.nodes:
        if node.road_id is None:
            nodes[node.id] = NodeTrafficState(
                vehicle_count=total,
                waiting_time=average_waiting_time if node.has_traffic_light else 0.0,
                signal_color=phase_color if node.has_traffic_light else RED,
            )
            continue

        count = road_traffic[node.road_id]
        served = topology.is_served(node.road_id, phase)
        waiting = 0.0
        if not served and total > 0:
            waiting = average_waiting_time * count / total
        nodes[node.id] = NodeTrafficState(
            vehicle_count=count,
            waiting_time=waiting,
            signal_color=phase_color if served else RED,
        )
    return nodes
