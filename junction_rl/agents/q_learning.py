"""
Tabular Q-Learning for junction phase control.

The Q-table is a flat mapping '<stateKey>_<phase>' -> value. Missing keys
read as 0. Updates are copy-on-write: the caller's table is never mutated.
"""

import numpy as np
import pandas as pd
from typing import Dict, Mapping

from junction_rl.env.discretizer import q_key
from junction_rl.env.topology import Topology


def get_q(q_table: Mapping[str, float], key: str, phase: int) -> float:
    return q_table.get(q_key(key, phase), 0.0)


def max_q_value(q_table: Mapping[str, float], key: str, topology: Topology) -> float:
    return max(get_q(q_table, key, p) for p in range(topology.phase_count))


def greedy_action(key: str, q_table: Mapping[str, float], topology: Topology) -> int:
    """Argmax over phases; the first phase wins ties."""
    best_action = 0
    best_value = -np.inf
    for phase in range(topology.phase_count):
        value = get_q(q_table, key, phase)
        if value > best_value:
            best_value = value
            best_action = phase
    return best_action


def adaptive_action(road_traffic: Dict[str, int], topology: Topology) -> int:
    """Serve the phase group carrying the most vehicles; the first phase wins ties."""
    totals = topology.phase_traffic(road_traffic)
    best_action = 0
    for phase, total in enumerate(totals):
        if total > totals[best_action]:
            best_action = phase
    return best_action


def select_action(key: str,
                  q_table: Mapping[str, float],
                  epsilon: float,
                  road_traffic: Dict[str, int],
                  adaptive_mode: bool,
                  topology: Topology,
                  rng: np.random.Generator) -> int:
    """
    Select the next phase.

    Order matters:
    1. Exploration with probability epsilon (always checked first)
    2. Adaptive override, serving the heaviest direction
    3. Exploitation of the Q-table

    Args:
        key: Discretized state key
        q_table: Current Q-table
        epsilon: Exploration probability
        road_traffic: Vehicle count per incoming road
        adaptive_mode: Whether the traffic heuristic replaces the Q-table
        topology: Junction layout
        rng: Random source

    Returns:
        Phase index
    """
    if rng.random() < epsilon:
        return int(rng.integers(topology.phase_count))

    if adaptive_mode:
        return adaptive_action(road_traffic, topology)

    return greedy_action(key, q_table, topology)


def update_q_value(key: str,
                   action: int,
                   reward: float,
                   next_key: str,
                   q_table: Mapping[str, float],
                   learning_rate: float,
                   discount_factor: float,
                   topology: Topology) -> Dict[str, float]:
    """
    Q(s,a) <- Q(s,a) + alpha * [r + gamma * max_a' Q(s',a') - Q(s,a)]

    Returns a new table; every other entry is carried over unchanged.
    """
    max_next_q = max_q_value(q_table, next_key, topology)
    current_q = get_q(q_table, key, action)

    new_table = dict(q_table)
    new_table[q_key(key, action)] = current_q + learning_rate * (
        reward + discount_factor * max_next_q - current_q)
    return new_table


def initial_q_table(state_keys, topology: Topology) -> Dict[str, float]:
    """Zero-filled table for every (state, phase) pair."""
    return {q_key(key, phase): 0.0
            for key in state_keys
            for phase in range(topology.phase_count)}


def q_table_frame(q_table: Mapping[str, float], topology: Topology):
    """Q-table as a DataFrame: one row per state key, one column per phase."""
    rows = {}
    for full_key, value in q_table.items():
        key, _, phase = full_key.rpartition("_")
        rows.setdefault(key, [0.0] * topology.phase_count)[int(phase)] = value
    return pd.DataFrame.from_dict(
        rows, orient="index",
        columns=[topology.phase_name(p) for p in range(topology.phase_count)]
    ).sort_index()
