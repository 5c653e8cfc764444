from collections.abc import Hashable

import numpy as np
import pytest

from junction_rl.config import SimulationConfig
from junction_rl.env.discretizer import q_key, state_key
from junction_rl.env.engine import VMAX, reset, should_continue, step
from junction_rl.env.state import SimulationState
from junction_rl.env.topology import GREEN, RED


def _state(topology, road_traffic, phase=0, wait=0.0):
    return SimulationState(step=0, road_traffic=road_traffic, current_phase=phase,
                           q_table={}, average_waiting_time=wait)


class TestReset:
    def test_reset_is_zeroed(self, topology):
        state = reset(topology)
        assert state.step == 0
        assert state.current_phase == 0
        assert state.vehicle_count == 0
        assert state.average_waiting_time == 0.0
        assert state.average_speed == 0.0
        assert state.current_reward == 0.0
        assert dict(state.road_traffic) == {r: 0 for r in topology.incoming_roads}

    def test_reset_prefills_q_table(self, topology):
        state = reset(topology)
        assert len(state.q_table) == 3 ** 4 * topology.phase_count
        assert set(state.q_table.values()) == {0.0}

    def test_state_is_read_only(self, topology):
        state = reset(topology)
        with pytest.raises(TypeError):
            state.road_traffic["road_west"] = 3
        with pytest.raises(AttributeError):
            state.step = 4

    def test_state_is_deliberately_unhashable(self, topology):
        state = reset(topology)
        assert not isinstance(state, Hashable)
        with pytest.raises(TypeError, match="unhashable type: .SimulationState."):
            hash(state)


class TestStep:
    def test_first_tick_with_certain_arrivals(self, topology, rng):
        config = SimulationConfig(vehicle_rate=10, epsilon=0.0, adaptive_mode=False)
        state = step(reset(topology), config, topology, rng)

        assert state.step == 1
        assert all(count == 1 for count in state.road_traffic.values())
        assert state.vehicle_count == len(topology.incoming_roads)
        assert state.average_waiting_time == pytest.approx(0.2)
        assert state.average_speed == pytest.approx(VMAX - 0.4)
        # -0.2 + 2 * 13.5 + 10 * (2 / 4)
        assert state.current_reward == pytest.approx(31.8)
        assert state.q_table[q_key("low_low_low_low", 0)] == pytest.approx(3.18)
        assert state.current_phase == 0

    def test_first_tick_node_projection(self, topology, rng):
        config = SimulationConfig(vehicle_rate=10, epsilon=0.0)
        nodes = step(reset(topology), config, topology, rng).node_traffic_state

        assert nodes["center"].vehicle_count == 4
        assert nodes["center"].signal_color == GREEN
        assert nodes["center"].waiting_time == pytest.approx(0.2)
        assert nodes["west"].signal_color == GREEN
        assert nodes["west"].waiting_time == 0.0
        assert nodes["north"].signal_color == RED
        assert nodes["north"].waiting_time == pytest.approx(0.05)

    def test_no_arrivals_at_zero_rate(self, topology, rng, traffic):
        config = SimulationConfig(vehicle_rate=0)
        state = _state(topology, traffic(0, 0, 0, 0))
        for _ in range(20):
            state = step(state, config, topology, rng)
        assert state.vehicle_count == 0

    def test_departures_only_on_served_roads(self, topology, rng, traffic):
        config = SimulationConfig(vehicle_rate=0, epsilon=0.0)
        state = _state(topology, traffic(5, 5, 5, 5), phase=0)
        new_state = step(state, config, topology, rng)
        assert new_state.road_traffic["road_north"] == 5
        assert new_state.road_traffic["road_south"] == 5
        assert new_state.road_traffic["road_west"] in (4, 5)
        assert new_state.road_traffic["road_east"] in (4, 5)

    def test_waiting_time_decays_when_red_roads_are_empty(self, topology, rng, traffic):
        config = SimulationConfig(vehicle_rate=0)
        state = step(_state(topology, traffic(5, 0, 0, 0), wait=1.0), config, topology, rng)
        assert state.average_waiting_time == pytest.approx(0.9)

        state = step(_state(topology, traffic(5, 0, 0, 0), wait=0.05), config, topology, rng)
        assert state.average_waiting_time == 0.0

    def test_speed_is_clamped_at_zero(self, topology, rng, traffic):
        config = SimulationConfig(vehicle_rate=0)
        state = step(_state(topology, traffic(0, 0, 200, 0)), config, topology, rng)
        assert state.average_speed == 0.0

    def test_reward_uses_phase_active_during_tick(self, topology, rng, traffic):
        config = SimulationConfig(vehicle_rate=0, epsilon=1.0)
        state = _state(topology, traffic(0, 0, 6, 0), phase=1)
        new_state = step(state, config, topology, np.random.default_rng(0))
        efficiency = 1.0 if new_state.road_traffic["road_north"] > 0 else 0.0
        expected = -new_state.average_waiting_time + 2 * new_state.average_speed + 10 * efficiency
        assert new_state.current_reward == pytest.approx(expected)

    def test_config_adaptive_flag_is_copied(self, topology, rng):
        state = step(reset(topology), SimulationConfig(adaptive_mode=True), topology, rng)
        assert state.adaptive_mode is True


class TestProperties:
    def test_seeded_runs_are_identical(self, topology):
        config = SimulationConfig(vehicle_rate=6, epsilon=0.2)

        def trajectory(seed):
            rng = np.random.default_rng(seed)
            state = reset(topology)
            rows = []
            for _ in range(200):
                state = step(state, config, topology, rng)
                rows.append((state.as_row(), dict(state.q_table)))
            return rows

        assert trajectory(7) == trajectory(7)

    @pytest.mark.parametrize("rate, adaptive", [(1, False), (5, True), (10, False)])
    def test_state_stays_in_bounds(self, topology, rate, adaptive):
        config = SimulationConfig(vehicle_rate=rate, epsilon=0.3, adaptive_mode=adaptive)
        rng = np.random.default_rng(rate)
        state = reset(topology)
        for _ in range(500):
            state = step(state, config, topology, rng)
            assert all(count >= 0 for count in state.road_traffic.values())
            assert state.average_waiting_time >= 0.0
            assert 0.0 <= state.average_speed <= VMAX
            assert state.vehicle_count == sum(state.road_traffic.values())
            assert 0 <= state.current_phase < topology.phase_count

    def test_q_table_changes_one_entry_per_tick(self, topology):
        config = SimulationConfig(vehicle_rate=5, epsilon=0.5)
        rng = np.random.default_rng(11)
        state = reset(topology)
        for _ in range(300):
            new_state = step(state, config, topology, rng)
            assert set(state.q_table) <= set(new_state.q_table)
            changed = {k for k in new_state.q_table
                       if new_state.q_table[k] != state.q_table.get(k, 0.0)}
            touched = q_key(state_key(new_state.road_traffic, topology), state.current_phase)
            assert changed <= {touched}
            state = new_state

    def test_exploration_picks_phases_uniformly(self, topology):
        config = SimulationConfig(vehicle_rate=5, epsilon=1.0)
        rng = np.random.default_rng(2024)
        state = reset(topology)
        counts = np.zeros(topology.phase_count)
        n = 3000
        for _ in range(n):
            state = step(state, config, topology, rng)
            counts[state.current_phase] += 1
        expected = n / topology.phase_count
        chi2 = float(np.sum((counts - expected) ** 2 / expected))
        assert chi2 < 10.83


class TestTermination:
    def test_driver_stops_after_budget(self, topology, rng):
        config = SimulationConfig(max_steps=5)
        state = reset(topology)
        calls = 0
        while should_continue(state, config):
            state = step(state, config, topology, rng)
            calls += 1
        assert calls == 5
        assert state.step == 5

    @pytest.mark.parametrize("max_steps", [0, -3])
    def test_non_positive_budget_is_unbounded(self, topology, max_steps):
        config = SimulationConfig(max_steps=max_steps)
        state = SimulationState(step=10_000, road_traffic={}, current_phase=0, q_table={})
        assert should_continue(state, config)
