import pytest

from junction_rl.env.rewards import calculate_reward, reward_components, traffic_efficiency


def test_efficiency_is_zero_without_traffic(topology, traffic):
    assert traffic_efficiency(traffic(0, 0, 0, 0), 0, topology) == 0.0


def test_efficiency_is_served_share(topology, traffic):
    # Phase 0 serves west + east
    assert traffic_efficiency(traffic(3, 1, 4, 0), 0, topology) == pytest.approx(0.5)
    assert traffic_efficiency(traffic(3, 1, 4, 0), 1, topology) == pytest.approx(0.5)
    assert traffic_efficiency(traffic(6, 0, 2, 0), 0, topology) == pytest.approx(0.75)


def test_reward_formula(topology, traffic):
    road_traffic = traffic(2, 2, 1, 3)
    reward = calculate_reward(1.5, 10.0, road_traffic, 1, topology)
    assert reward == pytest.approx(-1.5 + 2 * 10.0 + 10 * 0.5)


def test_reward_components_sum_to_reward(topology, traffic):
    road_traffic = traffic(5, 0, 1, 0)
    parts = reward_components(0.4, 12.0, road_traffic, 0, topology)
    assert set(parts) == {"waiting_penalty", "speed_reward", "efficiency_reward"}
    assert sum(parts.values()) == pytest.approx(calculate_reward(0.4, 12.0, road_traffic, 0, topology))


def test_more_waiting_lowers_reward(topology, traffic):
    road_traffic = traffic(1, 2, 3, 4)
    assert calculate_reward(2.0, 10.0, road_traffic, 0, topology) < \
        calculate_reward(1.0, 10.0, road_traffic, 0, topology)


def test_more_speed_raises_reward(topology, traffic):
    road_traffic = traffic(1, 2, 3, 4)
    assert calculate_reward(1.0, 11.0, road_traffic, 0, topology) > \
        calculate_reward(1.0, 10.0, road_traffic, 0, topology)
