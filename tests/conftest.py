"""
Shared fixtures for the junction simulation tests.
"""

import numpy as np
import pytest

from junction_rl.config import SimulationConfig
from junction_rl.env.engine import reset
from junction_rl.env.topology import default_topology


@pytest.fixture
def topology():
    return default_topology()


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def config():
    return SimulationConfig()


@pytest.fixture
def initial_state(topology):
    return reset(topology)


@pytest.fixture
def traffic(topology):
    """Helper building a road_traffic dict in topology order."""
    def _build(*counts):
        return dict(zip(topology.incoming_roads, counts))
    return _build
