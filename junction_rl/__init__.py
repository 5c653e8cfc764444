"""
Junction traffic simulation controlled by tabular Q-Learning.

Usage:
    python main.py run --config configs/default.yaml
    python main.py batch --out experiments_batch
"""

from .config import AppConfig, SimulationConfig, ConfigError, TopologyError
from .env import Topology, SimulationState, default_topology
from .env.engine import reset, step, should_continue
from .core import SimulationRunner, run_simulation

__version__ = '1.0.0'

__all__ = [
    'AppConfig',
    'SimulationConfig',
    'ConfigError',
    'TopologyError',
    'Topology',
    'SimulationState',
    'default_topology',
    'reset',
    'step',
    'should_continue',
    'SimulationRunner',
    'run_simulation',
]
