"""Junction simulation environment package"""
from .topology import Topology, Road, Phase, Node, default_topology
from .state import SimulationState, NodeTrafficState

__all__ = ['Topology', 'Road', 'Phase', 'Node', 'default_topology',
           'SimulationState', 'NodeTrafficState']
