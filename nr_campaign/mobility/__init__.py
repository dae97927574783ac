"""
Mobility module for NR campaign scenarios.

This module builds the hexagonal-grid topology, UE placement and UE velocities.
"""

from .topology import TopologyBuilder, Topology, RadioNode, NodeRole, Vector, BandDescriptor

__all__ = ['TopologyBuilder', 'Topology', 'RadioNode', 'NodeRole', 'Vector', 'BandDescriptor']
