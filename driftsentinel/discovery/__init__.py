"""
DriftSentinel Discovery Module
"""

from .topology_graph import *
from .graph_builder import *
