"""
DriftSentinel Data Models
"""

from .topology import *
from .drift import *
