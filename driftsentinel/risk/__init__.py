"""
DriftSentinel Risk Module
"""

from .impact_analyzer import *
