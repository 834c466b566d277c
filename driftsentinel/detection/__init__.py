"""
DriftSentinel Detection Module
"""

from .drift_classifier import *
