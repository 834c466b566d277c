"""
DriftSentinel - configuration drift impact analysis for cloud infrastructure.
"""

__version__ = "1.0.0"
