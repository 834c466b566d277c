"""
DriftSentinel CLI Module
"""
