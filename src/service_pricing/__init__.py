"""
Service Pricing Package

Hierarchical price resolution for the service-point network.
Resolves product prices using Service Point → Location → Base fallback.
"""

__version__ = "1.0.0"
