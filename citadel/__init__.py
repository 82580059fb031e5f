"""Citadel: role-based access control with wildcard permission resolution."""

__version__ = "0.1.0"
