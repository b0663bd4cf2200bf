"""Ride-hailing dispatch backend."""

__version__ = "0.1.0"
