"""Offline editing and upstream re-synchronisation of Android string resources."""

__version__ = "0.3.0"
