"""Dealroom scheduling core: availability slots, meeting negotiation and offers."""

__version__ = "1.0.0"
