"""
Trip Progress - Live itinerary tracking engine

Tracks a traveler's advancement through a multi-day trip itinerary:
current, completed, upcoming and skipped stops, day rollover, trip
completion, stop substitution and restart. State is persisted locally and
high-level transitions are mirrored to a remote trip record.
"""

__version__ = "0.1.0"
__author__ = "Anvago Team"
