"""
Persistence module.

SQLite storage for the trip progress snapshot and the sync outbox.
"""
