"""
Utility functions module.

Timestamps on trip records are UTC wall-clock times, serialized as ISO8601
strings in the persisted document and in sync payloads.
"""
