"""
Logging configuration and utilities for the trip progress engine.
"""
from .config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
