"""
Day-template providers.

Seed data for each trip day, resolved by trip display name.
"""
from .provider import (
    ItineraryTemplateProvider,
    StaticTemplateProvider,
    TemplateProvider,
    fresh_day,
)

__all__ = [
    "ItineraryTemplateProvider",
    "StaticTemplateProvider",
    "TemplateProvider",
    "fresh_day",
]
