"""Configuration module.

Usage:
    from sports_edge.config import get_settings, get_sport

    settings = get_settings()
    print(settings.epochs)
    print(get_sport("nfl").features)
"""

from .settings import Settings, get_settings
from .sports import SPORT_REGISTRY, SportConfig, get_sport, list_sports

__all__ = [
    "Settings",
    "get_settings",
    "SPORT_REGISTRY",
    "SportConfig",
    "get_sport",
    "list_sports",
]
