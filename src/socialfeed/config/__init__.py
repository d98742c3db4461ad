"""Configuration module for the social feed service."""

from socialfeed.config.settings import LogLevel, Settings, get_settings

__all__ = [
    "LogLevel",
    "Settings",
    "get_settings",
]
