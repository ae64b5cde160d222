"""Configuration for Mega Sena Maluca."""

from .settings import AISettings, AudioSettings, GameSettings, Settings, get_settings

__all__ = ["AISettings", "AudioSettings", "GameSettings", "Settings", "get_settings"]
