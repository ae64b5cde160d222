"""
Application settings using Pydantic.

Settings are loaded from environment variables with .env file support.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from megamaluca.game.draw import ChaosLevel


class GameSettings(BaseSettings):
    """Draw tuning."""

    model_config = SettingsConfigDict(env_prefix="MEGAMALUCA_GAME_", extra="ignore")

    # Miss thresholds: win probability is 1 - threshold
    relaxed_threshold: float = Field(default=0.80, ge=0.0, le=1.0)
    wild_threshold: float = Field(default=0.90, ge=0.0, le=1.0)
    apocalyptic_threshold: float = Field(default=0.99, ge=0.0, le=1.0)

    # Seconds between revealed numbers
    reveal_delay: float = Field(default=0.6, ge=0.0)

    default_chaos_level: str = "wild"

    @field_validator("default_chaos_level")
    @classmethod
    def _check_chaos_level(cls, value: str) -> str:
        return ChaosLevel.parse(value).name.lower()

    @model_validator(mode="after")
    def _check_monotonic(self) -> "GameSettings":
        if not (self.relaxed_threshold < self.wild_threshold < self.apocalyptic_threshold):
            raise ValueError(
                "chaos thresholds must increase: relaxed < wild < apocalyptic"
            )
        return self


class AudioSettings(BaseSettings):
    """Speech playback settings."""

    model_config = SettingsConfigDict(env_prefix="MEGAMALUCA_AUDIO_", extra="ignore")

    enabled: bool = True
    sample_rate: int = 24000
    channels: int = Field(default=1, ge=1, le=2)


class AISettings(BaseSettings):
    """AI service settings."""

    model_config = SettingsConfigDict(
        env_prefix="MEGAMALUCA_AI_",
        extra="ignore",
        populate_by_name=True,
    )

    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("gemini_api_key", "api_key"),
    )

    # Model names
    commentary_model: str = "gemini-3-flash-preview"
    image_model: str = "gemini-2.5-flash-image"
    speech_model: str = "gemini-2.5-flash-preview-tts"
    voice_name: str = "Kore"

    # Timeouts (seconds)
    commentary_timeout: float = 30.0
    image_timeout: float = 120.0
    speech_timeout: float = 60.0
    edit_timeout: float = 120.0

    # Retry settings
    max_retries: int = 3
    retry_delay: float = 1.0

    temperature: float = 0.9
    image_size: int = 512

    # Archive of every generation on disk
    log_generations: bool = False
    log_dir: Path = Field(default_factory=lambda: Path.cwd() / "megamaluca_ai_logs")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="MEGAMALUCA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = False

    # Where winner images are saved by the console
    output_dir: Path = Field(default_factory=lambda: Path.cwd() / "winners")

    # Nested settings
    game: GameSettings = Field(default_factory=GameSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    ai: AISettings = Field(default_factory=AISettings)

    @property
    def ai_enabled(self) -> bool:
        """Check if an API key is configured."""
        return bool(self.ai.gemini_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
