import pytest
from pydantic import ValidationError

from megamaluca.config.settings import AISettings, GameSettings, Settings
from megamaluca.game.draw import DEFAULT_THRESHOLDS, ChaosLevel


def test_game_defaults_match_draw_defaults():
    game = GameSettings()
    assert game.relaxed_threshold == DEFAULT_THRESHOLDS[ChaosLevel.RELAXED]
    assert game.wild_threshold == DEFAULT_THRESHOLDS[ChaosLevel.WILD]
    assert game.apocalyptic_threshold == DEFAULT_THRESHOLDS[ChaosLevel.APOCALYPTIC]
    assert game.reveal_delay == 0.6


def test_thresholds_must_increase():
    with pytest.raises(ValidationError):
        GameSettings(relaxed_threshold=0.95)


def test_threshold_range_checked():
    with pytest.raises(ValidationError):
        GameSettings(apocalyptic_threshold=1.5)


def test_reveal_delay_from_env(monkeypatch):
    monkeypatch.setenv("MEGAMALUCA_GAME_REVEAL_DELAY", "0.1")
    assert GameSettings().reveal_delay == 0.1


@pytest.mark.parametrize("var", ["GEMINI_API_KEY", "API_KEY"])
def test_api_key_env_aliases(monkeypatch, var):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)
    monkeypatch.setenv(var, "secret")
    assert AISettings().gemini_api_key == "secret"


def test_ai_enabled_follows_key():
    assert not Settings(ai=AISettings(gemini_api_key="")).ai_enabled
    assert Settings(ai=AISettings(gemini_api_key="k")).ai_enabled


def test_default_chaos_level_normalized():
    assert GameSettings(default_chaos_level="Apocalíptico").default_chaos_level == "apocalyptic"


def test_unknown_default_chaos_level_rejected(monkeypatch):
    monkeypatch.setenv("MEGAMALUCA_GAME_DEFAULT_CHAOS_LEVEL", "mild")
    with pytest.raises(ValidationError):
        GameSettings()
