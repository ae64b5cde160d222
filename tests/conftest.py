"""Shared fixtures: fake AI capabilities, fake audio output, fast settings."""

import asyncio
import base64

import numpy as np
import pytest

from megamaluca.ai.capabilities import CapabilityResult, ChaosCapabilities
from megamaluca.audio.pcm import encode_pcm
from megamaluca.config.settings import AISettings, AudioSettings, GameSettings, Settings
from megamaluca.game.session import GameSession

TICKET = (5, 12, 23, 34, 45, 58)

SPEECH_SAMPLES = np.array([0.0, 0.25, -0.5, 0.75], dtype=np.float32)
SPEECH_PAYLOAD = base64.b64encode(encode_pcm(SPEECH_SAMPLES)).decode("ascii")


def constant_rng(value: float):
    return lambda: value


class FakeCapabilities(ChaosCapabilities):
    """Canned AI answers; names in ``failing`` fail instead."""

    def __init__(self, failing=(), speech=SPEECH_PAYLOAD):
        self.failing = set(failing)
        self.speech = speech
        self.calls = []
        self.commentary_gate = None

    def _result(self, name, value):
        if name in self.failing:
            return CapabilityResult.failure(name, "boom")
        return CapabilityResult.success(value)

    async def generate_commentary(self, kind, ticket, level):
        self.calls.append(("commentary", kind, tuple(ticket), level))
        if self.commentary_gate is not None:
            await self.commentary_gate.wait()
        return self._result("commentary", f"comentario {kind.value}")

    async def generate_celebration_image(self):
        self.calls.append(("celebration_image",))
        return self._result("celebration_image", b"image-1")

    async def generate_celebration_speech(self):
        self.calls.append(("celebration_speech",))
        return self._result("celebration_speech", self.speech)

    async def edit_image(self, image, instruction):
        self.calls.append(("edit_image", image, instruction))
        return self._result("edit_image", image + b"+" + instruction.encode())

    def called(self, name):
        return [c for c in self.calls if c[0] == name]


class FakePlayer:
    """Stands in for the pygame speech player."""

    def __init__(self):
        self.played = []
        self.stopped = 0

    def play(self, buffer):
        self.played.append(buffer)
        return True

    def stop(self):
        self.stopped += 1


@pytest.fixture
def settings():
    return Settings(
        game=GameSettings(reveal_delay=0.0),
        audio=AudioSettings(enabled=True),
        ai=AISettings(gemini_api_key=""),
    )


@pytest.fixture
def fake_ai():
    return FakeCapabilities()


@pytest.fixture
def player():
    return FakePlayer()


@pytest.fixture
def make_session(settings, fake_ai, player):
    def _make(rng_value=0.99, ticket=TICKET, capabilities=None, session_settings=None):
        session = GameSession(
            capabilities=capabilities or fake_ai,
            settings=session_settings or settings,
            speech_player=player,
            rng=constant_rng(rng_value),
        )
        for number in ticket:
            session.toggle_number(number)
        return session

    return _make


async def wait_for_call(fake, name, timeout=1.0):
    """Yield to the loop until the fake has seen a call."""
    async def _poll():
        while not fake.called(name):
            await asyncio.sleep(0)

    await asyncio.wait_for(_poll(), timeout)
