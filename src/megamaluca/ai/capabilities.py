"""AI capabilities used by the game.

Every capability answers with a ``CapabilityResult`` instead of raising
or returning None, so callers decide the fallback in one place.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from io import BytesIO
from typing import Awaitable, Callable, Generic, Optional, Sequence, TypeVar

from PIL import Image, UnidentifiedImageError

from megamaluca.ai.client import GeminiClient, GeminiConfig
from megamaluca.config.settings import AISettings
from megamaluca.game.draw import ChaosLevel, OutcomeKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CapabilityUnavailable(Exception):
    """An AI capability failed, timed out or returned nothing."""

    def __init__(self, capability: str, reason: str):
        super().__init__(f"{capability}: {reason}")
        self.capability = capability
        self.reason = reason


@dataclass(frozen=True)
class CapabilityResult(Generic[T]):
    """Either a value or the error explaining why there is none."""

    value: Optional[T] = None
    error: Optional[CapabilityUnavailable] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "CapabilityResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, capability: str, reason: str) -> "CapabilityResult[T]":
        return cls(error=CapabilityUnavailable(capability, reason))

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default


# =============================================================================
# PROMPTS
# =============================================================================

CHAOS_MASTER_SYSTEM = (
    "Você é o 'Mestre do Caos' da Mega Sena Maluca. Seu objetivo é ser "
    "sarcástico, caótico e engraçado. Você odeia quando as pessoas ganham seu jogo."
)

WIN_PROMPT = """O usuário ACERTOU todos os números da Mega Sena Maluca ({numbers}).
Nível de Caos Atual: {level}.
Gere uma resposta curta e agressivamente engraçada em português dizendo que ele é MALUCO e que não era para acertar.
Se o nível for Apocalíptico, seja extremamente caótico e absurdo."""

LOSE_PROMPT = """O usuário escolheu os números {numbers} mas errou o jogo.
Nível de Caos Atual: {level}.
Gere um deboche curto e engraçado em português.
Tranquilo: sarcasmo leve. Malucão: deboche pesado. Apocalíptico: humilhação total e nonsense."""

CELEBRATION_IMAGE_PROMPT = (
    "A stunning, glamorous woman in a golden sparkling bikini at a high-end "
    "beach club party, blowing a kiss to the camera, winking, realistic "
    "high-quality photography, celebratory atmosphere, money falling in background."
)

CELEBRATION_SPEECH = "Vem meu querido, vou gastar todo seu dinheiro!"


def build_commentary_prompt(
    kind: OutcomeKind,
    ticket: Sequence[int],
    level: ChaosLevel,
) -> str:
    """Fill the win or lose prompt for a ticket."""
    template = WIN_PROMPT if kind == OutcomeKind.WIN else LOSE_PROMPT
    return template.format(numbers=", ".join(str(n) for n in ticket), level=level.label)


# =============================================================================
# INTERFACE
# =============================================================================


class ChaosCapabilities(ABC):
    """Everything the game asks of the AI service."""

    @abstractmethod
    async def generate_commentary(
        self,
        kind: OutcomeKind,
        ticket: Sequence[int],
        level: ChaosLevel,
    ) -> CapabilityResult[str]:
        """Snarky text about the draw."""

    @abstractmethod
    async def generate_celebration_image(self) -> CapabilityResult[bytes]:
        """PNG shown to a winner."""

    @abstractmethod
    async def generate_celebration_speech(self) -> CapabilityResult[str]:
        """Base64 16-bit PCM speech played to a winner."""

    @abstractmethod
    async def edit_image(self, image: bytes, instruction: str) -> CapabilityResult[bytes]:
        """Apply a free-text edit to the winner image."""


class GeminiCapabilities(ChaosCapabilities):
    """Capabilities backed by Gemini."""

    def __init__(
        self,
        settings: Optional[AISettings] = None,
        client: Optional[GeminiClient] = None,
    ):
        self.settings = settings or AISettings()
        self._client = client or GeminiClient(GeminiConfig.from_settings(self.settings))

    @property
    def is_available(self) -> bool:
        return self._client.is_available

    async def _call(
        self,
        capability: str,
        request: Callable[[], Awaitable[Optional[T]]],
        timeout: float,
    ) -> CapabilityResult[T]:
        """Run one request under a deadline and wrap the outcome."""
        if not self._client.is_available:
            return CapabilityResult.failure(capability, "no API key configured")

        try:
            value = await asyncio.wait_for(request(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{capability} timed out after {timeout}s")
            return CapabilityResult.failure(capability, f"timed out after {timeout}s")
        except Exception as e:
            logger.error(f"{capability} failed: {e}")
            return CapabilityResult.failure(capability, str(e))

        if value is None or value == "":
            return CapabilityResult.failure(capability, "empty response")
        return CapabilityResult.success(value)

    def _normalize_image(self, data: bytes) -> bytes:
        """Re-encode as a square PNG, raising on undecodable data."""
        with Image.open(BytesIO(data)) as img:
            img = img.convert("RGB")
            size = self.settings.image_size
            if img.size != (size, size):
                img = img.resize((size, size), Image.Resampling.LANCZOS)
            out = BytesIO()
            img.save(out, format="PNG")
            return out.getvalue()

    def _image_result(self, capability: str, result: CapabilityResult[bytes]) -> CapabilityResult[bytes]:
        if not result.ok:
            return result
        try:
            return CapabilityResult.success(self._normalize_image(result.value))
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning(f"{capability} returned an unreadable image: {e}")
            return CapabilityResult.failure(capability, f"unreadable image: {e}")

    async def generate_commentary(
        self,
        kind: OutcomeKind,
        ticket: Sequence[int],
        level: ChaosLevel,
    ) -> CapabilityResult[str]:
        prompt = build_commentary_prompt(kind, ticket, level)
        result = await self._call(
            "commentary",
            lambda: self._client.generate_text(prompt, system_instruction=CHAOS_MASTER_SYSTEM),
            self.settings.commentary_timeout,
        )
        if not result.ok:
            return result
        text = result.value.strip()
        if not text:
            return CapabilityResult.failure("commentary", "empty response")
        return CapabilityResult.success(text)

    async def generate_celebration_image(self) -> CapabilityResult[bytes]:
        result = await self._call(
            "celebration_image",
            lambda: self._client.generate_image(CELEBRATION_IMAGE_PROMPT),
            self.settings.image_timeout,
        )
        return self._image_result("celebration_image", result)

    async def generate_celebration_speech(self) -> CapabilityResult[str]:
        return await self._call(
            "celebration_speech",
            lambda: self._client.generate_speech(CELEBRATION_SPEECH, self.settings.voice_name),
            self.settings.speech_timeout,
        )

    async def edit_image(self, image: bytes, instruction: str) -> CapabilityResult[bytes]:
        if not instruction.strip():
            return CapabilityResult.failure("edit_image", "empty instruction")
        result = await self._call(
            "edit_image",
            lambda: self._client.generate_image(instruction.strip(), reference_image=image),
            self.settings.edit_timeout,
        )
        return self._image_result("edit_image", result)
