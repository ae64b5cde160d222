"""Gemini API client for Mega Sena Maluca.

Text goes through the google-genai SDK; image and speech generation use
the REST endpoint directly so the raw base64 payloads come back untouched.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any, List

import aiohttp

from megamaluca.ai.logging import get_ai_logger
from megamaluca.config.settings import AISettings

logger = logging.getLogger(__name__)

API_BASE = "https://generativelanguage.googleapis.com/v1beta"


class GeminiModel(Enum):
    """Default Gemini models."""

    # Commentary
    FLASH_3 = "gemini-3-flash-preview"

    # Celebration image and image edits
    FLASH_IMAGE = "gemini-2.5-flash-image"

    # Text to speech, answers with 24 kHz 16-bit mono PCM
    FLASH_TTS = "gemini-2.5-flash-preview-tts"


@dataclass
class GeminiConfig:
    """Configuration for Gemini client."""

    api_key: str
    text_model: str = GeminiModel.FLASH_3.value
    image_model: str = GeminiModel.FLASH_IMAGE.value
    speech_model: str = GeminiModel.FLASH_TTS.value
    timeout: float = 120.0  # per attempt
    max_retries: int = 3
    retry_delay: float = 1.0
    temperature: float = 0.9
    max_output_tokens: int = 1024
    log_generations: bool = False
    log_dir: Optional[Path] = None

    @classmethod
    def from_settings(cls, settings: AISettings) -> "GeminiConfig":
        return cls(
            api_key=settings.gemini_api_key,
            text_model=settings.commentary_model,
            image_model=settings.image_model,
            speech_model=settings.speech_model,
            timeout=max(settings.commentary_timeout, settings.image_timeout,
                        settings.speech_timeout, settings.edit_timeout),
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay,
            temperature=settings.temperature,
            log_generations=settings.log_generations,
            log_dir=settings.log_dir,
        )


def extract_inline_data(data: Dict[str, Any]) -> Optional[str]:
    """Return the first base64 inline payload of a generateContent response."""
    for candidate in data.get("candidates") or []:
        content = candidate.get("content") or {}
        for part in content.get("parts") or []:
            inline_data = part.get("inlineData") or part.get("inline_data")
            if inline_data and inline_data.get("data"):
                return inline_data["data"]
    return None


class GeminiClient:
    """Async Gemini API client.

    Provides:
    - Text generation (commentary)
    - Image generation and editing
    - Speech synthesis
    """

    def __init__(self, config: GeminiConfig):
        self.config = config
        self._client = None  # google-genai SDK client, created on first use
        if not config.api_key:
            logger.warning("No Gemini API key set, AI features will be disabled")
        logger.info("GeminiClient initialized")

    @property
    def is_available(self) -> bool:
        """Check if AI features are available."""
        return bool(self.config.api_key)

    async def _ensure_client(self) -> bool:
        """Ensure the SDK client is initialized."""
        if self._client is not None:
            return True

        if not self.config.api_key:
            logger.error("Cannot initialize client: no API key")
            return False

        try:
            from google import genai

            self._client = genai.Client(api_key=self.config.api_key)
            logger.info("Gemini API client connected")
            return True

        except Exception as e:
            logger.error(f"Failed to initialize Gemini client: {e}")
            return False

    def _log_text(self, prompt: str, response: str, model: str, **metadata: Any) -> None:
        if not self.config.log_generations:
            return
        get_ai_logger(self.config.log_dir).log_text_generation(
            category="commentary",
            prompt=prompt,
            response=response,
            model=model,
            metadata=metadata,
        )

    def _log_image(self, category: str, image: bytes, prompt: str, model: str) -> None:
        if not self.config.log_generations:
            return
        get_ai_logger(self.config.log_dir).log_image_generation(
            category=category,
            image_data=image,
            prompt=prompt,
            model=model,
        )

    async def generate_text(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> Optional[str]:
        """Generate text using Gemini.

        Args:
            prompt: The user prompt
            system_instruction: Optional system prompt
            model: Override the configured text model
            temperature: Override default temperature

        Returns:
            Generated text or None on error
        """
        if not await self._ensure_client():
            return None

        model = model or self.config.text_model

        try:
            from google.genai import types

            config = types.GenerateContentConfig(
                temperature=temperature if temperature is not None else self.config.temperature,
                max_output_tokens=self.config.max_output_tokens,
                system_instruction=system_instruction,
            )

            for attempt in range(self.config.max_retries):
                try:
                    response = await asyncio.wait_for(
                        asyncio.to_thread(
                            self._client.models.generate_content,
                            model=model,
                            contents=prompt,
                            config=config,
                        ),
                        timeout=self.config.timeout,
                    )

                    if response and response.text:
                        self._log_text(prompt, response.text, model,
                                       system_instruction=system_instruction)
                        return response.text

                    logger.warning(f"Empty text response, attempt {attempt + 1}")

                except asyncio.TimeoutError:
                    logger.warning(f"Timeout on attempt {attempt + 1}")
                except Exception as e:
                    if "503" in str(e) or "overloaded" in str(e).lower():
                        logger.warning(f"Service overloaded, retry {attempt + 1}")
                        await asyncio.sleep(self.config.retry_delay * (attempt + 1))
                    else:
                        raise

            logger.error("All retries exhausted")
            return None

        except Exception as e:
            logger.error(f"Text generation failed: {e}")
            return None

    async def _post_generate_content(
        self,
        model: str,
        payload: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        """POST a generateContent request, retrying on 503 and timeouts.

        Returns:
            Parsed JSON response or None on error
        """
        if not self.config.api_key:
            logger.error("Cannot call Gemini: no API key")
            return None

        endpoint = f"{API_BASE}/models/{model}:generateContent"
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.config.api_key,
        }

        try:
            for attempt in range(self.config.max_retries):
                try:
                    async with aiohttp.ClientSession() as session:
                        async with session.post(
                            endpoint,
                            json=payload,
                            headers=headers,
                            timeout=aiohttp.ClientTimeout(total=self.config.timeout),
                        ) as response:
                            if response.status == 503:
                                logger.warning(f"Service unavailable, retry {attempt + 1}")
                                await asyncio.sleep(self.config.retry_delay * (attempt + 1))
                                continue

                            if not response.ok:
                                error_text = await response.text()
                                logger.error(f"API error {response.status}: {error_text[:300]}")
                                if attempt < self.config.max_retries - 1:
                                    await asyncio.sleep(self.config.retry_delay * (attempt + 1))
                                    continue
                                return None

                            return await response.json()

                except asyncio.TimeoutError:
                    logger.warning(f"{model} request timeout, attempt {attempt + 1}")

            logger.error(f"All retries exhausted for {model}")
            return None

        except Exception as e:
            logger.error(f"{model} request failed: {e}")
            return None

    async def generate_image(
        self,
        prompt: str,
        reference_image: Optional[bytes] = None,
        mime_type: str = "image/png",
        aspect_ratio: str = "1:1",
    ) -> Optional[bytes]:
        """Generate an image, or edit ``reference_image`` following ``prompt``.

        Args:
            prompt: Description of the image, or the edit instruction
            reference_image: Image to edit
            mime_type: MIME type of the reference image
            aspect_ratio: Output aspect ratio

        Returns:
            Image bytes or None on error
        """
        parts: List[Dict[str, Any]] = []
        if reference_image:
            parts.append({
                "inlineData": {
                    "mimeType": mime_type,
                    "data": base64.b64encode(reference_image).decode("ascii"),
                }
            })
        parts.append({"text": prompt})

        payload = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "responseModalities": ["TEXT", "IMAGE"],
                "imageConfig": {"aspectRatio": aspect_ratio},
            },
        }

        data = await self._post_generate_content(self.config.image_model, payload)
        if data is None:
            return None

        image_b64 = extract_inline_data(data)
        if not image_b64:
            logger.warning("No image in response")
            return None

        image = base64.b64decode(image_b64)
        self._log_image("edit" if reference_image else "celebration", image,
                        prompt, self.config.image_model)
        return image

    async def generate_speech(self, text: str, voice_name: str = "Kore") -> Optional[str]:
        """Synthesize speech.

        Args:
            text: What to say
            voice_name: Prebuilt Gemini voice

        Returns:
            Base64 text wrapping raw 16-bit PCM, or None on error
        """
        payload = {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {
                        "prebuiltVoiceConfig": {"voiceName": voice_name},
                    },
                },
            },
        }

        data = await self._post_generate_content(self.config.speech_model, payload)
        if data is None:
            return None

        audio_b64 = extract_inline_data(data)
        if not audio_b64:
            logger.warning("No audio in speech response")
            return None
        return audio_b64
