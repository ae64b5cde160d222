"""Speech playback through the pygame mixer.

One mixer is opened lazily per session and reused; every ``play`` call
builds its own Sound, so there is nothing to queue.
"""

import logging
from typing import Optional

import numpy as np
import pygame

from megamaluca.audio.pcm import SPEECH_CHANNELS, SPEECH_SAMPLE_RATE, AudioBuffer, encode_pcm

logger = logging.getLogger(__name__)


class SpeechPlayer:
    """Plays decoded speech buffers."""

    def __init__(
        self,
        sample_rate: int = SPEECH_SAMPLE_RATE,
        channels: int = SPEECH_CHANNELS,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self._initialized = False
        self._current: Optional[pygame.mixer.Sound] = None

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def init(self) -> bool:
        """Open the audio output if it is not open yet."""
        if self._initialized:
            return True
        try:
            if not pygame.mixer.get_init():
                pygame.mixer.pre_init(self.sample_rate, -16, self.channels, 2048)
                pygame.mixer.init()
            self._initialized = True
            logger.info(f"Audio output initialized: {pygame.mixer.get_init()}")
            return True
        except Exception as e:
            logger.error(f"Failed to initialize audio: {e}")
            return False

    def _to_mixer_layout(self, buffer: AudioBuffer) -> np.ndarray:
        """Match the buffer's channel count to the mixer's."""
        mixer = pygame.mixer.get_init()
        mixer_channels = mixer[2] if mixer else self.channels
        if mixer and mixer[0] != buffer.sample_rate:
            logger.warning(
                f"Mixer runs at {mixer[0]} Hz, speech is {buffer.sample_rate} Hz"
            )

        samples = buffer.samples
        if samples.shape[0] == mixer_channels:
            return samples
        if samples.shape[0] == 1:
            return np.repeat(samples, mixer_channels, axis=0)
        return samples.mean(axis=0, keepdims=True).repeat(mixer_channels, axis=0)

    def play(self, buffer: AudioBuffer) -> bool:
        """Start playing a buffer.

        Returns:
            True if playback started
        """
        if buffer.frames == 0:
            logger.warning("Refusing to play an empty speech buffer")
            return False
        if not self.init():
            return False

        try:
            pcm = encode_pcm(self._to_mixer_layout(buffer))
            self._current = pygame.mixer.Sound(buffer=pcm)
            self._current.play()
            logger.info(f"Playing speech ({buffer.duration:.1f}s)")
            return True
        except Exception as e:
            logger.error(f"Speech playback failed: {e}")
            return False

    def stop(self) -> None:
        if self._current is not None:
            self._current.stop()
            self._current = None

    def shutdown(self) -> None:
        """Release the audio output."""
        self.stop()
        if self._initialized:
            pygame.mixer.quit()
            self._initialized = False
            logger.info("Audio output closed")


_player: Optional[SpeechPlayer] = None


def get_speech_player(
    sample_rate: int = SPEECH_SAMPLE_RATE,
    channels: int = SPEECH_CHANNELS,
) -> SpeechPlayer:
    """Get the session-wide speech player (arguments only used on first call)."""
    global _player
    if _player is None:
        _player = SpeechPlayer(sample_rate, channels)
    return _player
