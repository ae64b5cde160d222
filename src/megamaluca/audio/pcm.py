"""Raw PCM decoding for Gemini speech payloads.

Gemini TTS answers with base64 text wrapping headerless 16-bit
little-endian signed PCM, mono, 24 kHz. These helpers turn that into a
float32 sample buffer normalized to [-1, 1] and back.
"""

import base64
import binascii
import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

SPEECH_SAMPLE_RATE = 24000
SPEECH_CHANNELS = 1
SAMPLE_WIDTH = 2  # bytes per int16 sample
INT16_SCALE = 32768.0


class MalformedAudioPayload(ValueError):
    """Audio payload cannot be decoded."""


@dataclass(frozen=True)
class AudioBuffer:
    """Decoded audio, one row per channel.

    Attributes:
        samples: float32 array shaped (channels, frames), values in [-1, 1]
        sample_rate: Frames per second
    """

    samples: np.ndarray
    sample_rate: int

    @property
    def channels(self) -> int:
        return self.samples.shape[0]

    @property
    def frames(self) -> int:
        return self.samples.shape[1]

    @property
    def duration(self) -> float:
        """Length in seconds."""
        return self.frames / self.sample_rate if self.sample_rate else 0.0

    def channel(self, index: int) -> np.ndarray:
        return self.samples[index]


def decode_base64_audio(payload: str) -> bytes:
    """Decode standard-alphabet base64 into raw bytes.

    Raises:
        MalformedAudioPayload: on a character outside the alphabet or bad padding
    """
    try:
        return base64.b64decode(payload.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedAudioPayload(f"Invalid base64 audio: {e}") from e


def decode_pcm(
    data: bytes,
    sample_rate: int = SPEECH_SAMPLE_RATE,
    channels: int = SPEECH_CHANNELS,
) -> AudioBuffer:
    """Convert interleaved int16 LE PCM to normalized float samples.

    Sample ``i`` of channel ``c`` is ``int16[i * channels + c] / 32768``.

    Args:
        data: Raw PCM bytes
        sample_rate: Sample rate of the payload
        channels: Interleaved channel count

    Returns:
        AudioBuffer shaped (channels, frames)

    Raises:
        MalformedAudioPayload: if the length is not a whole number of frames
    """
    if channels < 1:
        raise ValueError(f"Channel count must be >= 1, got {channels}")

    frame_size = SAMPLE_WIDTH * channels
    if len(data) % frame_size != 0:
        raise MalformedAudioPayload(
            f"PCM length {len(data)} is not a multiple of {frame_size} bytes"
        )

    ints = np.frombuffer(data, dtype="<i2")
    frames = ints.reshape(-1, channels).T
    samples = (frames / INT16_SCALE).astype(np.float32)
    return AudioBuffer(samples=samples, sample_rate=sample_rate)


def encode_pcm(samples: np.ndarray) -> bytes:
    """Convert float samples back to interleaved int16 LE PCM.

    Accepts a 1-D mono array or a (channels, frames) array. Values outside
    the int16 range are clipped.
    """
    samples = np.asarray(samples, dtype=np.float64)
    if samples.ndim == 1:
        samples = samples[np.newaxis, :]

    scaled = np.clip(np.round(samples * INT16_SCALE), -32768, 32767)
    return scaled.astype("<i2").T.tobytes()


def decode_speech_payload(
    payload: str,
    sample_rate: int = SPEECH_SAMPLE_RATE,
    channels: int = SPEECH_CHANNELS,
) -> AudioBuffer:
    """Decode a base64 speech payload straight to samples."""
    buffer = decode_pcm(decode_base64_audio(payload), sample_rate, channels)
    logger.debug(f"Decoded speech: {buffer.frames} frames, {buffer.duration:.2f}s")
    return buffer
