"""
Audio for Mega Sena Maluca - speech payload decoding and playback.
"""

from .pcm import (
    AudioBuffer,
    MalformedAudioPayload,
    decode_base64_audio,
    decode_pcm,
    decode_speech_payload,
    encode_pcm,
)
from .player import SpeechPlayer, get_speech_player

__all__ = [
    "AudioBuffer",
    "MalformedAudioPayload",
    "decode_base64_audio",
    "decode_pcm",
    "decode_speech_payload",
    "encode_pcm",
    "SpeechPlayer",
    "get_speech_player",
]
