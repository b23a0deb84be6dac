#!/usr/bin/env python3
"""
Coach Scribe - Audio Infrastructure
Audio capture infrastructure
"""

# Audio sources
from .sources import AudioDevice, AudioSource, FileAudioSource, MicrophoneAudioSource

# Waveform
from .waveform import AmplitudeMeter

# Capture
from .capture import CONTENT_TYPES, AudioCapture, encode_audio

__all__ = [
    # Audio sources
    "AudioDevice",
    "AudioSource",
    "FileAudioSource",
    "MicrophoneAudioSource",
    # Waveform
    "AmplitudeMeter",
    # Capture
    "CONTENT_TYPES",
    "AudioCapture",
    "encode_audio",
]
