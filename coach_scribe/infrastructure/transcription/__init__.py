#!/usr/bin/env python3
"""
Coach Scribe - Transcription Infrastructure
Provider adapters, diarization normalizers and the provider chain
"""

# Normalizers
from .normalizers import (
    group_words,
    map_turns,
    parse_speaker_id,
    parse_speaker_label,
    single_utterance,
    with_text_fallback,
)

# Job polling
from .polling import JobPoller, PollAction, PollState

# Providers
from .providers import (
    AssemblyAIProvider,
    DeepgramProvider,
    ElevenLabsProvider,
    TranscriptionProvider,
    create_providers,
)

# Provider chain
from .orchestrator import TranscriptionOrchestrator

__all__ = [
    # Normalizers
    "group_words",
    "map_turns",
    "parse_speaker_id",
    "parse_speaker_label",
    "single_utterance",
    "with_text_fallback",
    # Job polling
    "JobPoller",
    "PollAction",
    "PollState",
    # Providers
    "AssemblyAIProvider",
    "DeepgramProvider",
    "ElevenLabsProvider",
    "TranscriptionProvider",
    "create_providers",
    # Provider chain
    "TranscriptionOrchestrator",
]
