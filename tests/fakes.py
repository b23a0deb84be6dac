"""Test doubles for audio sources, transcription providers and reasoning clients"""

import asyncio
from collections.abc import AsyncGenerator, Sequence
from typing import Any

import numpy as np

from coach_scribe.domain import (
    MessageLevel,
    MessagePostedEvent,
    SessionMode,
    Tally,
    Utterance,
)
from coach_scribe.infrastructure.ai import AnalysisResponse, ReasoningClient
from coach_scribe.infrastructure.audio import AudioSource
from coach_scribe.infrastructure.transcription import TranscriptionProvider

# ========================================
# Audio
# ========================================
class FakeAudioSource(AudioSource):
    """
    In-memory audio source

    Yields `blocks` once (or forever with endless=True), sleeping
    `block_delay` seconds between blocks.
    """

    def __init__(
        self,
        blocks: Sequence[np.ndarray] | None = None,
        endless: bool = False,
        block_delay: float = 0.0,
        fail_with: Exception | None = None,
    ) -> None:
        self.blocks = list(blocks) if blocks is not None else [tone_block()]
        self.endless = endless
        self.block_delay = block_delay
        self.fail_with = fail_with
        self.running = False
        self.start_calls = 0
        self.stop_calls = 0

    async def stream(self) -> AsyncGenerator[np.ndarray, None]:
        index = 0
        while self.running:
            if index >= len(self.blocks):
                if not self.endless:
                    return
                index = 0
            yield self.blocks[index]
            index += 1
            await asyncio.sleep(self.block_delay)

    def start(self) -> None:
        self.start_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        self.running = True

    def stop(self) -> None:
        self.stop_calls += 1
        self.running = False

    @property
    def is_realtime(self) -> bool:
        return self.endless


def tone_block(
    samples: int = 1600, frequency: float = 440.0, sample_rate: int = 16000
) -> np.ndarray:
    """0.1 s sine block at half amplitude"""
    t = np.arange(samples) / sample_rate
    return (0.5 * np.sin(2 * np.pi * frequency * t)).astype(np.float32)


# ========================================
# Transcription
# ========================================
class FakeProvider(TranscriptionProvider):
    """Provider returning canned utterances or raising a canned error"""

    def __init__(
        self,
        name: str,
        utterances: Sequence[Utterance] | None = None,
        error: Exception | None = None,
        configured: bool = True,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.name = name
        self.utterances = list(utterances or [])
        self.error = error
        self.configured = configured
        self.gate = gate
        self.calls = 0

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def _request(
        self, audio: bytes, content_type: str, cancel_event: asyncio.Event | None
    ) -> dict[str, Any]:
        raise NotImplementedError

    def normalize(
        self, payload: dict[str, Any], duration: float | None = None
    ) -> list[Utterance]:
        raise NotImplementedError

    async def transcribe(
        self,
        audio: bytes,
        content_type: str,
        duration: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[Utterance]:
        self.calls += 1
        # Only the first call waits, later runs pass straight through
        if self.gate is not None and self.calls == 1:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.utterances)


# ========================================
# Reasoning
# ========================================
class FakeReasoningClient(ReasoningClient):
    """Reasoning client answering from canned text"""

    def __init__(
        self,
        parent_speaker: int | None = 0,
        coding: str = "",
        error: Exception | None = None,
        competency: str | None = "Keep going!",
        competency_error: Exception | None = None,
    ) -> None:
        super().__init__()
        self.response = AnalysisResponse(
            parent_speaker=parent_speaker, coding=coding, full_response=coding
        )
        self.error = error
        self.competency = competency
        self.competency_error = competency_error
        self.analyze_calls = 0
        self.competency_calls: list[Tally] = []
        self.competency_flags: list[int] = []
        self.closed = False

    async def _analyze(
        self, mode: SessionMode, utterances: Sequence[Utterance]
    ) -> AnalysisResponse:
        self.analyze_calls += 1
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.response

    async def assess_competency(
        self, mode: SessionMode, tally: Tally, review_flags: int = 0
    ) -> str | None:
        self.competency_calls.append(tally)
        self.competency_flags.append(review_flags)
        if self.competency_error is not None:
            raise self.competency_error
        return self.competency

    def get_backend_info(self) -> str:
        return "Fake"

    async def aclose(self) -> None:
        self.closed = True


def messages_at(events: list[MessagePostedEvent], level: MessageLevel) -> list[str]:
    """Messages of one level"""
    return [e.message for e in events if e.level == level]
