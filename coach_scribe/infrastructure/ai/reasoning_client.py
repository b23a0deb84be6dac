#!/usr/bin/env python3
"""
Coach Scribe - Reasoning Clients Module
Abstraction and adapters for the reasoning service behind coding and analysis
"""

import asyncio
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import httpx
from anthropic import APIError, AsyncAnthropic
from anthropic.types import TextBlock

from coach_scribe.domain import (
    CodingUnavailable,
    DisciplineTally,
    MasterySettings,
    ReasoningBackend,
    ReasoningSettings,
    SessionMode,
    Tally,
    Utterance,
)

from .prompts import coding_prompt_for, competency_prompt_for

_PARENT_SPEAKER_PATTERN = re.compile(r"PARENT_SPEAKER:\s*(\d+)", re.IGNORECASE)


@dataclass(frozen=True)
class AnalysisResponse:
    """Structured fields extracted from one speaker-and-coding answer"""

    parent_speaker: int | None  # None when the service did not name one
    coding: str  # coded lines, without the PARENT_SPEAKER header
    full_response: str


def parse_analysis_text(text: str) -> AnalysisResponse:
    """
    Split a raw coding answer into parent speaker and coded lines

    Examples:
        >>> parse_analysis_text('PARENT_SPEAKER: 1\\n"Hi" [Neutral] - greeting').parent_speaker
        1
    """
    match = _PARENT_SPEAKER_PATTERN.search(text)
    if match is None:
        return AnalysisResponse(parent_speaker=None, coding=text.strip(), full_response=text)
    return AnalysisResponse(
        parent_speaker=int(match.group(1)),
        coding=text[match.end() :].strip(),
        full_response=text,
    )


def competency_counts(tally: Tally, review_flags: int = 0) -> dict[str, int]:
    """
    Counts in the field names of the proxy's competency endpoints

    The relationship endpoint names reflections `echo` and descriptions
    `narration`, and expects the number of flagged negative phrases.
    Discipline tallies already use the endpoint's names.
    """
    if isinstance(tally, DisciplineTally):
        return tally.counts()
    return {
        "praise": tally.praise,
        "echo": tally.reflect,
        "narration": tally.describe,
        "imitate": tally.imitate,
        "question": tally.question,
        "command": tally.command,
        "criticism": tally.criticism,
        "negative_phrases": review_flags,
        "neutral": tally.neutral,
    }


def _as_speaker(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


class ReasoningClient(ABC):
    """
    Abstract reasoning service client

    `analyze` returns the parent speaker and the coded text for a transcript.
    Concurrent identical requests share one in-flight call, so the role
    resolver and the coder can run side by side for the price of one request.
    Failures raise CodingUnavailable.
    """

    def __init__(self) -> None:
        self._inflight: dict[
            tuple[SessionMode, tuple[tuple[int, str], ...]],
            asyncio.Future[AnalysisResponse],
        ] = {}

    async def analyze(
        self, mode: SessionMode, utterances: Sequence[Utterance]
    ) -> AnalysisResponse:
        """
        Identify the parent speaker and code every parent utterance

        Args:
            mode: Session mode selecting the tag taxonomy
            utterances: Chronological utterances

        Returns:
            AnalysisResponse: Parent speaker index and coded text

        Raises:
            CodingUnavailable: the service failed or returned an unusable answer
        """
        key = (mode, tuple((u.speaker, u.text) for u in utterances))
        future = self._inflight.get(key)
        if future is None:
            future = asyncio.ensure_future(self._analyze(mode, utterances))
            self._inflight[key] = future
            future.add_done_callback(lambda _: self._inflight.pop(key, None))
        return await asyncio.shield(future)

    @abstractmethod
    async def _analyze(
        self, mode: SessionMode, utterances: Sequence[Utterance]
    ) -> AnalysisResponse:
        pass

    @abstractmethod
    async def assess_competency(
        self, mode: SessionMode, tally: Tally, review_flags: int = 0
    ) -> str | None:
        """
        Free-text competency analysis of a tally

        Args:
            mode: Session mode of the tally
            tally: Counts of the coded session
            review_flags: Number of negative phrases flagged for review

        Raises:
            CodingUnavailable: the service failed
        """
        pass

    @abstractmethod
    def get_backend_info(self) -> str:
        """Human-readable backend description"""
        pass

    async def aclose(self) -> None:
        """Release client resources"""


class ProxyReasoningClient(ReasoningClient):
    """
    Backend proxy client

    JSON POSTs to the coding and competency endpoints of the local proxy,
    which holds the model credentials.
    """

    _CODING_PATHS = {
        SessionMode.RELATIONSHIP: "speaker-and-coding",
        SessionMode.DISCIPLINE: "pdi-speaker-and-coding",
    }
    _COMPETENCY_PATHS = {
        SessionMode.RELATIONSHIP: "competency-analysis",
        SessionMode.DISCIPLINE: "pdi-competency-analysis",
    }

    def __init__(self, settings: ReasoningSettings, client: httpx.AsyncClient) -> None:
        """
        Args:
            settings: Reasoning settings (proxy URL, timeout)
            client: Shared HTTP client (owned by the caller)
        """
        super().__init__()
        assert settings.proxy_base_url is not None
        self.settings = settings
        self.client = client
        self.base_url = settings.proxy_base_url.rstrip("/")

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self.client.post(
                f"{self.base_url}/{path}",
                json=body,
                timeout=self.settings.request_timeout_sec,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise CodingUnavailable(
                f"{path} returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise CodingUnavailable(f"{path} request failed: {e}") from e
        except ValueError as e:
            raise CodingUnavailable(f"{path} returned invalid JSON") from e

        if not isinstance(data, dict):
            raise CodingUnavailable(f"{path} returned an unexpected payload")
        return data

    async def _analyze(
        self, mode: SessionMode, utterances: Sequence[Utterance]
    ) -> AnalysisResponse:
        data = await self._post(
            self._CODING_PATHS[mode],
            {"transcript": [{"speaker": u.speaker, "text": u.text} for u in utterances]},
        )
        full_response = str(data.get("fullResponse") or "")
        coding = data.get("coding")
        if coding is None:
            return parse_analysis_text(full_response)
        return AnalysisResponse(
            parent_speaker=_as_speaker(data.get("parentSpeaker")),
            coding=str(coding),
            full_response=full_response,
        )

    async def assess_competency(
        self, mode: SessionMode, tally: Tally, review_flags: int = 0
    ) -> str | None:
        data = await self._post(
            self._COMPETENCY_PATHS[mode],
            {"counts": competency_counts(tally, review_flags)},
        )
        analysis = data.get("analysis")
        return str(analysis) if analysis else None

    def get_backend_info(self) -> str:
        return f"Proxy ({self.base_url})"


class ClaudeReasoningClient(ReasoningClient):
    """
    Claude API client

    Builds the coding and competency prompts locally and parses the
    PARENT_SPEAKER header itself.
    """

    def __init__(
        self,
        settings: ReasoningSettings,
        mastery_settings: MasterySettings | None = None,
        client: AsyncAnthropic | None = None,
    ) -> None:
        """
        Args:
            settings: Reasoning settings (API key, model, token limits)
            mastery_settings: Targets quoted in the competency prompt
            client: Anthropic client (created from settings when None)
        """
        super().__init__()
        # Validated by ReasoningSettings when backend='claude'
        assert client is not None or settings.anthropic_api_key is not None
        self.settings = settings
        self.mastery_settings = mastery_settings or MasterySettings()
        self.client = client or AsyncAnthropic(api_key=settings.anthropic_api_key)

    async def _complete(
        self, system_prompt: str, user_prompt: str, max_tokens: int, temperature: float
    ) -> str:
        try:
            message = await self.client.messages.create(
                model=self.settings.claude_model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
        except APIError as e:
            raise CodingUnavailable(f"Claude request failed: {e}") from e

        text = "".join(
            block.text for block in message.content if isinstance(block, TextBlock)
        )
        if not text.strip():
            raise CodingUnavailable("Claude returned an empty answer")
        return text.strip()

    async def _analyze(
        self, mode: SessionMode, utterances: Sequence[Utterance]
    ) -> AnalysisResponse:
        prompt = coding_prompt_for(mode)
        text = await self._complete(
            prompt.system_prompt,
            prompt.build_user_prompt(utterances),
            self.settings.coding_max_tokens,
            self.settings.coding_temperature,
        )
        return parse_analysis_text(text)

    async def assess_competency(
        self, mode: SessionMode, tally: Tally, review_flags: int = 0
    ) -> str | None:
        prompt = competency_prompt_for(mode, self.mastery_settings)
        return await self._complete(
            prompt.system_prompt,
            prompt.build_user_prompt(tally),
            self.settings.analysis_max_tokens,
            self.settings.analysis_temperature,
        )

    def get_backend_info(self) -> str:
        return f"Claude ({self.settings.claude_model})"

    async def aclose(self) -> None:
        await self.client.close()


def create_reasoning_client(
    settings: ReasoningSettings,
    http_client: httpx.AsyncClient,
    mastery_settings: MasterySettings | None = None,
) -> ReasoningClient:
    """
    Create the reasoning client selected in the settings

    Args:
        settings: Reasoning settings (validated)
        http_client: Shared HTTP client used by the proxy backend
        mastery_settings: Targets quoted in competency prompts

    Returns:
        ReasoningClient: ProxyReasoningClient or ClaudeReasoningClient

    Raises:
        ValueError: unknown backend
    """
    match settings.backend:
        case ReasoningBackend.PROXY:
            return ProxyReasoningClient(settings=settings, client=http_client)
        case ReasoningBackend.CLAUDE:
            return ClaudeReasoningClient(
                settings=settings, mastery_settings=mastery_settings
            )
        case _:
            raise ValueError(
                f"Invalid reasoning.backend: '{settings.backend}'. "
                f"Must be one of: {', '.join(b.value for b in ReasoningBackend)}"
            )
