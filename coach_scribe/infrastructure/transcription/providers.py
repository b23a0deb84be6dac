#!/usr/bin/env python3
"""
Coach Scribe - Transcription Providers Module
Adapters turning each speech-to-text service into an Utterance sequence
"""

import asyncio
import contextlib
from abc import ABC, abstractmethod
from typing import Any

import httpx

from coach_scribe.domain import (
    EmptyTranscript,
    PollSettings,
    ProviderError,
    ProviderSettings,
    Utterance,
)

from .normalizers import (
    group_words,
    map_turns,
    parse_speaker_label,
    single_utterance,
    with_text_fallback,
)
from .polling import JobPoller, PollAction

_FILE_EXTENSIONS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/flac": "flac",
    "audio/mpeg": "mp3",
    "audio/mp4": "m4a",
    "audio/webm": "webm",
    "audio/ogg": "ogg",
}
_MAX_ERROR_DETAIL = 200


def _error_detail(response: httpx.Response) -> str:
    """Best-effort error message from a provider error response"""
    try:
        body = response.json()
    except ValueError:
        return response.text[:_MAX_ERROR_DETAIL] or response.reason_phrase

    if isinstance(body, dict):
        detail = body.get("detail")
        if isinstance(detail, dict) and detail.get("message"):
            return str(detail["message"])
        for key in ("error", "err_msg", "message", "detail"):
            if body.get(key):
                return str(body[key])
    return str(body)[:_MAX_ERROR_DETAIL]


class TranscriptionProvider(ABC):
    """
    Abstract transcription provider

    Subclasses implement the HTTP exchange (`_request`) and the conversion of
    the native response (`normalize`). `transcribe` maps every transport,
    status and shape failure to ProviderError and an answer without speech
    to EmptyTranscript.
    """

    name: str = ""

    def __init__(self, settings: ProviderSettings, client: httpx.AsyncClient) -> None:
        """
        Args:
            settings: Provider settings (credentials, endpoints, hints)
            client: Shared HTTP client (owned by the caller)
        """
        self.settings = settings
        self.client = client

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the provider's credential is set"""
        pass

    @abstractmethod
    async def _request(
        self, audio: bytes, content_type: str, cancel_event: asyncio.Event | None
    ) -> dict[str, Any]:
        """Send the audio and return the decoded native response"""
        pass

    @abstractmethod
    def normalize(
        self, payload: dict[str, Any], duration: float | None = None
    ) -> list[Utterance]:
        """Convert the native response to utterances"""
        pass

    async def transcribe(
        self,
        audio: bytes,
        content_type: str,
        duration: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[Utterance]:
        """
        Transcribe one recording

        Args:
            audio: Encoded audio payload
            content_type: MIME type of the payload
            duration: Recording length in seconds, used by the plain-text fallback
            cancel_event: Set when the pipeline run is abandoned

        Returns:
            list[Utterance]: Non-empty utterance sequence

        Raises:
            ProviderError: the request or its response was unusable
            EmptyTranscript: the provider answered without any speech
        """
        try:
            payload = await self._request(audio, content_type, cancel_event)
            if not isinstance(payload, dict):
                raise ValueError("response is not a JSON object")
            utterances = self.normalize(payload, duration)
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                self.name,
                f"HTTP {e.response.status_code}: {_error_detail(e.response)}",
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(self.name, str(e) or type(e).__name__) from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ProviderError(self.name, f"malformed response: {e}") from e

        if not utterances:
            raise EmptyTranscript(f"{self.name} detected no speech")
        return utterances

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        response.raise_for_status()
        return response.json()


class ElevenLabsProvider(TranscriptionProvider):
    """Multipart upload, word-level diarization with speaker_<n> ids"""

    name = "elevenlabs"

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.elevenlabs_api_key)

    async def _request(
        self, audio: bytes, content_type: str, cancel_event: asyncio.Event | None
    ) -> dict[str, Any]:
        extension = _FILE_EXTENSIONS.get(content_type, "wav")
        response = await self.client.post(
            self.settings.elevenlabs_url,
            headers={"xi-api-key": self.settings.elevenlabs_api_key or ""},
            files={"file": (f"recording.{extension}", audio, content_type)},
            data={
                "model_id": self.settings.elevenlabs_model,
                "diarize": "true",
                "num_speakers": str(self.settings.expected_speakers),
                "timestamps_granularity": "word",
            },
            timeout=self.settings.request_timeout_sec,
        )
        return self._json(response)

    def normalize(
        self, payload: dict[str, Any], duration: float | None = None
    ) -> list[Utterance]:
        words = payload.get("words") or []
        return with_text_fallback(
            group_words(words, speaker_key="speaker_id"), payload.get("text"), duration
        )


class DeepgramProvider(TranscriptionProvider):
    """Raw binary upload, utterance-level diarization or a flat transcript"""

    name = "deepgram"

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.deepgram_api_key)

    async def _request(
        self, audio: bytes, content_type: str, cancel_event: asyncio.Event | None
    ) -> dict[str, Any]:
        response = await self.client.post(
            self.settings.deepgram_url,
            params={
                "model": self.settings.deepgram_model,
                "smart_format": "true",
                "diarize": "true",
                "punctuate": "true",
                "utterances": "true",
            },
            headers={
                "Authorization": f"Token {self.settings.deepgram_api_key}",
                "Content-Type": content_type,
            },
            content=audio,
            timeout=self.settings.request_timeout_sec,
        )
        return self._json(response)

    def normalize(
        self, payload: dict[str, Any], duration: float | None = None
    ) -> list[Utterance]:
        results = payload.get("results") or {}
        turns = results.get("utterances") or []
        if turns:
            utterances = map_turns(turns, text_key="transcript")
            if utterances:
                return utterances

        channels = results.get("channels") or []
        if not channels:
            return []
        alternative = (channels[0].get("alternatives") or [{}])[0]
        words = alternative.get("words") or []
        utterances: list[Utterance] = []
        if any("speaker" in word for word in words):
            utterances = group_words(
                words, speaker_key="speaker", speaker_parser=parse_speaker_label
            )
        return with_text_fallback(utterances, alternative.get("transcript"), duration)


class AssemblyAIProvider(TranscriptionProvider):
    """Upload, job submission and bounded status polling"""

    name = "assemblyai"

    # Utterance and word timestamps are reported in milliseconds
    _TIME_SCALE = 0.001

    def __init__(
        self,
        settings: ProviderSettings,
        client: httpx.AsyncClient,
        poll_settings: PollSettings | None = None,
    ) -> None:
        super().__init__(settings, client)
        self.poll_settings = poll_settings or PollSettings()

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.assemblyai_api_key)

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": self.settings.assemblyai_api_key or ""}

    async def _request(
        self, audio: bytes, content_type: str, cancel_event: asyncio.Event | None
    ) -> dict[str, Any]:
        base_url = self.settings.assemblyai_base_url.rstrip("/")

        # 1. Upload the raw audio
        upload = await self.client.post(
            f"{base_url}/upload",
            headers={**self._headers, "Content-Type": "application/octet-stream"},
            content=audio,
            timeout=self.settings.request_timeout_sec,
        )
        upload_url = self._json(upload)["upload_url"]

        # 2. Submit the transcription job
        job = await self.client.post(
            f"{base_url}/transcript",
            headers=self._headers,
            json={
                "audio_url": upload_url,
                "speaker_labels": True,
                "speakers_expected": self.settings.expected_speakers,
            },
            timeout=self.settings.request_timeout_sec,
        )
        job_id = self._json(job)["id"]

        # 3. Poll until the job is terminal
        return await self._poll(f"{base_url}/transcript/{job_id}", cancel_event)

    async def _poll(
        self, url: str, cancel_event: asyncio.Event | None
    ) -> dict[str, Any]:
        poller = JobPoller(self.poll_settings)
        while True:
            if cancel_event is not None and cancel_event.is_set():
                poller.cancel()
                raise ProviderError(self.name, poller.error or "polling cancelled")

            body: dict[str, Any] = {}
            try:
                response = await self.client.get(
                    url,
                    headers=self._headers,
                    timeout=self.poll_settings.request_timeout_sec,
                )
                body = self._json(response)
                action = poller.observe(body.get("status"), body.get("error"))
            except httpx.TimeoutException:
                action = poller.observe_timeout()

            match action:
                case PollAction.FINISH:
                    return body
                case PollAction.ABORT:
                    raise ProviderError(self.name, poller.error or "job failed")
                case PollAction.WAIT:
                    await self._wait(cancel_event)

    async def _wait(self, cancel_event: asyncio.Event | None) -> None:
        """Sleep one poll interval, waking early on cancellation"""
        if cancel_event is None:
            await asyncio.sleep(self.poll_settings.interval_sec)
            return
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(cancel_event.wait(), self.poll_settings.interval_sec)

    def normalize(
        self, payload: dict[str, Any], duration: float | None = None
    ) -> list[Utterance]:
        utterances = map_turns(
            payload.get("utterances") or [], time_scale=self._TIME_SCALE
        )
        if not utterances:
            utterances = group_words(
                payload.get("words") or [],
                speaker_key="speaker",
                speaker_parser=parse_speaker_label,
                time_scale=self._TIME_SCALE,
            )
        if not utterances:
            end = payload.get("audio_duration")
            return single_utterance(
                payload.get("text"), float(end) if end is not None else duration
            )
        return utterances


def create_providers(
    settings: ProviderSettings,
    client: httpx.AsyncClient,
    poll_settings: PollSettings | None = None,
) -> list[TranscriptionProvider]:
    """
    Build the provider chain in configured priority order

    Args:
        settings: Provider settings (order and credentials)
        client: Shared HTTP client
        poll_settings: Polling bounds for job-based providers

    Returns:
        list[TranscriptionProvider]: Providers, including unconfigured ones
    """
    providers: list[TranscriptionProvider] = []
    for name in settings.order:
        match name:
            case "elevenlabs":
                providers.append(ElevenLabsProvider(settings, client))
            case "deepgram":
                providers.append(DeepgramProvider(settings, client))
            case "assemblyai":
                providers.append(AssemblyAIProvider(settings, client, poll_settings))
            case _:
                raise ValueError(f"Unknown transcription provider: {name}")
    return providers
