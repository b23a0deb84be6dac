"""Tests for transcription provider adapters (HTTP mocked with httpx.MockTransport)"""

import asyncio
import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from coach_scribe.domain import (
    EmptyTranscript,
    PollSettings,
    ProviderError,
    ProviderSettings,
    Utterance,
)
from coach_scribe.infrastructure.transcription import (
    AssemblyAIProvider,
    DeepgramProvider,
    ElevenLabsProvider,
    TranscriptionProvider,
    create_providers,
)

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def settings() -> ProviderSettings:
    """Every provider configured"""
    return ProviderSettings(
        elevenlabs_api_key="el-key",
        deepgram_api_key="dg-key",
        assemblyai_api_key="aai-key",
    )


@pytest.fixture
def poll_settings() -> PollSettings:
    """Immediate re-polls, at most five status checks"""
    return PollSettings(interval_sec=0.0, max_attempts=5, request_timeout_sec=1.0)


def transcribe_with(
    factory: Callable[[httpx.AsyncClient], TranscriptionProvider],
    handler: Handler,
    duration: float | None = None,
    cancel_event: asyncio.Event | None = None,
) -> list[Utterance]:
    """Run one transcription against a mocked HTTP transport"""

    async def scenario() -> list[Utterance]:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = factory(client)
            return await provider.transcribe(
                b"RIFF....WAVE", "audio/wav", duration=duration, cancel_event=cancel_event
            )

    return asyncio.run(scenario())


def json_handler(body: Any, status_code: int = 200) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=body)

    return handler


class TestElevenLabs:
    """ElevenLabs adapter"""

    def test_groups_diarized_words(self, settings: ProviderSettings) -> None:
        """Word-level speaker ids are grouped into utterances"""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200,
                json={
                    "text": "hi there bye",
                    "words": [
                        {"text": "hi", "type": "word", "speaker_id": "speaker_0", "start": 0.0, "end": 0.2},
                        {"text": " ", "type": "spacing", "speaker_id": "speaker_0", "start": 0.2, "end": 0.3},
                        {"text": "there", "type": "word", "speaker_id": "speaker_0", "start": 0.3, "end": 0.6},
                        {"text": "bye", "type": "word", "speaker_id": "speaker_1", "start": 1.0, "end": 1.3},
                    ],
                },
            )

        result = transcribe_with(lambda c: ElevenLabsProvider(settings, c), handler)

        assert [(u.text, u.speaker) for u in result] == [("hi there", 0), ("bye", 1)]
        request = requests[0]
        assert request.headers["xi-api-key"] == "el-key"
        assert str(request.url) == settings.elevenlabs_url
        assert b'name="diarize"' in request.content
        assert b'filename="recording.wav"' in request.content

    def test_plain_text_fallback(self, settings: ProviderSettings) -> None:
        """Text without words becomes one utterance spanning the recording"""
        result = transcribe_with(
            lambda c: ElevenLabsProvider(settings, c),
            json_handler({"text": "Let's play with the cars.", "words": []}),
            duration=8.0,
        )
        assert result == [Utterance(speaker=0, text="Let's play with the cars.", end=8.0)]

    def test_no_speech_is_empty_transcript(self, settings: ProviderSettings) -> None:
        """An answer without text raises EmptyTranscript"""
        with pytest.raises(EmptyTranscript):
            transcribe_with(
                lambda c: ElevenLabsProvider(settings, c),
                json_handler({"text": "", "words": []}),
            )

    def test_http_error_detail(self, settings: ProviderSettings) -> None:
        """Error statuses surface the provider's message"""
        with pytest.raises(ProviderError) as exc_info:
            transcribe_with(
                lambda c: ElevenLabsProvider(settings, c),
                json_handler({"detail": {"message": "Invalid API key"}}, status_code=401),
            )
        assert exc_info.value.provider == "elevenlabs"
        assert exc_info.value.detail == "HTTP 401: Invalid API key"

    def test_malformed_response(self, settings: ProviderSettings) -> None:
        """Non-object JSON is a provider failure"""
        with pytest.raises(ProviderError, match="malformed response"):
            transcribe_with(lambda c: ElevenLabsProvider(settings, c), json_handler([1, 2]))

    def test_transport_error(self, settings: ProviderSettings) -> None:
        """Connection failures become ProviderError"""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderError, match="connection refused"):
            transcribe_with(lambda c: ElevenLabsProvider(settings, c), handler)


class TestDeepgram:
    """Deepgram adapter"""

    def test_maps_utterances(self, settings: ProviderSettings) -> None:
        """Turn-level utterances map one to one"""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200,
                json={
                    "results": {
                        "utterances": [
                            {"speaker": 0, "transcript": "Let's build.", "start": 0.0, "end": 1.2},
                            {"speaker": 1, "transcript": "Okay!", "start": 1.5, "end": 2.0},
                        ],
                        "channels": [{"alternatives": [{"transcript": "Let's build. Okay!"}]}],
                    }
                },
            )

        result = transcribe_with(lambda c: DeepgramProvider(settings, c), handler)

        assert [(u.text, u.speaker) for u in result] == [("Let's build.", 0), ("Okay!", 1)]
        request = requests[0]
        assert request.headers["Authorization"] == "Token dg-key"
        assert request.url.params["diarize"] == "true"
        assert request.content == b"RIFF....WAVE"

    def test_falls_back_to_words(self, settings: ProviderSettings) -> None:
        """Word speakers are grouped when no utterances are returned"""
        body = {
            "results": {
                "channels": [
                    {
                        "alternatives": [
                            {
                                "transcript": "good job thanks",
                                "words": [
                                    {"word": "good", "punctuated_word": "Good", "speaker": 0, "start": 0.0, "end": 0.2},
                                    {"word": "job", "punctuated_word": "job!", "speaker": 0, "start": 0.2, "end": 0.5},
                                    {"word": "thanks", "punctuated_word": "Thanks.", "speaker": 1, "start": 0.8, "end": 1.0},
                                ],
                            }
                        ]
                    }
                ]
            }
        }
        result = transcribe_with(lambda c: DeepgramProvider(settings, c), json_handler(body))
        assert [(u.text, u.speaker) for u in result] == [("Good job!", 0), ("Thanks.", 1)]

    def test_flat_transcript(self, settings: ProviderSettings) -> None:
        """Undiarized transcripts become a single utterance"""
        body = {
            "results": {
                "channels": [{"alternatives": [{"transcript": "All done.", "words": []}]}]
            }
        }
        result = transcribe_with(
            lambda c: DeepgramProvider(settings, c), json_handler(body), duration=3.0
        )
        assert result == [Utterance(speaker=0, text="All done.", end=3.0)]

    def test_no_channels_is_empty(self, settings: ProviderSettings) -> None:
        """A result with nothing in it is an empty transcript"""
        with pytest.raises(EmptyTranscript):
            transcribe_with(
                lambda c: DeepgramProvider(settings, c), json_handler({"results": {}})
            )


class TestAssemblyAI:
    """AssemblyAI adapter (upload, submit, poll)"""

    @staticmethod
    def job_handler(
        statuses: list[dict[str, Any]], submitted: list[dict[str, Any]] | None = None
    ) -> Handler:
        remaining = iter(statuses)

        def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path
            if path == "/v2/upload":
                return httpx.Response(200, json={"upload_url": "https://cdn.example/audio"})
            if path == "/v2/transcript" and request.method == "POST":
                if submitted is not None:
                    submitted.append(json.loads(request.content))
                return httpx.Response(200, json={"id": "job-1", "status": "queued"})
            if path == "/v2/transcript/job-1":
                status = next(remaining)
                if status.get("timeout"):
                    raise httpx.ReadTimeout("timed out", request=request)
                return httpx.Response(200, json=status)
            return httpx.Response(404, json={"error": f"unexpected {path}"})

        return handler

    def test_polls_until_completed(
        self, settings: ProviderSettings, poll_settings: PollSettings
    ) -> None:
        """Utterances are returned once the job completes, times in seconds"""
        submitted: list[dict[str, Any]] = []
        handler = self.job_handler(
            [
                {"status": "queued"},
                {"status": "processing"},
                {
                    "status": "completed",
                    "text": "Nice drawing. Thanks.",
                    "utterances": [
                        {"speaker": "A", "text": "Nice drawing.", "start": 0, "end": 1500},
                        {"speaker": "B", "text": "Thanks.", "start": 2000, "end": 2600},
                    ],
                },
            ],
            submitted,
        )
        result = transcribe_with(
            lambda c: AssemblyAIProvider(settings, c, poll_settings), handler
        )

        assert result == [
            Utterance(speaker=0, text="Nice drawing.", start=0.0, end=1.5),
            Utterance(speaker=1, text="Thanks.", start=2.0, end=2.6),
        ]
        assert submitted == [
            {
                "audio_url": "https://cdn.example/audio",
                "speaker_labels": True,
                "speakers_expected": 2,
            }
        ]

    def test_timeout_counts_as_attempt(
        self, settings: ProviderSettings, poll_settings: PollSettings
    ) -> None:
        """A timed-out status query is retried"""
        handler = self.job_handler(
            [
                {"timeout": True},
                {"status": "completed", "text": "Hello.", "audio_duration": 4.0},
            ]
        )
        result = transcribe_with(
            lambda c: AssemblyAIProvider(settings, c, poll_settings), handler
        )
        assert result == [Utterance(speaker=0, text="Hello.", end=4.0)]

    def test_job_error(self, settings: ProviderSettings, poll_settings: PollSettings) -> None:
        """An error status fails the provider with its message"""
        handler = self.job_handler([{"status": "error", "error": "Audio file is empty"}])
        with pytest.raises(ProviderError, match="Audio file is empty"):
            transcribe_with(lambda c: AssemblyAIProvider(settings, c, poll_settings), handler)

    def test_gives_up_after_max_attempts(
        self, settings: ProviderSettings, poll_settings: PollSettings
    ) -> None:
        """Polling is bounded"""
        handler = self.job_handler([{"status": "processing"}] * 10)
        with pytest.raises(ProviderError, match="timed out after 5 status checks"):
            transcribe_with(lambda c: AssemblyAIProvider(settings, c, poll_settings), handler)

    def test_cancelled_run_stops_polling(
        self, settings: ProviderSettings, poll_settings: PollSettings
    ) -> None:
        """A set cancel event ends polling before the first status check"""
        handler = self.job_handler([])
        cancel_event = asyncio.Event()
        cancel_event.set()
        with pytest.raises(ProviderError, match="polling cancelled"):
            transcribe_with(
                lambda c: AssemblyAIProvider(settings, c, poll_settings),
                handler,
                cancel_event=cancel_event,
            )


class TestProviderChainFactory:
    """create_providers"""

    def test_follows_configured_order(self) -> None:
        """Providers are created in priority order"""
        settings = ProviderSettings(order=["assemblyai", "elevenlabs"])
        client = httpx.AsyncClient()
        providers = create_providers(settings, client)
        assert [p.name for p in providers] == ["assemblyai", "elevenlabs"]

    def test_unconfigured_providers_are_included(self) -> None:
        """Missing keys are reported through is_configured"""
        settings = ProviderSettings(
            elevenlabs_api_key=None, deepgram_api_key="dg-key", assemblyai_api_key=None
        )
        providers = create_providers(settings, httpx.AsyncClient())
        assert [p.is_configured for p in providers] == [False, True, False]

    def test_rejects_unknown_provider(self) -> None:
        """Unknown names fail settings validation"""
        with pytest.raises(ValueError, match="unknown providers"):
            ProviderSettings(order=["whisper"])
