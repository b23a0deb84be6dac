#!/usr/bin/env python3
"""
Coach Scribe - Transcription Orchestrator
Sequential provider chain: the first non-empty transcript wins
"""

import asyncio
from collections.abc import Sequence

from coach_scribe.domain import (
    EmptyTranscript,
    MessageLevel,
    ProviderError,
    TranscriptionCancelled,
    TranscriptionResult,
    TranscriptionUnavailable,
    post_message,
)

from .providers import TranscriptionProvider


class TranscriptionOrchestrator:
    """
    Tries providers strictly one after another in priority order

    Providers without a credential are skipped. A failing provider is logged
    through message_posted and the next one is tried; nothing after the first
    success is ever invoked.
    """

    def __init__(self, providers: Sequence[TranscriptionProvider]) -> None:
        self.providers = list(providers)

    @property
    def configured_providers(self) -> list[str]:
        return [p.name for p in self.providers if p.is_configured]

    async def transcribe(
        self,
        audio: bytes,
        content_type: str,
        duration: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> TranscriptionResult:
        """
        Transcribe a recording with the first provider that succeeds

        Args:
            audio: Encoded audio payload
            content_type: MIME type of the payload
            duration: Recording length in seconds
            cancel_event: Set when the pipeline run is abandoned

        Returns:
            TranscriptionResult: Non-empty utterances with the provider name

        Raises:
            EmptyTranscript: every attempted provider found no speech
            TranscriptionCancelled: the run was abandoned
            TranscriptionUnavailable: all providers failed or none is configured
        """
        attempted = 0
        empty = 0
        failures: list[str] = []

        for provider in self.providers:
            if cancel_event is not None and cancel_event.is_set():
                raise TranscriptionCancelled("Transcription cancelled")

            if not provider.is_configured:
                post_message(
                    self,
                    f"Skipping {provider.name}: no API key configured",
                    MessageLevel.INFO,
                )
                continue

            attempted += 1
            post_message(
                self, f"Transcribing with {provider.name}...", MessageLevel.INFO
            )
            try:
                utterances = await provider.transcribe(
                    audio, content_type, duration=duration, cancel_event=cancel_event
                )
            except EmptyTranscript as e:
                empty += 1
                post_message(self, str(e), MessageLevel.WARNING)
                continue
            except ProviderError as e:
                failures.append(str(e))
                post_message(
                    self, f"Transcription failed ({e})", MessageLevel.WARNING
                )
                continue
            except Exception as e:
                failures.append(f"{provider.name}: {e}")
                post_message(
                    self,
                    f"Transcription failed ({provider.name}: {type(e).__name__}: {e})",
                    MessageLevel.WARNING,
                )
                continue

            post_message(
                self,
                f"Transcribed {len(utterances)} utterances with {provider.name}",
                MessageLevel.SUCCESS,
            )
            return TranscriptionResult(
                utterances=tuple(utterances), provider=provider.name
            )

        if cancel_event is not None and cancel_event.is_set():
            raise TranscriptionCancelled("Transcription cancelled")
        if attempted == 0:
            raise TranscriptionUnavailable("No transcription provider is configured")
        if empty == attempted:
            raise EmptyTranscript()
        raise TranscriptionUnavailable(
            "All transcription services failed: " + "; ".join(failures)
        )
