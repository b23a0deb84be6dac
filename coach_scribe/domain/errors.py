#!/usr/bin/env python3
"""
Coach Scribe - Domain Errors
Exception taxonomy of the recording and coding pipeline
"""


class CoachScribeError(Exception):
    """Base class of every error raised by Coach Scribe"""


class PermissionDenied(CoachScribeError):
    """The microphone could not be opened (refused by the user or the OS)"""


class RecordingError(CoachScribeError):
    """The recording finished without any usable audio"""


class TranscriptionUnavailable(CoachScribeError):
    """No provider produced a transcript (all failed or none configured)"""


class EmptyTranscript(TranscriptionUnavailable):
    """Transcription succeeded but no speech was detected"""

    def __init__(self, message: str = "No speech detected in the recording.") -> None:
        super().__init__(message)


class TranscriptionCancelled(TranscriptionUnavailable):
    """The pipeline run was abandoned while transcription was in progress"""


class ProviderError(CoachScribeError):
    """
    A single transcription provider failed

    Absorbed by the orchestrator, never surfaced to the user.
    """

    def __init__(self, provider: str, detail: str) -> None:
        self.provider = provider
        self.detail = detail
        super().__init__(f"{provider}: {detail}")


class CodingUnavailable(CoachScribeError):
    """The reasoning service failed (non-fatal for the pipeline)"""
