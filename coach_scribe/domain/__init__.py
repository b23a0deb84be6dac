#!/usr/bin/env python3
"""
Coach Scribe - Domain Layer
Domain layer: business logic, entities and settings
"""

# Models and data structures
from .models import (
    AudioSession,
    CaptureState,
    CodingStatus,
    FlaggedItem,
    RoleAssignment,
    SessionMode,
    SessionRecord,
    SilentSlot,
    SpeakerRole,
    StopReason,
    TranscriptionResult,
    Utterance,
)

# Errors
from .errors import (
    CoachScribeError,
    CodingUnavailable,
    EmptyTranscript,
    PermissionDenied,
    ProviderError,
    RecordingError,
    TranscriptionCancelled,
    TranscriptionUnavailable,
)

# Events (Pub/Sub)
from .events import (
    AmplitudeSampledEvent,
    MessageLevel,
    MessagePostedEvent,
    RecordingStartedEvent,
    RecordingStoppedEvent,
    SessionAnalyzedEvent,
    TranscriptionCompletedEvent,
    amplitude_sampled,
    message_posted,
    post_message,
    recording_started,
    recording_stopped,
    session_analyzed,
    transcription_completed,
)

# Settings schema (Pydantic)
from .settings import (
    AppSettings,
    CaptureSettings,
    CoreSettings,
    MasterySettings,
    PollSettings,
    ProviderSettings,
    ReasoningBackend,
    ReasoningSettings,
    Settings,
    StoreSettings,
)

# Tally and scoring
from .tally import (
    DisciplineTally,
    TagTally,
    Tally,
    aggregate_coding,
    aggregate_utterances,
    empty_tally,
    has_review_marker,
    scan_tags,
    tally_from_counts,
)
from .mastery import MasteryScorer, MasterySnapshot, SkillProgress

# Transcript utilities
from .transcript import (
    describe_silent_slots,
    extract_silent_slots,
    format_utterances_as_text,
    strip_sound_annotations,
)

__all__ = [
    # Models
    "AudioSession",
    "CaptureState",
    "CodingStatus",
    "FlaggedItem",
    "RoleAssignment",
    "SessionMode",
    "SessionRecord",
    "SilentSlot",
    "SpeakerRole",
    "StopReason",
    "TranscriptionResult",
    "Utterance",
    # Errors
    "CoachScribeError",
    "CodingUnavailable",
    "EmptyTranscript",
    "PermissionDenied",
    "ProviderError",
    "RecordingError",
    "TranscriptionCancelled",
    "TranscriptionUnavailable",
    # Events
    "AmplitudeSampledEvent",
    "MessageLevel",
    "MessagePostedEvent",
    "RecordingStartedEvent",
    "RecordingStoppedEvent",
    "SessionAnalyzedEvent",
    "TranscriptionCompletedEvent",
    "amplitude_sampled",
    "message_posted",
    "post_message",
    "recording_started",
    "recording_stopped",
    "session_analyzed",
    "transcription_completed",
    # Settings
    "AppSettings",
    "CaptureSettings",
    "CoreSettings",
    "MasterySettings",
    "PollSettings",
    "ProviderSettings",
    "ReasoningBackend",
    "ReasoningSettings",
    "Settings",
    "StoreSettings",
    # Tally and scoring
    "DisciplineTally",
    "MasteryScorer",
    "MasterySnapshot",
    "SkillProgress",
    "TagTally",
    "Tally",
    "aggregate_coding",
    "aggregate_utterances",
    "empty_tally",
    "has_review_marker",
    "scan_tags",
    "tally_from_counts",
    # Transcript utilities
    "describe_silent_slots",
    "extract_silent_slots",
    "format_utterances_as_text",
    "strip_sound_annotations",
]
