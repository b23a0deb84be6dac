#!/usr/bin/env python3
"""
Coach Scribe - Events (Pub/Sub)
Domain layer: core of the event-driven architecture
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from blinker import Signal

from .models import AudioSession, StopReason, TranscriptionResult

if TYPE_CHECKING:
    from coach_scribe.presentation.pipeline import SessionOutcome

# ========================================
# Event names
# ========================================
EVENT_RECORDING_STARTED = "recording_started"
EVENT_RECORDING_STOPPED = "recording_stopped"
EVENT_AMPLITUDE_SAMPLED = "amplitude_sampled"
EVENT_TRANSCRIPTION_COMPLETED = "transcription_completed"
EVENT_SESSION_ANALYZED = "session_analyzed"
EVENT_MESSAGE_POSTED = "message_posted"


# ========================================
# Event types
# ========================================


class MessageLevel(str, Enum):
    """Message level"""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class RecordingStartedEvent:
    """Published once the microphone is open and buffering has begun"""

    session: AudioSession


@dataclass(frozen=True)
class RecordingStoppedEvent:
    """
    Recording finished

    Published exactly once per session, whatever triggered the stop.
    """

    session: AudioSession
    reason: StopReason


@dataclass(frozen=True)
class AmplitudeSampledEvent:
    """Waveform bars for one display tick (each in the display range)"""

    bars: tuple[float, ...]
    elapsed_sec: float


@dataclass(frozen=True)
class TranscriptionCompletedEvent:
    """A provider produced a normalized transcript for a pipeline run"""

    run_id: str
    result: TranscriptionResult


@dataclass(frozen=True)
class SessionAnalyzedEvent:
    """A pipeline run finished and its outcome was accepted as current"""

    outcome: "SessionOutcome"


@dataclass(frozen=True)
class MessagePostedEvent:
    """
    Message event

    Published for status changes and user notifications.
    timestamp defaults to the current time.
    """

    message: str
    level: MessageLevel
    timestamp: datetime = field(default_factory=datetime.now)


Event = (
    RecordingStartedEvent
    | RecordingStoppedEvent
    | AmplitudeSampledEvent
    | TranscriptionCompletedEvent
    | SessionAnalyzedEvent
    | MessagePostedEvent
)


# ========================================
# Global signals
# ========================================
recording_started = Signal(EVENT_RECORDING_STARTED)  # RecordingStartedEvent
recording_stopped = Signal(EVENT_RECORDING_STOPPED)  # RecordingStoppedEvent
amplitude_sampled = Signal(EVENT_AMPLITUDE_SAMPLED)  # AmplitudeSampledEvent
transcription_completed = Signal(
    EVENT_TRANSCRIPTION_COMPLETED
)  # TranscriptionCompletedEvent
session_analyzed = Signal(EVENT_SESSION_ANALYZED)  # SessionAnalyzedEvent
message_posted = Signal(EVENT_MESSAGE_POSTED)  # MessagePostedEvent


def post_message(sender: object, message: str, level: MessageLevel) -> None:
    """Publish a MessagePostedEvent on the message_posted signal"""
    message_posted.send(sender, event=MessagePostedEvent(message=message, level=level))
