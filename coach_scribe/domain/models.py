#!/usr/bin/env python3
"""
Coach Scribe - Domain Models
Domain layer: business entities and rules (no external dependencies)
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum, StrEnum
from typing import Any


class SessionMode(StrEnum):
    """Coaching phase a session is recorded for"""

    RELATIONSHIP = "relationship"
    DISCIPLINE = "discipline"


class SpeakerRole(StrEnum):
    """Semantic role of a speaker index"""

    PARENT = "parent"
    CHILD = "child"


class CaptureState(Enum):
    """Lifecycle of one recording attempt"""

    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"


class StopReason(Enum):
    """Why a recording was stopped"""

    MANUAL = "manual"
    DURATION_CAP = "duration_cap"
    SOURCE_EXHAUSTED = "source_exhausted"
    TEARDOWN = "teardown"


class CodingStatus(StrEnum):
    """Result of the behavioral coding step"""

    CODED = "coded"
    FAILED = "failed"


@dataclass(frozen=True)
class Utterance:
    """One contiguous speech turn attributed to a single speaker index"""

    speaker: int
    text: str
    start: float = 0.0
    end: float = 0.0
    tag: str | None = None  # set after coding
    role: SpeakerRole | None = None  # set after role resolution

    def with_tag(self, tag: str | None) -> "Utterance":
        return replace(self, tag=tag)

    def with_role(self, role: SpeakerRole | None) -> "Utterance":
        return replace(self, role=role)

    @property
    def speaker_label(self) -> str:
        """Role name when resolved, raw speaker index otherwise"""
        return self.role.value if self.role else f"speaker {self.speaker}"


@dataclass
class AudioSession:
    """
    One recording attempt

    Owned by AudioCapture until the encoded payload is handed to transcription.
    """

    started_at: datetime = field(default_factory=datetime.now)
    state: CaptureState = CaptureState.IDLE
    elapsed_sec: float = 0.0
    payload: bytes = b""
    content_type: str = "audio/wav"
    stop_reason: StopReason | None = None

    @property
    def has_audio(self) -> bool:
        return bool(self.payload)


@dataclass(frozen=True)
class TranscriptionResult:
    """
    Normalized transcription output

    Invariant: the utterance sequence is never empty.
    """

    utterances: tuple[Utterance, ...]
    provider: str

    def __post_init__(self) -> None:
        if not self.utterances:
            raise ValueError("TranscriptionResult requires at least one utterance")

    @property
    def text(self) -> str:
        return " ".join(u.text for u in self.utterances)


@dataclass(frozen=True)
class RoleAssignment:
    """Parent speaker index and the utterances annotated with roles"""

    parent_speaker: int
    utterances: tuple[Utterance, ...]


@dataclass(frozen=True)
class FlaggedItem:
    """Coded fragment that needs a human coach to review it"""

    text: str
    reason: str
    speaker: int | None = None
    start: float | None = None


@dataclass(frozen=True)
class SilentSlot:
    """Gap without speech longer than the silence threshold"""

    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass
class SessionRecord:
    """Persisted summary of one completed session"""

    mode: SessionMode
    duration_sec: float
    tally: dict[str, int]
    overall_progress: int
    mastery_achieved: bool
    flagged_for_review: bool
    provider: str | None = None
    coding_status: CodingStatus = CodingStatus.CODED
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "mode": self.mode.value,
            "duration_sec": round(self.duration_sec, 2),
            "tally": dict(self.tally),
            "overall_progress": self.overall_progress,
            "mastery_achieved": self.mastery_achieved,
            "flagged_for_review": self.flagged_for_review,
            "provider": self.provider,
            "coding_status": self.coding_status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionRecord":
        return cls(
            id=data["id"],
            created_at=datetime.fromisoformat(data["created_at"]),
            mode=SessionMode(data["mode"]),
            duration_sec=float(data["duration_sec"]),
            tally={k: int(v) for k, v in data.get("tally", {}).items()},
            overall_progress=int(data["overall_progress"]),
            mastery_achieved=bool(data["mastery_achieved"]),
            flagged_for_review=bool(data["flagged_for_review"]),
            provider=data.get("provider"),
            coding_status=CodingStatus(data.get("coding_status", "coded")),
        )
