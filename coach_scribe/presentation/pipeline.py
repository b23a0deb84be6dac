#!/usr/bin/env python3
"""
Coach Scribe - Session Pipeline
Presentation layer: one run from recorded audio to scored session
"""

import asyncio
import uuid
from dataclasses import dataclass

from coach_scribe.domain import (
    AudioSession,
    CodingStatus,
    CodingUnavailable,
    FlaggedItem,
    MasteryScorer,
    MasterySnapshot,
    MessageLevel,
    ReasoningSettings,
    RecordingError,
    RoleAssignment,
    SessionMode,
    SessionRecord,
    SilentSlot,
    Tally,
    TranscriptionCompletedEvent,
    TranscriptionResult,
    Utterance,
    aggregate_coding,
    empty_tally,
    extract_silent_slots,
    post_message,
    transcription_completed,
)
from coach_scribe.infrastructure.ai import (
    BehavioralCoder,
    CodingOutcome,
    ReasoningClient,
    SpeakerRoleResolver,
    apply_roles,
    extract_review_flags,
)
from coach_scribe.infrastructure.transcription import TranscriptionOrchestrator


@dataclass(frozen=True)
class SessionOutcome:
    """
    Everything one pipeline run produced

    tally is empty and mastery is None when coding failed; check coding.ok
    to tell a failed coding apart from a coded session with zero counts.
    """

    run_id: str
    mode: SessionMode
    duration_sec: float
    transcription: TranscriptionResult
    utterances: tuple[Utterance, ...]
    roles: RoleAssignment | None
    coding: CodingOutcome
    tally: Tally
    mastery: MasterySnapshot | None
    flagged: tuple[FlaggedItem, ...] = ()
    silent_slots: tuple[SilentSlot, ...] = ()
    competency_analysis: str | None = None

    @property
    def flagged_for_review(self) -> bool:
        return bool(self.flagged)

    def to_record(self) -> SessionRecord:
        return SessionRecord(
            mode=self.mode,
            duration_sec=self.duration_sec,
            tally=self.tally.counts(),
            overall_progress=self.mastery.overall_progress if self.mastery else 0,
            mastery_achieved=self.mastery.mastery_achieved if self.mastery else False,
            flagged_for_review=self.flagged_for_review,
            provider=self.transcription.provider,
            coding_status=self.coding.status,
        )


class SessionPipeline:
    """
    One independent pipeline run

    Responsibilities:
    - Transcribe the recording through the provider chain
    - Resolve speaker roles and code behaviors side by side
    - Tally, score and flag the coded transcript
    - Request the optional competency analysis

    Every outcome carries the run's id so late results can be recognised.
    cancel() stops job polling; in-flight HTTP calls are left to finish.
    """

    def __init__(
        self,
        orchestrator: TranscriptionOrchestrator,
        reasoning_client: ReasoningClient,
        scorer: MasteryScorer,
        reasoning_settings: ReasoningSettings,
        run_id: str | None = None,
    ) -> None:
        self.run_id = run_id or uuid.uuid4().hex
        self.orchestrator = orchestrator
        self.reasoning_client = reasoning_client
        self.resolver = SpeakerRoleResolver(reasoning_client)
        self.coder = BehavioralCoder(reasoning_client)
        self.scorer = scorer
        self.reasoning_settings = reasoning_settings
        self.cancel_event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        self.cancel_event.set()

    async def run(self, session: AudioSession, mode: SessionMode) -> SessionOutcome:
        """
        Process a stopped recording

        Args:
            session: Stopped AudioSession with an encoded payload
            mode: Session mode

        Returns:
            SessionOutcome: Result tagged with this run's id

        Raises:
            RecordingError: the session holds no audio
            TranscriptionUnavailable: no provider produced a transcript
        """
        if not session.has_audio:
            raise RecordingError("No audio was recorded")

        transcription = await self.orchestrator.transcribe(
            session.payload,
            session.content_type,
            duration=session.elapsed_sec or None,
            cancel_event=self.cancel_event,
        )
        transcription_completed.send(
            self,
            event=TranscriptionCompletedEvent(run_id=self.run_id, result=transcription),
        )
        return await self.analyze(transcription, mode, session.elapsed_sec)

    async def analyze(
        self, transcription: TranscriptionResult, mode: SessionMode, duration_sec: float
    ) -> SessionOutcome:
        """Roles, coding, tally, mastery and flags for a transcript"""
        utterances = transcription.utterances
        roles, coding = await asyncio.gather(
            self.resolver.resolve(mode, utterances),
            self.coder.code(mode, utterances),
        )

        annotated = coding.utterances
        if roles is not None:
            annotated = apply_roles(annotated, roles.parent_speaker)

        if coding.status == CodingStatus.CODED:
            tally = aggregate_coding(coding.coding_text, mode)
            mastery: MasterySnapshot | None = self.scorer.score(mode, tally)
            flagged = tuple(extract_review_flags(coding.coding_text, annotated))
            analysis = await self._competency_analysis(mode, tally, len(flagged))
        else:
            tally = empty_tally(mode)
            mastery = None
            flagged = ()
            analysis = None

        return SessionOutcome(
            run_id=self.run_id,
            mode=mode,
            duration_sec=duration_sec,
            transcription=transcription,
            utterances=annotated,
            roles=roles,
            coding=coding,
            tally=tally,
            mastery=mastery,
            flagged=flagged,
            silent_slots=tuple(
                extract_silent_slots(annotated, duration_sec or None)
            ),
            competency_analysis=analysis,
        )

    async def _competency_analysis(
        self, mode: SessionMode, tally: Tally, review_flags: int
    ) -> str | None:
        """Optional summary; failure only costs the analysis text"""
        if not self.reasoning_settings.competency_analysis:
            return None
        try:
            return await self.reasoning_client.assess_competency(
                mode, tally, review_flags
            )
        except CodingUnavailable as e:
            post_message(
                self, f"Competency analysis unavailable: {e}", MessageLevel.WARNING
            )
            return None
