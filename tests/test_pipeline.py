"""Tests for SessionPipeline"""

import asyncio

import pytest
from fakes import FakeProvider, FakeReasoningClient, messages_at

from coach_scribe.domain import (
    AudioSession,
    CaptureState,
    CodingStatus,
    CodingUnavailable,
    DisciplineTally,
    MasteryScorer,
    MessageLevel,
    MessagePostedEvent,
    ReasoningSettings,
    RecordingError,
    SessionMode,
    SpeakerRole,
    TagTally,
    TranscriptionCompletedEvent,
    Utterance,
    transcription_completed,
)
from coach_scribe.infrastructure.transcription import TranscriptionOrchestrator
from coach_scribe.presentation import SessionOutcome, SessionPipeline


def stopped_session(duration: float = 12.0) -> AudioSession:
    return AudioSession(
        state=CaptureState.STOPPED, elapsed_sec=duration, payload=b"RIFF....WAVE"
    )


def make_pipeline(
    utterances: list[Utterance],
    client: FakeReasoningClient,
    competency_analysis: bool = True,
) -> SessionPipeline:
    return SessionPipeline(
        orchestrator=TranscriptionOrchestrator([FakeProvider("deepgram", utterances)]),
        reasoning_client=client,
        scorer=MasteryScorer(),
        reasoning_settings=ReasoningSettings(competency_analysis=competency_analysis),
    )


class TestCodedSession:
    """Successful end-to-end run"""

    def test_full_run(self, utterances: list[Utterance], coded_text: str) -> None:
        """Transcript, roles, tags, tally, mastery and silences"""
        client = FakeReasoningClient(parent_speaker=0, coding=coded_text)
        pipeline = make_pipeline(utterances, client)
        outcome = asyncio.run(pipeline.run(stopped_session(), SessionMode.RELATIONSHIP))

        assert outcome.run_id == pipeline.run_id
        assert outcome.transcription.provider == "deepgram"
        assert outcome.coding.status == CodingStatus.CODED
        assert outcome.tally == TagTally(praise=1, reflect=1, question=1)
        assert outcome.mastery is not None
        # mean(10, 10, 0, 0, 100) = 24
        assert outcome.mastery.overall_progress == 24
        assert [u.role for u in outcome.utterances] == [
            SpeakerRole.PARENT,
            SpeakerRole.CHILD,
            SpeakerRole.PARENT,
            SpeakerRole.PARENT,
        ]
        assert outcome.utterances[0].tag == "praise"
        assert [(s.start, s.end) for s in outcome.silent_slots] == [(5.5, 10.0)]
        assert outcome.competency_analysis == "Keep going!"
        assert not outcome.flagged_for_review
        assert client.analyze_calls == 1

    def test_publishes_transcription(self, utterances: list[Utterance], coded_text: str) -> None:
        """transcription_completed carries the run id"""
        received: list[TranscriptionCompletedEvent] = []

        def receiver(_sender: object, event: TranscriptionCompletedEvent) -> None:
            received.append(event)

        pipeline = make_pipeline(utterances, FakeReasoningClient(coding=coded_text))
        transcription_completed.connect(receiver)
        try:
            asyncio.run(pipeline.run(stopped_session(), SessionMode.RELATIONSHIP))
        finally:
            transcription_completed.disconnect(receiver)

        assert len(received) == 1
        assert received[0].run_id == pipeline.run_id

    def test_review_flags_do_not_change_tally(self, utterances: list[Utterance]) -> None:
        """A negative phrase flags the session but is not counted"""
        coding = '"What color is that?" [DON\'T: Negative Phrase] - sarcasm'
        client = FakeReasoningClient(coding=coding)
        pipeline = make_pipeline(utterances, client)
        outcome = asyncio.run(pipeline.run(stopped_session(), SessionMode.RELATIONSHIP))

        assert outcome.flagged_for_review
        assert outcome.tally == TagTally()
        assert outcome.to_record().flagged_for_review
        assert client.competency_flags == [1]

    def test_discipline_mode(self, utterances: list[Utterance]) -> None:
        """Discipline mode produces a DisciplineTally"""
        coding = '"Great job stacking the blocks!" [DO: Labeled Praise]'
        pipeline = make_pipeline(utterances, FakeReasoningClient(coding=coding))
        outcome = asyncio.run(pipeline.run(stopped_session(), SessionMode.DISCIPLINE))

        assert outcome.tally == DisciplineTally(labeled_praise=1)
        assert outcome.mastery is not None
        assert outcome.mastery.mode == SessionMode.DISCIPLINE

    def test_competency_failure_is_non_fatal(
        self,
        utterances: list[Utterance],
        coded_text: str,
        messages: list[MessagePostedEvent],
    ) -> None:
        """Losing the analysis text keeps the rest of the outcome"""
        client = FakeReasoningClient(
            coding=coded_text, competency_error=CodingUnavailable("HTTP 502")
        )
        outcome = asyncio.run(
            make_pipeline(utterances, client).run(stopped_session(), SessionMode.RELATIONSHIP)
        )
        assert outcome.competency_analysis is None
        assert outcome.mastery is not None
        assert any("HTTP 502" in m for m in messages_at(messages, MessageLevel.WARNING))

    def test_competency_can_be_disabled(self, utterances: list[Utterance], coded_text: str) -> None:
        """No analysis request when disabled"""
        client = FakeReasoningClient(coding=coded_text)
        pipeline = make_pipeline(utterances, client, competency_analysis=False)
        outcome = asyncio.run(pipeline.run(stopped_session(), SessionMode.RELATIONSHIP))
        assert outcome.competency_analysis is None
        assert client.competency_calls == []


class TestFailedCoding:
    """Reasoning service unavailable"""

    def test_failed_coding_is_distinguishable(self, utterances: list[Utterance]) -> None:
        """Failed coding yields no mastery rather than a zero score"""
        client = FakeReasoningClient(error=CodingUnavailable("proxy unreachable"))
        outcome = asyncio.run(
            make_pipeline(utterances, client).run(stopped_session(), SessionMode.RELATIONSHIP)
        )

        assert outcome.coding.status == CodingStatus.FAILED
        assert outcome.mastery is None
        assert outcome.roles is None
        assert outcome.tally == TagTally()
        assert all(u.role is None for u in outcome.utterances)
        assert client.competency_calls == []

        record = outcome.to_record()
        assert record.coding_status == CodingStatus.FAILED
        assert record.overall_progress == 0


class TestPreconditions:
    """Inputs the pipeline refuses"""

    def test_empty_recording(self, utterances: list[Utterance]) -> None:
        """No audio, no transcription request"""
        provider = FakeProvider("deepgram", utterances)
        pipeline = SessionPipeline(
            orchestrator=TranscriptionOrchestrator([provider]),
            reasoning_client=FakeReasoningClient(),
            scorer=MasteryScorer(),
            reasoning_settings=ReasoningSettings(),
        )
        with pytest.raises(RecordingError):
            asyncio.run(pipeline.run(AudioSession(state=CaptureState.STOPPED), SessionMode.RELATIONSHIP))
        assert provider.calls == 0

    def test_cancel(self, utterances: list[Utterance]) -> None:
        """cancel() marks the run"""
        pipeline = make_pipeline(utterances, FakeReasoningClient())
        assert not pipeline.cancelled
        pipeline.cancel()
        assert pipeline.cancelled

    def test_outcome_type(self, utterances: list[Utterance], coded_text: str) -> None:
        """run() returns a SessionOutcome"""
        pipeline = make_pipeline(utterances, FakeReasoningClient(coding=coded_text))
        outcome = asyncio.run(pipeline.run(stopped_session(), SessionMode.RELATIONSHIP))
        assert isinstance(outcome, SessionOutcome)
