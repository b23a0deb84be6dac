#!/usr/bin/env python3
"""
Coach Scribe - Core Application
Presentation layer: CoachScribeApp core logic (shared by every front end)
"""

from collections.abc import Sequence

import httpx

from coach_scribe.domain import (
    AudioSession,
    CodingStatus,
    CoachScribeError,
    MasteryScorer,
    MasterySnapshot,
    MessageLevel,
    SessionAnalyzedEvent,
    SessionMode,
    SessionRecord,
    Settings,
    StopReason,
    post_message,
    session_analyzed,
    tally_from_counts,
)
from coach_scribe.infrastructure.ai import ReasoningClient, create_reasoning_client
from coach_scribe.infrastructure.audio import AudioCapture, AudioSource
from coach_scribe.infrastructure.persistence import JsonSessionStore, SessionStore
from coach_scribe.infrastructure.transcription import (
    TranscriptionOrchestrator,
    TranscriptionProvider,
    create_providers,
)

from .pipeline import SessionOutcome, SessionPipeline


class CoachScribeApp:
    """
    Coach Scribe core application

    Responsibilities:
    - Component construction and dependency injection
    - Recording lifecycle
    - Run identity: only the current pipeline run may publish or persist
    - Progress views from stored sessions

    Note:
    - Components communicate through blinker signals
    - UI layers subscribe to the signals directly
    """

    def __init__(
        self,
        settings: Settings,
        audio_source: AudioSource,
        reasoning_client: ReasoningClient | None = None,
        providers: Sequence[TranscriptionProvider] | None = None,
        store: SessionStore | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            settings: Application settings
            audio_source: Microphone or file input
            reasoning_client: Reasoning client (built from settings when None)
            providers: Transcription providers (built from settings when None)
            store: Session store (JSON store from settings when None)
            http_client: Shared HTTP client (created and owned when None)
        """
        self.settings = settings

        # 1. HTTP client shared by providers and the proxy backend
        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient()

        # 2. Transcription provider chain
        if providers is None:
            providers = create_providers(
                settings.providers, self.http_client, settings.polling
            )
        self.orchestrator = TranscriptionOrchestrator(providers)

        # 3. Reasoning client
        self.reasoning_client = reasoning_client or create_reasoning_client(
            settings.reasoning, self.http_client, settings.mastery
        )

        # 4. Scoring
        self.scorer = MasteryScorer(settings.mastery)

        # 5. Capture
        self.capture = AudioCapture(
            audio_source=audio_source,
            core_settings=settings.core,
            capture_settings=settings.capture,
        )

        # 6. Session store
        if store is None and settings.app.save_sessions:
            store = JsonSessionStore(settings.store.directory)
        self.store = store

        self._current: SessionPipeline | None = None
        self.latest_outcome: SessionOutcome | None = None

    # ========== Recording control ==========

    async def start_recording(self) -> AudioSession:
        """
        Start a new recording, discarding any earlier pipeline run

        Raises:
            PermissionDenied: the microphone could not be opened
        """
        self.discard_current()
        return await self.capture.start()

    async def stop_recording(self) -> AudioSession | None:
        return await self.capture.stop()

    # ========== Pipeline runs ==========

    @property
    def current_run_id(self) -> str | None:
        return self._current.run_id if self._current else None

    def is_current(self, run_id: str) -> bool:
        return self._current is not None and self._current.run_id == run_id

    def discard_current(self) -> None:
        """Abandon the current run; its results will be ignored"""
        if self._current is not None:
            self._current.cancel()
        self._current = None
        self.latest_outcome = None

    def new_pipeline(self) -> SessionPipeline:
        """Start a fresh, independent run and make it current"""
        self.discard_current()
        self._current = SessionPipeline(
            orchestrator=self.orchestrator,
            reasoning_client=self.reasoning_client,
            scorer=self.scorer,
            reasoning_settings=self.settings.reasoning,
        )
        return self._current

    async def process(
        self, session: AudioSession, mode: SessionMode
    ) -> SessionOutcome | None:
        """
        Run the pipeline for a stopped recording

        Args:
            session: Stopped AudioSession
            mode: Session mode

        Returns:
            SessionOutcome | None: The outcome, None when the run went stale

        Raises:
            RecordingError: the recording holds no audio
            TranscriptionUnavailable: no provider produced a transcript
        """
        pipeline = self.new_pipeline()
        try:
            outcome = await pipeline.run(session, mode)
        except CoachScribeError:
            if not self.is_current(pipeline.run_id):
                post_message(
                    self, "Ignoring failure of an abandoned session", MessageLevel.INFO
                )
                return None
            raise
        return self.accept(outcome)

    def accept(self, outcome: SessionOutcome) -> SessionOutcome | None:
        """
        Publish and persist an outcome if it belongs to the current run

        Returns:
            SessionOutcome | None: The outcome, or None when it was stale
        """
        if not self.is_current(outcome.run_id):
            post_message(
                self, "Discarding results of an abandoned session", MessageLevel.INFO
            )
            return None

        self.latest_outcome = outcome
        if self.store is not None:
            try:
                record = self.store.create(outcome.to_record())
                post_message(
                    self, f"Session saved ({record.id})", MessageLevel.SUCCESS
                )
            except OSError as e:
                post_message(self, f"Failed to save session: {e}", MessageLevel.ERROR)

        session_analyzed.send(self, event=SessionAnalyzedEvent(outcome=outcome))
        return outcome

    # ========== Progress ==========

    def history(
        self, mode: SessionMode | None = None, limit: int | None = None
    ) -> list[SessionRecord]:
        if self.store is None:
            return []
        return self.store.list_records(mode=mode, limit=limit)

    def progress(self, mode: SessionMode) -> MasterySnapshot | None:
        """Mastery recomputed from the latest successfully coded session of a mode"""
        for record in self.history(mode=mode):
            if record.coding_status == CodingStatus.CODED:
                return self.scorer.score(mode, tally_from_counts(mode, record.tally))
        return None

    # ========== Shutdown ==========

    async def aclose(self) -> None:
        """Stop recording, abandon the current run and release clients"""
        await self.capture.stop_session(StopReason.TEARDOWN)
        if self._current is not None:
            self._current.cancel()
        await self.reasoning_client.aclose()
        if self._owns_http_client:
            await self.http_client.aclose()
