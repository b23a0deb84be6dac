#!/usr/bin/env python3
"""
Coach Scribe - Job Polling State Machine Module
State transitions for asynchronous transcription jobs
"""

from enum import Enum, auto

from coach_scribe.domain import PollSettings


class PollState(Enum):
    """Lifecycle of a remote transcription job"""

    SUBMITTED = auto()
    POLLING = auto()
    SUCCEEDED = auto()
    FAILED = auto()
    CANCELLED = auto()


class PollAction(Enum):
    """Action resulting from one status observation"""

    WAIT = auto()
    FINISH = auto()
    ABORT = auto()


TERMINAL_STATES = frozenset({PollState.SUCCEEDED, PollState.FAILED, PollState.CANCELLED})


class JobPoller:
    """
    Bounded state machine for job status polling

    submitted -> polling -> succeeded | failed, plus cancelled at any time.
    Every observation (including a status query that timed out) consumes one
    attempt; reaching max_attempts without a terminal status fails the job.
    """

    STATUS_COMPLETED = "completed"
    STATUS_ERROR = "error"

    def __init__(self, settings: PollSettings) -> None:
        self.settings = settings
        self.state = PollState.SUBMITTED
        self.attempts = 0
        self.error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def observe(self, status: str | None, error: str | None = None) -> PollAction:
        """
        Process one job status and return the next action

        Args:
            status: Status string reported by the provider
            error: Error message reported alongside an error status

        Returns:
            PollAction: WAIT to poll again, FINISH on success, ABORT on failure
        """
        if self.is_terminal:
            return PollAction.FINISH if self.state == PollState.SUCCEEDED else PollAction.ABORT

        self.attempts += 1
        if status == self.STATUS_COMPLETED:
            self.state = PollState.SUCCEEDED
            return PollAction.FINISH
        if status == self.STATUS_ERROR:
            return self._fail(error or "transcription job failed")
        return self._keep_polling()

    def observe_timeout(self) -> PollAction:
        """A status query timed out; it counts as an attempt"""
        if self.is_terminal:
            return PollAction.ABORT
        self.attempts += 1
        return self._keep_polling()

    def cancel(self) -> None:
        """Abandon the job; later observations abort"""
        if not self.is_terminal:
            self.state = PollState.CANCELLED
            self.error = "polling cancelled"

    def _keep_polling(self) -> PollAction:
        if self.attempts >= self.settings.max_attempts:
            return self._fail(
                f"transcription timed out after {self.attempts} status checks"
            )
        self.state = PollState.POLLING
        return PollAction.WAIT

    def _fail(self, error: str) -> PollAction:
        self.state = PollState.FAILED
        self.error = error
        return PollAction.ABORT
