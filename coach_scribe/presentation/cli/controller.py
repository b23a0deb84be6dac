#!/usr/bin/env python3
"""
Coach Scribe - CLI Controller
CLI controller layer: application lifecycle
"""

import asyncio
import sys
from pathlib import Path

from coach_scribe.domain import (
    AudioSession,
    MessageLevel,
    PermissionDenied,
    RecordingError,
    SessionMode,
    TranscriptionUnavailable,
    post_message,
)
from coach_scribe.infrastructure.audio import (
    AudioSource,
    FileAudioSource,
    MicrophoneAudioSource,
)
from coach_scribe.infrastructure.config import load_settings
from coach_scribe.presentation.app import CoachScribeApp

from .view import CLIView


class CLIController:
    """
    CLI controller

    Responsibilities:
    - AudioSource selection
    - App/View construction and wiring
    - Recording until Enter, end of file or the duration cap
    - Mapping user-facing errors to exit codes
    """

    def __init__(
        self,
        mode: SessionMode,
        device_id: int | None = None,
        file_path: str | None = None,
        config_path: Path | None = None,
    ) -> None:
        """
        Args:
            mode: Session mode
            device_id: Audio device ID (None = default device)
            file_path: Audio file path (None = microphone input)
            config_path: Configuration file (None = project config.toml)
        """
        self.mode = mode
        self.device_id = device_id
        self.file_path = file_path
        self.settings = load_settings(config_path)

    def run(self) -> None:
        """
        Record (or read a file), analyse it and print the result

        Raises:
            SystemExit: on permission or transcription failure
        """
        try:
            exit_code = asyncio.run(self._run())
        except KeyboardInterrupt:
            print("\nGoodbye!")
            exit_code = 130
        if exit_code:
            sys.exit(exit_code)

    def show_history(self, limit: int | None = None) -> None:
        """Print stored sessions and the current progress of the mode"""
        asyncio.run(self._show_history(limit or self.settings.app.history_limit))

    async def _show_history(self, limit: int) -> None:
        view = CLIView(settings=self.settings)
        app = CoachScribeApp(settings=self.settings, audio_source=self._create_audio_source())
        try:
            view.show_history(app.history(mode=self.mode, limit=limit))
            snapshot = app.progress(self.mode)
            if snapshot is not None:
                view.show_mastery(snapshot)
        finally:
            await app.aclose()
            view.stop()

    async def _run(self) -> int:
        view = CLIView(settings=self.settings)
        app = CoachScribeApp(settings=self.settings, audio_source=self._create_audio_source())
        view.show_banner(app.reasoning_client, app.orchestrator.configured_providers)

        try:
            session = await self._record(app)
            if session is None:
                return 1
            await app.process(session, self.mode)
            return 0
        except PermissionDenied as e:
            post_message(self, f"{e}", MessageLevel.ERROR)
            post_message(
                self,
                "Allow microphone access for this terminal and try again.",
                MessageLevel.INFO,
            )
            return 1
        except (TranscriptionUnavailable, RecordingError) as e:
            post_message(self, f"{e}", MessageLevel.ERROR)
            post_message(self, "Start a new recording to try again.", MessageLevel.INFO)
            return 1
        finally:
            await app.aclose()
            view.stop()

    async def _record(self, app: CoachScribeApp) -> AudioSession | None:
        """Record until Enter, end of input file or the duration cap"""
        await app.start_recording()

        if self.file_path:
            return await app.capture.wait_stopped()

        enter_pressed = asyncio.Event()
        loop = asyncio.get_running_loop()

        def on_input() -> None:
            sys.stdin.readline()
            enter_pressed.set()

        loop.add_reader(sys.stdin.fileno(), on_input)
        try:
            stopped = asyncio.create_task(app.capture.wait_stopped())
            entered = asyncio.create_task(enter_pressed.wait())
            await asyncio.wait({stopped, entered}, return_when=asyncio.FIRST_COMPLETED)
            entered.cancel()
            if not stopped.done():
                await app.stop_recording()
            return await stopped
        finally:
            loop.remove_reader(sys.stdin.fileno())

    def _create_audio_source(self) -> AudioSource:
        """
        Build the AudioSource from the CLI arguments

        Returns:
            AudioSource: File or microphone input
        """
        if self.file_path:
            return FileAudioSource(
                core_settings=self.settings.core,
                capture_settings=self.settings.capture,
                file_path=self.file_path,
                realtime_simulation=self.settings.capture.realtime_file_playback,
            )
        return MicrophoneAudioSource(
            core_settings=self.settings.core,
            capture_settings=self.settings.capture,
            device_id=self.device_id,
        )
