#!/usr/bin/env python3
"""
Coach Scribe - CLI View
CLI view layer: signal subscriptions and console rendering
"""

import sys

from colorama import Fore, Style  # type: ignore[import-untyped]

from coach_scribe import __version__
from coach_scribe.domain import (
    AmplitudeSampledEvent,
    DisciplineTally,
    MasterySnapshot,
    MessageLevel,
    MessagePostedEvent,
    RecordingStartedEvent,
    RecordingStoppedEvent,
    SessionAnalyzedEvent,
    SessionRecord,
    Settings,
    StopReason,
    TagTally,
    TranscriptionCompletedEvent,
    amplitude_sampled,
    describe_silent_slots,
    format_utterances_as_text,
    message_posted,
    recording_started,
    recording_stopped,
    session_analyzed,
    transcription_completed,
)
from coach_scribe.infrastructure.ai import ReasoningClient
from coach_scribe.presentation.pipeline import SessionOutcome

_BAR_GLYPHS = "▁▂▃▄▅▆▇█"


def _format_clock(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


class CLIView:
    """
    CLI view layer

    Responsibilities:
    - Signal subscriptions and event-driven output
    - Live waveform line while recording
    - Transcript, tally and progress formatting
    """

    def __init__(self, settings: Settings) -> None:
        """
        Subscribe to every signal the console renders

        Args:
            settings: Application settings
        """
        self.settings = settings
        self._waveform_visible = False

        message_posted.connect(self._on_message_posted)
        recording_started.connect(self._on_recording_started)
        recording_stopped.connect(self._on_recording_stopped)
        amplitude_sampled.connect(self._on_amplitude_sampled)
        transcription_completed.connect(self._on_transcription_completed)
        session_analyzed.connect(self._on_session_analyzed)

    def stop(self) -> None:
        """Disconnect from all signals"""
        message_posted.disconnect(self._on_message_posted)
        recording_started.disconnect(self._on_recording_started)
        recording_stopped.disconnect(self._on_recording_stopped)
        amplitude_sampled.disconnect(self._on_amplitude_sampled)
        transcription_completed.disconnect(self._on_transcription_completed)
        session_analyzed.disconnect(self._on_session_analyzed)
        self._clear_waveform()

    # ========== Signal handlers ==========

    def _on_message_posted(self, _sender: object, event: MessagePostedEvent) -> None:
        self._show_message(event)

    def _on_recording_started(
        self, _sender: object, event: RecordingStartedEvent
    ) -> None:
        limit = _format_clock(self.settings.capture.max_duration_sec)
        print(
            f"{Fore.RED}● Recording{Style.RESET_ALL} "
            f"(up to {limit}, press Enter to stop)"
        )

    def _on_recording_stopped(
        self, _sender: object, event: RecordingStoppedEvent
    ) -> None:
        self._clear_waveform()
        reason = {
            StopReason.MANUAL: "stopped",
            StopReason.DURATION_CAP: "time limit reached",
            StopReason.SOURCE_EXHAUSTED: "end of file",
            StopReason.TEARDOWN: "interrupted",
        }[event.reason]
        print(
            f"{Fore.GREEN}■ Recording {reason}{Style.RESET_ALL} "
            f"[{_format_clock(event.session.elapsed_sec)}]"
        )

    def _on_amplitude_sampled(
        self, _sender: object, event: AmplitudeSampledEvent
    ) -> None:
        self._show_waveform(event.bars, event.elapsed_sec)

    def _on_transcription_completed(
        self, _sender: object, event: TranscriptionCompletedEvent
    ) -> None:
        count = len(event.result.utterances)
        print(
            f"{Fore.CYAN}Transcript ready: {count} utterances "
            f"via {event.result.provider}{Style.RESET_ALL}"
        )

    def _on_session_analyzed(
        self, _sender: object, event: SessionAnalyzedEvent
    ) -> None:
        self.show_outcome(event.outcome)

    # ========== Rendering ==========

    def _show_waveform(self, bars: tuple[float, ...], elapsed_sec: float) -> None:
        low = self.settings.capture.min_bar_height
        high = self.settings.capture.max_bar_height
        span = max(high - low, 1e-9)
        glyphs = "".join(
            _BAR_GLYPHS[min(len(_BAR_GLYPHS) - 1, int((b - low) / span * len(_BAR_GLYPHS)))]
            for b in bars
        )
        clock = f"{_format_clock(elapsed_sec)} / {_format_clock(self.settings.capture.max_duration_sec)}"
        sys.stdout.write(f"\r\033[K{Fore.RED}●{Style.RESET_ALL} {clock} {glyphs}")
        sys.stdout.flush()
        self._waveform_visible = True

    def _clear_waveform(self) -> None:
        if self._waveform_visible:
            sys.stdout.write("\r\033[K")
            sys.stdout.flush()
            self._waveform_visible = False

    def _show_message(self, event: MessagePostedEvent) -> None:
        color_map = {
            MessageLevel.INFO: Fore.CYAN,
            MessageLevel.SUCCESS: Fore.GREEN,
            MessageLevel.WARNING: Fore.YELLOW,
            MessageLevel.ERROR: Fore.RED,
        }
        color = color_map.get(event.level, Fore.WHITE)
        self._clear_waveform()
        sys.stdout.write(f"{color}{event.message}{Style.RESET_ALL}\n")
        sys.stdout.flush()

    def show_outcome(self, outcome: SessionOutcome) -> None:
        """Transcript, coding, tally, mastery, flags and analysis of a session"""
        rule = f"{Fore.CYAN}{'─' * 50}{Style.RESET_ALL}"
        print(f"\n{rule}")
        print(format_utterances_as_text(outcome.utterances))
        print(rule)

        if not outcome.coding.ok:
            print(
                f"{Fore.YELLOW}Coding unavailable: {outcome.coding.error}{Style.RESET_ALL}"
            )
        else:
            self._show_tally(outcome)
            if outcome.mastery:
                self.show_mastery(outcome.mastery)

        for item in outcome.flagged:
            print(f"{Fore.RED}⚑ {item.reason}: \"{item.text}\"{Style.RESET_ALL}")

        note = describe_silent_slots(outcome.silent_slots)
        if note:
            print(f"{Fore.YELLOW}{note}{Style.RESET_ALL}")

        if outcome.competency_analysis:
            print(f"\n{rule}\n{outcome.competency_analysis}\n{rule}")
        print()

    def _show_tally(self, outcome: SessionOutcome) -> None:
        tally = outcome.tally
        counts = "  ".join(f"{k}={v}" for k, v in tally.counts().items())
        print(f"{Fore.YELLOW}Tags:{Style.RESET_ALL} {counts}")
        if isinstance(tally, TagTally):
            print(f"  DO skills: {tally.total_pride}  DON'T skills: {tally.total_avoid}")
        elif isinstance(tally, DisciplineTally):
            print(
                f"  Effective commands: {tally.total_effective}/{tally.total_commands} "
                f"({tally.effective_percent}%)"
            )

    def show_mastery(self, snapshot: MasterySnapshot) -> None:
        color = Fore.GREEN if snapshot.mastery_achieved else Fore.CYAN
        print(
            f"{color}Progress ({snapshot.mode.value}): "
            f"{snapshot.overall_progress}%{Style.RESET_ALL}"
        )
        for skill in snapshot.skills:
            bound = "≤" if skill.inverted else "≥"
            print(
                f"  {skill.name:<18} {skill.current:>5g} ({bound}{skill.target:g})"
                f"  {skill.percent:5.1f}%"
            )
        if snapshot.mastery_achieved:
            print(f"{Fore.GREEN}Mastery achieved!{Style.RESET_ALL}")

    def show_history(self, records: list[SessionRecord]) -> None:
        if not records:
            print(f"{Fore.YELLOW}No sessions recorded yet.{Style.RESET_ALL}")
            return
        for record in records:
            flags = []
            if record.mastery_achieved:
                flags.append(f"{Fore.GREEN}mastery{Style.RESET_ALL}")
            if record.flagged_for_review:
                flags.append(f"{Fore.RED}review{Style.RESET_ALL}")
            print(
                f"{record.created_at:%Y-%m-%d %H:%M}  {record.mode.value:<12} "
                f"{_format_clock(record.duration_sec)}  "
                f"{record.overall_progress:>3}%  {' '.join(flags)}"
            )

    def show_banner(self, reasoning_client: ReasoningClient, providers: list[str]) -> None:
        """
        Show the startup banner

        Args:
            reasoning_client: Active reasoning backend
            providers: Names of configured transcription providers
        """
        version_display = (
            __version__.split(".dev")[0] if ".dev" in __version__ else __version__
        )
        provider_info = ", ".join(providers) if providers else "none configured"

        banner = f"""
{Fore.CYAN}╔══════════════════════════════════════════╗
║       Coach Scribe v{version_display:<19}  ║
║  Parenting Session Recorder & Coder      ║
╚══════════════════════════════════════════╝{Style.RESET_ALL}

{Fore.YELLOW}Config:{Style.RESET_ALL}
  - Transcription: {provider_info}
  - Reasoning: {reasoning_client.get_backend_info()}
  - Max duration: {_format_clock(self.settings.capture.max_duration_sec)}
"""
        print(banner)
