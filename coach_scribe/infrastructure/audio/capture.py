#!/usr/bin/env python3
"""
Coach Scribe - Audio Capture
Records one bounded session from an AudioSource while driving the waveform
"""

import asyncio
import contextlib
import io
from types import TracebackType

import numpy as np
import soundfile as sf  # type: ignore[import-untyped]

from coach_scribe.domain import (
    AmplitudeSampledEvent,
    AudioSession,
    CaptureSettings,
    CaptureState,
    CoreSettings,
    MessageLevel,
    RecordingStartedEvent,
    RecordingStoppedEvent,
    StopReason,
    amplitude_sampled,
    post_message,
    recording_started,
    recording_stopped,
)

from .sources import AudioSource
from .waveform import AmplitudeMeter

CONTENT_TYPES = {
    "WAV": "audio/wav",
    "FLAC": "audio/flac",
}


def encode_audio(
    samples: np.ndarray, sample_rate: int, fmt: str = "WAV", subtype: str = "PCM_16"
) -> bytes:
    """
    Encode float32 samples into a single in-memory audio file

    Args:
        samples: Mono float32 samples
        sample_rate: Sample rate (Hz)
        fmt: soundfile container format
        subtype: soundfile sample subtype

    Returns:
        bytes: Encoded file contents
    """
    buffer = io.BytesIO()
    sf.write(buffer, samples, sample_rate, format=fmt, subtype=subtype)
    return buffer.getvalue()


class AudioCapture:
    """
    Single-session recorder

    Responsibilities:
    - Acquire the audio source and buffer its blocks
    - Sample the waveform on every display tick
    - Enforce the duration cap
    - Converge every stop trigger on stop_session(reason)

    Only one session records at a time. Usable as an async context manager;
    leaving the block stops any active session with StopReason.TEARDOWN.
    """

    def __init__(
        self,
        audio_source: AudioSource,
        core_settings: CoreSettings,
        capture_settings: CaptureSettings,
        meter: AmplitudeMeter | None = None,
    ) -> None:
        """
        Args:
            audio_source: Microphone or file input
            core_settings: Core settings (sample rate)
            capture_settings: Capture settings (cap, tick, encoding)
            meter: Waveform meter (created from capture_settings when None)
        """
        self.audio_source = audio_source
        self.core_settings = core_settings
        self.settings = capture_settings
        self.meter = meter or AmplitudeMeter(capture_settings)

        self.bars: tuple[float, ...] = self.meter.idle_bars
        self._state = CaptureState.IDLE
        self._session: AudioSession | None = None
        self._chunks: list[np.ndarray] = []
        self._sample_count = 0
        self._started_at = 0.0
        self._stopping = False
        self._stopped = asyncio.Event()

        self._buffer_task: asyncio.Task[None] | None = None
        self._sampling_task: asyncio.Task[None] | None = None
        self._cap_task: asyncio.Task[None] | None = None

    # ========== Properties ==========

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def session(self) -> AudioSession | None:
        return self._session

    @property
    def is_recording(self) -> bool:
        return self._state is CaptureState.RECORDING

    @property
    def elapsed_sec(self) -> float:
        """Wall-clock recording time, bounded by the cap"""
        if self._state is CaptureState.RECORDING:
            elapsed = asyncio.get_running_loop().time() - self._started_at
            return min(elapsed, self.settings.max_duration_sec)
        return self._session.elapsed_sec if self._session else 0.0

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES.get(self.settings.encoding.upper(), "application/octet-stream")

    # ========== Lifecycle ==========

    async def start(self) -> AudioSession:
        """
        Start a new recording session

        Calling start() while recording leaves the active session untouched.

        Returns:
            AudioSession: The active session

        Raises:
            PermissionDenied: the microphone could not be opened
        """
        if self._state is CaptureState.RECORDING and self._session is not None:
            post_message(self, "Recording is already in progress", MessageLevel.WARNING)
            return self._session

        self.audio_source.start()

        self._chunks = []
        self._sample_count = 0
        self._stopping = False
        self._stopped = asyncio.Event()
        self.meter.reset()

        session = AudioSession(
            state=CaptureState.RECORDING, content_type=self.content_type
        )
        self._session = session
        self._state = CaptureState.RECORDING
        self._started_at = asyncio.get_running_loop().time()

        self._buffer_task = asyncio.create_task(
            self._buffer_loop(), name="capture-buffer"
        )
        self._sampling_task = asyncio.create_task(
            self._sampling_loop(), name="capture-sampling"
        )
        self._cap_task = asyncio.create_task(
            self._duration_cap(), name="capture-cap"
        )

        recording_started.send(self, event=RecordingStartedEvent(session=session))
        return session

    async def stop(self) -> AudioSession | None:
        """Manual stop"""
        return await self.stop_session(StopReason.MANUAL)

    async def wait_stopped(self) -> AudioSession | None:
        """Wait until the current session has been stopped by any trigger"""
        await self._stopped.wait()
        return self._session

    async def stop_session(self, reason: StopReason) -> AudioSession | None:
        """
        Single stop path for manual stop, duration cap, exhausted source and teardown

        Cancels the cap timer and the sampling loop, releases the source,
        drains the buffer and encodes it. Only the first call performs the
        cleanup; concurrent calls wait for it and return None.

        Args:
            reason: What triggered the stop

        Returns:
            AudioSession | None: The stopped session, None if this call did not stop it
        """
        if self._state is not CaptureState.RECORDING:
            return None
        if self._stopping:
            await self._stopped.wait()
            return None

        self._stopping = True
        session = self._session
        assert session is not None
        current = asyncio.current_task()

        try:
            await self._cancel_task(self._cap_task, current)
            await self._cancel_task(self._sampling_task, current)
        finally:
            self._cap_task = None
            self._sampling_task = None
            self.audio_source.stop()

        if self._buffer_task is not None and self._buffer_task is not current:
            try:
                await self._buffer_task
            except Exception as e:
                post_message(self, f"Audio buffering failed: {e}", MessageLevel.ERROR)
        self._buffer_task = None

        session.elapsed_sec = min(
            self._sample_count / self.core_settings.sample_rate,
            self.settings.max_duration_sec,
        )
        session.payload = self._encode_buffer()
        session.state = CaptureState.STOPPED
        session.stop_reason = reason

        self._state = CaptureState.STOPPED
        self._chunks = []
        self.meter.reset()
        self.bars = self.meter.idle_bars

        if not session.has_audio:
            post_message(self, "No audio was recorded", MessageLevel.ERROR)

        recording_stopped.send(
            self, event=RecordingStoppedEvent(session=session, reason=reason)
        )
        self._stopped.set()
        return session

    async def __aenter__(self) -> "AudioCapture":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop_session(StopReason.TEARDOWN)

    # ========== Background activities ==========

    async def _buffer_loop(self) -> None:
        """Collect blocks until the source ends or the sample cap is reached"""
        limit = int(self.settings.max_duration_sec * self.core_settings.sample_rate)

        async with contextlib.aclosing(self.audio_source.stream()) as blocks:
            async for block in blocks:
                block = block[: max(0, limit - self._sample_count)]
                if len(block):
                    self._chunks.append(block)
                    self._sample_count += len(block)
                    self.meter.feed(block)
                if self._sample_count >= limit:
                    if not self._stopping:
                        await self.stop_session(StopReason.DURATION_CAP)
                    return

        if self._state is CaptureState.RECORDING and not self._stopping:
            await self.stop_session(StopReason.SOURCE_EXHAUSTED)

    async def _sampling_loop(self) -> None:
        """Publish waveform bars every display tick until cancelled"""
        while True:
            self.bars = self.meter.snapshot()
            amplitude_sampled.send(
                self,
                event=AmplitudeSampledEvent(bars=self.bars, elapsed_sec=self.elapsed_sec),
            )
            await asyncio.sleep(self.settings.tick_sec)

    async def _duration_cap(self) -> None:
        """Wall-clock cap; expiry takes the same path as a manual stop"""
        await asyncio.sleep(self.settings.max_duration_sec)
        await self.stop_session(StopReason.DURATION_CAP)

    @staticmethod
    async def _cancel_task(
        task: asyncio.Task[None] | None, current: asyncio.Task[object] | None
    ) -> None:
        if task is None or task is current or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def _encode_buffer(self) -> bytes:
        if not self._chunks:
            return b""
        return encode_audio(
            np.concatenate(self._chunks),
            self.core_settings.sample_rate,
            fmt=self.settings.encoding.upper(),
            subtype=self.settings.subtype,
        )
