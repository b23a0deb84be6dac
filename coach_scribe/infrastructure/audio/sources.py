#!/usr/bin/env python3
"""
Coach Scribe - Audio Sources Module
Abstraction and adapters for audio input
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Any

import numpy as np
import sounddevice as sd  # type: ignore[import-untyped]
import soundfile as sf  # type: ignore[import-untyped]

from coach_scribe.domain import (
    CaptureSettings,
    CoreSettings,
    MessageLevel,
    PermissionDenied,
    RecordingError,
    post_message,
)


@dataclass(frozen=True)
class AudioDevice:
    """Audio device information"""

    id: int
    name: str
    max_input_channels: int
    is_default: bool = False


class AudioSource(ABC):
    """
    Abstract audio input

    Yields blocks of mono float32 samples from an async generator. `start()`
    acquires the underlying resource and `stop()` releases it; `stop()` must
    be safe to call more than once.
    """

    @abstractmethod
    def stream(self) -> AsyncGenerator[np.ndarray, None]:
        """
        Yield audio blocks until the source is stopped or exhausted

        Yields:
            np.ndarray: mono float32 samples at the core sample rate
        """
        pass

    @abstractmethod
    def start(self) -> None:
        """Acquire the source"""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Release the source"""
        pass

    @property
    @abstractmethod
    def is_realtime(self) -> bool:
        """Whether the source produces audio in real time"""
        pass


class MicrophoneAudioSource(AudioSource):
    """
    Microphone input

    Bridges the sounddevice callback thread to the event loop through an
    asyncio.Queue so capture can consume blocks with `async for`.
    """

    @staticmethod
    def list_devices() -> list[AudioDevice]:
        """
        List available input devices

        Returns:
            list[AudioDevice]: Devices with at least one input channel
        """
        raw_devices = sd.query_devices()

        if not isinstance(raw_devices, sd.DeviceList) or len(raw_devices) == 0:
            return []

        default_input_device_id: int | None = sd.default.device[0]

        return [
            AudioDevice(
                id=device_id,
                name=device_info["name"],
                max_input_channels=device_info["max_input_channels"],
                is_default=(device_id == default_input_device_id),
            )
            for device_id, device_info in enumerate(raw_devices)
            if device_info["max_input_channels"] > 0
        ]

    def __init__(
        self,
        core_settings: CoreSettings,
        capture_settings: CaptureSettings,
        device_id: int | None = None,
    ) -> None:
        """
        Args:
            core_settings: Core settings (sample rate, channels)
            capture_settings: Capture settings (block size)
            device_id: Input device ID (None = system default)
        """
        self.core_settings = core_settings
        self.capture_settings = capture_settings
        self._device_id = device_id
        self._queue: asyncio.Queue[np.ndarray | None] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stream: sd.InputStream | None = None

    def _audio_callback(
        self,
        indata: np.ndarray,
        _frames: int,
        _time_info: Any,
        status: sd.CallbackFlags,
    ) -> None:
        """sounddevice callback (runs on the PortAudio thread)"""
        if self._loop is None:
            return
        if status:
            self._loop.call_soon_threadsafe(
                post_message, self, f"Audio status: {status}", MessageLevel.WARNING
            )
        self._loop.call_soon_threadsafe(self._queue.put_nowait, indata[:, 0].copy())

    async def stream(self) -> AsyncGenerator[np.ndarray, None]:
        """
        Yield microphone blocks until stop() is called

        Yields:
            np.ndarray: block_sec worth of float32 samples
        """
        while True:
            block = await self._queue.get()
            if block is None:
                return
            yield block

    def start(self) -> None:
        """
        Open the microphone stream

        Raises:
            PermissionDenied: the device could not be opened
        """
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        try:
            self._stream = sd.InputStream(
                device=self._device_id,
                samplerate=self.core_settings.sample_rate,
                channels=self.core_settings.channels,
                dtype=np.float32,
                blocksize=int(
                    self.core_settings.sample_rate * self.capture_settings.block_sec
                ),
                callback=self._audio_callback,
            )
            self._stream.start()
        except sd.PortAudioError as e:
            self._stream = None
            raise PermissionDenied(f"Microphone access failed: {e}") from e

    def stop(self) -> None:
        """Close the microphone stream and end stream()"""
        if self._stream:
            self._stream.stop()
            self._stream.close()
            self._stream = None
            self._queue.put_nowait(None)

    @property
    def is_realtime(self) -> bool:
        """Microphone input is real time"""
        return True


class FileAudioSource(AudioSource):
    """
    Audio file input

    Reads any format soundfile understands and converts it to mono at the
    core sample rate.
    """

    def __init__(
        self,
        core_settings: CoreSettings,
        capture_settings: CaptureSettings,
        file_path: str,
        realtime_simulation: bool = False,
    ) -> None:
        """
        Args:
            core_settings: Core settings (sample rate)
            capture_settings: Capture settings (block size)
            file_path: Path of the audio file
            realtime_simulation: Pace blocks at real-time speed when True
        """
        self.core_settings = core_settings
        self.capture_settings = capture_settings
        self.file_path = file_path
        self.realtime_simulation = realtime_simulation
        self._audio_data: np.ndarray | None = None
        self._duration: float = 0.0

    def _load_audio(self) -> np.ndarray:
        """
        Read the file and convert it to mono at the configured sample rate

        Raises:
            RecordingError: the file cannot be read
        """
        try:
            audio_data, original_sr = sf.read(self.file_path, dtype="float32")
        except (OSError, sf.LibsndfileError) as e:
            raise RecordingError(f"Cannot read audio file {self.file_path}: {e}") from e

        if len(audio_data.shape) > 1:
            audio_data = np.mean(audio_data, axis=1)

        if original_sr != self.core_settings.sample_rate:
            # Linear interpolation resampling
            original_length = len(audio_data)
            target_length = int(
                original_length * self.core_settings.sample_rate / original_sr
            )
            audio_data = np.interp(
                np.linspace(0, original_length - 1, target_length),
                np.arange(original_length),
                audio_data,
            ).astype(np.float32)

        self._duration = len(audio_data) / self.core_settings.sample_rate
        return np.asarray(audio_data, dtype=np.float32)

    async def stream(self) -> AsyncGenerator[np.ndarray, None]:
        """
        Yield file blocks, then finish

        Yields:
            np.ndarray: block_sec worth of float32 samples (last block may be short)
        """
        block_size = max(
            1, int(self.core_settings.sample_rate * self.capture_settings.block_sec)
        )
        delay = block_size / self.core_settings.sample_rate if self.realtime_simulation else 0

        offset = 0
        while self._audio_data is not None and offset < len(self._audio_data):
            yield self._audio_data[offset : offset + block_size]
            offset += block_size
            await asyncio.sleep(delay)

    def start(self) -> None:
        """Load the file"""
        self._audio_data = self._load_audio()

    def stop(self) -> None:
        """Drop the loaded samples"""
        self._audio_data = None

    @property
    def is_realtime(self) -> bool:
        """File input is not real time"""
        return False

    @property
    def duration(self) -> float:
        """File length (seconds)"""
        return self._duration
