#!/usr/bin/env python3
"""
Coach Scribe - Waveform Meter
Frequency-domain snapshot of the latest audio, reduced to display bars
"""

import numpy as np

from coach_scribe.domain import CaptureSettings


class AmplitudeMeter:
    """
    Spectrum analyser behind the recording waveform

    Keeps the most recent `fft_size` samples. Each snapshot applies a Hann
    window, smooths the magnitude spectrum over time, maps it to bytes over
    the configured decibel range and samples `bar_count` evenly spaced bins.
    Every bar is clamped into [min_bar_height, max_bar_height].
    """

    def __init__(self, settings: CaptureSettings) -> None:
        self.settings = settings
        self._window = np.hanning(settings.fft_size).astype(np.float32)
        self._samples = np.zeros(settings.fft_size, dtype=np.float32)
        self._smoothed = np.zeros(settings.fft_size // 2, dtype=np.float32)

    @property
    def idle_bars(self) -> tuple[float, ...]:
        """Bars shown when nothing is recording"""
        return (self.settings.min_bar_height,) * self.settings.bar_count

    def feed(self, block: np.ndarray) -> None:
        """Append samples, keeping only the last fft_size"""
        size = self.settings.fft_size
        if len(block) >= size:
            self._samples = np.asarray(block[-size:], dtype=np.float32)
        else:
            self._samples = np.concatenate([self._samples[len(block) :], block]).astype(
                np.float32
            )

    def reset(self) -> None:
        self._samples = np.zeros(self.settings.fft_size, dtype=np.float32)
        self._smoothed = np.zeros(self.settings.fft_size // 2, dtype=np.float32)

    def _byte_spectrum(self) -> np.ndarray:
        s = self.settings
        bin_count = s.fft_size // 2
        magnitude = np.abs(np.fft.rfft(self._samples * self._window))[:bin_count]
        magnitude = magnitude / s.fft_size

        self._smoothed = (
            s.smoothing * self._smoothed + (1 - s.smoothing) * magnitude
        ).astype(np.float32)

        decibels = 20 * np.log10(np.maximum(self._smoothed, 1e-12))
        scaled = (decibels - s.min_decibels) / (s.max_decibels - s.min_decibels) * 255
        return np.clip(scaled, 0, 255)

    def snapshot(self) -> tuple[float, ...]:
        """
        Sample the display bars for one tick

        Returns:
            tuple[float, ...]: bar_count values within the display range
        """
        s = self.settings
        spectrum = self._byte_spectrum()
        step = max(1, len(spectrum) // s.bar_count)

        bars = []
        for i in range(s.bar_count):
            index = min(i * step, len(spectrum) - 1)
            height = float(spectrum[index]) / 255 * 100
            bars.append(min(s.max_bar_height, max(s.min_bar_height, height)))
        return tuple(bars)
