#!/usr/bin/env python3
"""
Coach Scribe - Settings Schema
Settings schema definitions (Pydantic models)
"""

from enum import StrEnum
from pathlib import Path

from pydantic import Field, computed_field, field_validator, model_validator
from pydantic_settings import BaseSettings
from typing_extensions import Self

# ========================================
# Private Constants
# ========================================
_KNOWN_PROVIDERS = ("elevenlabs", "deepgram", "assemblyai")


# ========================================
# Core Configuration
# ========================================
class CoreSettings(BaseSettings):
    """Base parameters shared by every component"""

    sample_rate: int = Field(
        default=16000,
        description="Sample rate (Hz) of captured and decoded audio",
    )
    channels: int = Field(
        default=1,
        description="Number of recorded channels (mono)",
    )


# ========================================
# Capture Configuration
# ========================================
class CaptureSettings(BaseSettings):
    """Microphone capture and waveform display settings"""

    max_duration_sec: float = Field(
        default=300.0,
        description="Recording cap (seconds) - the session stops automatically here",
    )
    block_sec: float = Field(
        default=0.1,
        description="sounddevice block size (seconds)",
    )
    tick_sec: float = Field(
        default=1 / 30,
        description="Waveform sampling interval (seconds), one display refresh",
    )
    bar_count: int = Field(
        default=40,
        description="Number of bars in the amplitude display",
    )
    min_bar_height: float = Field(
        default=20.0,
        description="Lowest bar value (display floor)",
    )
    max_bar_height: float = Field(
        default=100.0,
        description="Highest bar value",
    )
    fft_size: int = Field(
        default=256,
        description="FFT window length (samples)",
    )
    smoothing: float = Field(
        default=0.8,
        description="Temporal smoothing of the spectrum (0 = none)",
    )
    min_decibels: float = Field(
        default=-100.0,
        description="Magnitude mapped to the bottom of the byte range",
    )
    max_decibels: float = Field(
        default=-30.0,
        description="Magnitude mapped to the top of the byte range",
    )
    encoding: str = Field(
        default="WAV",
        description="soundfile container for the encoded payload (WAV or FLAC)",
    )
    subtype: str = Field(
        default="PCM_16",
        description="soundfile subtype for the encoded payload",
    )
    realtime_file_playback: bool = Field(
        default=False,
        description="Pace file input at real-time speed",
    )


# ========================================
# Transcription Provider Configuration
# ========================================
class ProviderSettings(BaseSettings):
    """Transcription provider chain"""

    order: list[str] = Field(
        default_factory=lambda: list(_KNOWN_PROVIDERS),
        description="Provider priority - the first provider that succeeds wins",
    )
    expected_speakers: int = Field(
        default=2,
        description="Expected number of speakers (diarization hint)",
    )
    request_timeout_sec: float = Field(
        default=120.0,
        description="HTTP timeout of a single provider request (seconds)",
    )
    # ElevenLabs
    elevenlabs_api_key: str | None = Field(
        default=None,
        description="ElevenLabs API key - the provider is skipped when unset",
    )
    elevenlabs_url: str = Field(
        default="https://api.elevenlabs.io/v1/speech-to-text",
        description="ElevenLabs speech-to-text endpoint",
    )
    elevenlabs_model: str = Field(
        default="scribe_v1",
        description="ElevenLabs model id",
    )
    # Deepgram
    deepgram_api_key: str | None = Field(
        default=None,
        description="Deepgram API key - the provider is skipped when unset",
    )
    deepgram_url: str = Field(
        default="https://api.deepgram.com/v1/listen",
        description="Deepgram pre-recorded endpoint",
    )
    deepgram_model: str = Field(
        default="nova-2",
        description="Deepgram model",
    )
    # AssemblyAI
    assemblyai_api_key: str | None = Field(
        default=None,
        description="AssemblyAI API key - the provider is skipped when unset",
    )
    assemblyai_base_url: str = Field(
        default="https://api.assemblyai.com/v2",
        description="AssemblyAI API base URL",
    )

    @field_validator("order")
    @classmethod
    def validate_order(cls, value: list[str]) -> list[str]:
        """Reject unknown provider names"""
        unknown = [name for name in value if name not in _KNOWN_PROVIDERS]
        if unknown:
            raise ValueError(
                f"providers.order contains unknown providers: {', '.join(unknown)}"
            )
        return value


class PollSettings(BaseSettings):
    """Polling of asynchronous transcription jobs"""

    interval_sec: float = Field(
        default=2.0,
        description="Wait between two status queries (seconds)",
    )
    max_attempts: int = Field(
        default=60,
        description="Status queries before the job is given up",
    )
    request_timeout_sec: float = Field(
        default=10.0,
        description="Timeout of a single status query (seconds)",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def max_wait_sec(self) -> float:
        """Upper bound of the polling phase"""
        return self.interval_sec * self.max_attempts


# ========================================
# Reasoning Service Configuration
# ========================================
class ReasoningBackend(StrEnum):
    """Reasoning backend kind"""

    PROXY = "proxy"
    CLAUDE = "claude"


class ReasoningSettings(BaseSettings):
    """Role resolution, behavioral coding and competency analysis"""

    backend: ReasoningBackend = Field(
        default=ReasoningBackend.PROXY,
        description="Reasoning backend - proxy or claude",
    )
    # Proxy settings
    proxy_base_url: str | None = Field(
        default="http://localhost:3001/api/pcit",
        description="Base URL of the backend proxy - required when backend='proxy'",
    )
    # Claude settings
    anthropic_api_key: str | None = Field(
        default=None,
        description="Anthropic API key - required when backend='claude'",
    )
    claude_model: str = Field(
        default="claude-sonnet-4-5-20250929",
        description="Claude model name",
    )
    # Shared settings
    coding_max_tokens: int = Field(
        default=8192,
        description="Max tokens of a coding response",
    )
    analysis_max_tokens: int = Field(
        default=2048,
        description="Max tokens of a competency analysis",
    )
    coding_temperature: float = Field(
        default=0.3,
        description="Sampling temperature for coding",
    )
    analysis_temperature: float = Field(
        default=0.5,
        description="Sampling temperature for competency analysis",
    )
    request_timeout_sec: float = Field(
        default=120.0,
        description="HTTP timeout of a reasoning request (seconds)",
    )
    competency_analysis: bool = Field(
        default=True,
        description="Request a free-text competency analysis after coding",
    )

    @model_validator(mode="after")
    def validate_backend_config(self) -> Self:
        """Check the settings each backend requires"""
        if self.backend == ReasoningBackend.CLAUDE:
            if not self.anthropic_api_key:
                raise ValueError(
                    "reasoning.anthropic_api_key is required when backend='claude'"
                )
        elif self.backend == ReasoningBackend.PROXY:
            if not self.proxy_base_url:
                raise ValueError(
                    "reasoning.proxy_base_url is required when backend='proxy'"
                )
        return self


# ========================================
# Mastery Configuration
# ========================================
class MasterySettings(BaseSettings):
    """Targets used to turn a tally into progress"""

    # Relationship-building mode
    praise_target: int = Field(default=10, description="Praise per session")
    reflect_target: int = Field(default=10, description="Reflections per session")
    describe_target: int = Field(default=10, description="Descriptions per session")
    imitate_target: int = Field(default=10, description="Imitations per session")
    avoid_ceiling: int = Field(
        default=3,
        description="Most avoid-skills (question + command + criticism) still at 100%",
    )
    avoid_decay_step: float = Field(
        default=20.0,
        description="Percentage lost per avoid-skill over the ceiling",
    )
    # Discipline mode
    direct_command_target: int = Field(
        default=10, description="Direct commands per session"
    )
    labeled_praise_target: int = Field(
        default=5, description="Labeled praise per session"
    )
    effective_percent_target: float = Field(
        default=75.0,
        description="Share of effective commands (%)",
    )


# ========================================
# Persistence Configuration
# ========================================
class StoreSettings(BaseSettings):
    """Session store"""

    directory: Path = Field(
        default_factory=lambda: Path.home() / ".coach-scribe" / "sessions",
        description="Directory holding one JSON file per session",
    )


# ========================================
# Application Configuration
# ========================================
class AppSettings(BaseSettings):
    """Application-wide settings"""

    save_sessions: bool = Field(
        default=True,
        description="Persist every completed session to the store",
    )
    history_limit: int = Field(
        default=10,
        description="Sessions listed by --history",
    )


# ========================================
# Main Settings Class
# ========================================
class Settings(BaseSettings):
    """
    Coach Scribe settings

    Load order (later wins):
    1. Defaults (in each settings class) and environment variables
    2. config.toml (project root)
    3. config.local.toml (project root)
    """

    core: CoreSettings = Field(default_factory=CoreSettings)
    capture: CaptureSettings = Field(default_factory=CaptureSettings)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)
    polling: PollSettings = Field(default_factory=PollSettings)
    reasoning: ReasoningSettings = Field(default_factory=ReasoningSettings)
    mastery: MasterySettings = Field(default_factory=MasterySettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    app: AppSettings = Field(default_factory=AppSettings)
