#!/usr/bin/env python3
"""
Coach Scribe - Diarization Normalizers
Convert provider-native speaker tagging into ordered Utterance sequences
"""

import re
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from coach_scribe.domain import Utterance, strip_sound_annotations

_SPEAKER_ID_PATTERN = re.compile(r"speaker_(\d+)")


# ========================================
# Speaker label parsing
# ========================================
def parse_speaker_id(value: Any) -> int:
    """
    Parse a word-level speaker id such as "speaker_1"

    Missing or malformed ids map to speaker 0.

    Examples:
        >>> parse_speaker_id("speaker_2")
        2
        >>> parse_speaker_id(None)
        0
    """
    if isinstance(value, int) and value >= 0:
        return value
    if isinstance(value, str):
        match = _SPEAKER_ID_PATTERN.search(value)
        if match:
            return int(match.group(1))
    return 0


def parse_speaker_label(value: Any) -> int:
    """
    Parse a turn-level speaker label into a zero-based index

    Letters map alphabetically (A -> 0, B -> 1); numeric labels are used as is.

    Examples:
        >>> parse_speaker_label("B")
        1
        >>> parse_speaker_label(3)
        3
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, str):
        label = value.strip()
        if label.isdigit():
            return int(label)
        if len(label) == 1 and label.isalpha():
            return max(ord(label.upper()) - ord("A"), 0)
        return parse_speaker_id(label)
    return 0


def _as_float(value: Any, scale: float = 1.0) -> float:
    try:
        return float(value) * scale
    except (TypeError, ValueError):
        return 0.0


# ========================================
# Normalization strategies
# ========================================
def group_words(
    words: Iterable[Mapping[str, Any]],
    speaker_key: str = "speaker_id",
    speaker_parser: Callable[[Any], int] = parse_speaker_id,
    time_scale: float = 1.0,
) -> list[Utterance]:
    """
    Group consecutive same-speaker words into utterances

    A new utterance begins exactly when the speaker changes; its end time is
    the end time of its last word. Spacing tokens and empty words are skipped.

    Args:
        words: Word dicts with text, start, end and a speaker field
        speaker_key: Name of the speaker field
        speaker_parser: Converts the speaker field to an index
        time_scale: Multiplier converting provider time units to seconds

    Returns:
        list[Utterance]: Utterances in chronological order
    """
    utterances: list[Utterance] = []
    speaker: int | None = None
    texts: list[str] = []
    start = end = 0.0

    def flush() -> None:
        if speaker is None:
            return
        text = strip_sound_annotations(" ".join(texts))
        if text:
            utterances.append(Utterance(speaker=speaker, text=text, start=start, end=end))

    for word in words:
        if word.get("type") == "spacing":
            continue
        text = str(
            word.get("punctuated_word") or word.get("text") or word.get("word") or ""
        ).strip()
        if not text:
            continue

        word_speaker = speaker_parser(word.get(speaker_key, word.get("speaker")))
        if word_speaker != speaker:
            flush()
            speaker = word_speaker
            texts = []
            start = _as_float(word.get("start"), time_scale)
        texts.append(text)
        end = _as_float(word.get("end"), time_scale)

    flush()
    return utterances


def map_turns(
    turns: Iterable[Mapping[str, Any]],
    text_key: str = "text",
    speaker_parser: Callable[[Any], int] = parse_speaker_label,
    time_scale: float = 1.0,
) -> list[Utterance]:
    """
    Map turn-level diarized output directly to one utterance per turn

    Args:
        turns: Turn dicts with speaker, text, start and end
        text_key: Name of the text field
        speaker_parser: Converts the speaker label to an index
        time_scale: Multiplier converting provider time units to seconds

    Returns:
        list[Utterance]: Utterances in chronological order
    """
    utterances = []
    for turn in turns:
        text = strip_sound_annotations(str(turn.get(text_key) or ""))
        if not text:
            continue
        utterances.append(
            Utterance(
                speaker=speaker_parser(turn.get("speaker")),
                text=text,
                start=_as_float(turn.get("start"), time_scale),
                end=_as_float(turn.get("end"), time_scale),
            )
        )
    return utterances


def single_utterance(text: str | None, duration: float | None = None) -> list[Utterance]:
    """Non-diarized transcript: one utterance from speaker 0 spanning the recording"""
    cleaned = strip_sound_annotations(text or "")
    if not cleaned:
        return []
    return [Utterance(speaker=0, text=cleaned, start=0.0, end=duration or 0.0)]


def with_text_fallback(
    utterances: list[Utterance], text: str | None, duration: float | None = None
) -> list[Utterance]:
    """Fall back to a single utterance when diarization produced none"""
    return utterances or single_utterance(text, duration)
