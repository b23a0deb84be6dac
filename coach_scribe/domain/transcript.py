#!/usr/bin/env python3
"""
Coach Scribe - Transcript Utilities
Display formatting and silence analysis over utterance sequences
"""

import re
from collections.abc import Sequence

from .constants import SILENT_SLOT_THRESHOLD_SEC
from .models import SilentSlot, Utterance

_PARENTHESES_PATTERN = re.compile(r"\s*\([^)]*\)")
_SPACES_PATTERN = re.compile(r"\s{2,}")


def strip_sound_annotations(text: str) -> str:
    """
    Remove parenthesised sound annotations such as "(laughter)"

    Examples:
        >>> strip_sound_annotations("(laughs) You did it! (clapping)")
        'You did it!'
    """
    return _SPACES_PATTERN.sub(" ", _PARENTHESES_PATTERN.sub("", text)).strip()


def format_utterances_as_text(utterances: Sequence[Utterance]) -> str:
    """One line per utterance: [01] speaker 0 | 0.00-1.00s | text"""
    return "\n".join(
        f"[{i:02d}] {u.speaker_label} | {u.start:.2f}-{u.end:.2f}s | {u.text}"
        for i, u in enumerate(utterances, start=1)
    )


def extract_silent_slots(
    utterances: Sequence[Utterance],
    duration: float | None = None,
    threshold: float = SILENT_SLOT_THRESHOLD_SEC,
) -> list[SilentSlot]:
    """
    Find gaps without speech of at least `threshold` seconds

    Covers the gap before the first utterance, gaps between consecutive
    utterances and, when the recording duration is known, the trailing gap.

    Args:
        utterances: Chronological utterances
        duration: Recording length in seconds (None skips the trailing gap)
        threshold: Minimum gap length in seconds

    Returns:
        list[SilentSlot]: Gaps in chronological order
    """
    if not utterances:
        return []

    slots: list[SilentSlot] = []
    cursor = 0.0
    for utterance in utterances:
        if utterance.start - cursor >= threshold:
            slots.append(SilentSlot(start=cursor, end=utterance.start))
        cursor = max(cursor, utterance.end)

    if duration is not None and duration - cursor >= threshold:
        slots.append(SilentSlot(start=cursor, end=duration))
    return slots


def describe_silent_slots(slots: Sequence[SilentSlot]) -> str | None:
    """Short coaching note on silences, None when there are none"""
    count = len(slots)
    if count == 0:
        return None
    if count >= 10:
        return (
            f"There were {count} long pauses. Try to keep a steady flow of "
            "descriptions and reflections while you play."
        )
    if count >= 5:
        return (
            f"There were {count} long pauses. Filling a few of them with "
            "narration of your child's play would help."
        )
    return f"There {'was' if count == 1 else 'were'} {count} long pause{'' if count == 1 else 's'}."
