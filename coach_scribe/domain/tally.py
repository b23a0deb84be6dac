#!/usr/bin/env python3
"""
Coach Scribe - Tag Aggregation
Pure reducers from coded text or coded utterances to a fresh tally
"""

import re
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass

from .constants import (
    DISCIPLINE_LABELS,
    DISCIPLINE_TAGS,
    FAMILY_DO,
    FAMILY_DONT,
    FAMILY_NONE,
    NEUTRAL_TAG,
    RELATIONSHIP_LABELS,
    RELATIONSHIP_TAGS,
    REVIEW_LABELS,
)
from .models import SessionMode, Utterance

# [DO: Praise] / [DON'T: Command] / [Neutral]
_MARKER_PATTERN = re.compile(
    r"\[\s*(?:(?P<family>do|don['’]?t)\s*:\s*)?(?P<label>[a-z][a-z \-]*?)\s*\]",
    re.IGNORECASE,
)
_SPACES_PATTERN = re.compile(r"\s+")


# ========================================
# Tally types
# ========================================
@dataclass(frozen=True)
class TagTally:
    """Relationship-building mode counts"""

    praise: int = 0
    reflect: int = 0
    describe: int = 0
    imitate: int = 0
    question: int = 0
    command: int = 0
    criticism: int = 0
    neutral: int = 0

    @property
    def total_pride(self) -> int:
        return self.praise + self.reflect + self.describe + self.imitate

    @property
    def total_avoid(self) -> int:
        return self.question + self.command + self.criticism

    def counts(self) -> dict[str, int]:
        return asdict(self)

    def to_dict(self) -> dict[str, int]:
        """Counts plus derived totals (camelCase totals as shown to coaches)"""
        return {
            **self.counts(),
            "totalPride": self.total_pride,
            "totalAvoid": self.total_avoid,
        }


@dataclass(frozen=True)
class DisciplineTally:
    """Discipline mode counts"""

    direct_command: int = 0
    positive_command: int = 0
    specific_command: int = 0
    labeled_praise: int = 0
    correct_warning: int = 0
    correct_timeout: int = 0
    indirect_command: int = 0
    negative_command: int = 0
    vague_command: int = 0
    chained_command: int = 0
    harsh_tone: int = 0
    neutral: int = 0

    @property
    def total_effective(self) -> int:
        return self.direct_command + self.positive_command + self.specific_command

    @property
    def total_ineffective(self) -> int:
        return (
            self.indirect_command
            + self.negative_command
            + self.vague_command
            + self.chained_command
        )

    @property
    def total_commands(self) -> int:
        return self.total_effective + self.total_ineffective

    @property
    def effective_percent(self) -> int:
        """Effective share of all commands, 0 when no command was given"""
        if self.total_commands == 0:
            return 0
        return round_half_up(self.total_effective / self.total_commands * 100)

    def counts(self) -> dict[str, int]:
        return asdict(self)

    def to_dict(self) -> dict[str, int]:
        return {
            **self.counts(),
            "totalEffective": self.total_effective,
            "totalIneffective": self.total_ineffective,
            "totalCommands": self.total_commands,
            "effectivePercent": self.effective_percent,
        }


Tally = TagTally | DisciplineTally


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives"""
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


# ========================================
# Marker scanning
# ========================================
def _normalize_label(label: str) -> str:
    return _SPACES_PATTERN.sub(" ", label.replace("-", " ")).strip().lower()


def _family_of(prefix: str | None) -> str:
    if prefix is None:
        return FAMILY_NONE
    return FAMILY_DO if prefix.lower() == "do" else FAMILY_DONT


def _labels_for(mode: SessionMode) -> Mapping[str, tuple[str, str]]:
    return RELATIONSHIP_LABELS if mode == SessionMode.RELATIONSHIP else DISCIPLINE_LABELS


def scan_tags(text: str, mode: SessionMode) -> list[str]:
    """
    Extract valid tags from coded text, in order of appearance

    Markers with an unknown label, or whose DO/DON'T prefix does not match
    the tag's family, are skipped.

    Args:
        text: Coded text containing bracket markers
        mode: Session mode selecting the taxonomy

    Returns:
        list[str]: Tag names (taxonomy keys)
    """
    labels = _labels_for(mode)
    tags: list[str] = []
    for match in _MARKER_PATTERN.finditer(text):
        family = _family_of(match.group("family"))
        label = _normalize_label(match.group("label"))

        if label == NEUTRAL_TAG:
            if family == FAMILY_NONE:
                tags.append(NEUTRAL_TAG)
            continue

        entry = labels.get(label)
        if entry is not None and entry[0] == family:
            tags.append(entry[1])
    return tags


def has_review_marker(text: str) -> bool:
    """True when text carries a [DON'T: Negative Phrase] marker"""
    for match in _MARKER_PATTERN.finditer(text):
        if _family_of(match.group("family")) != FAMILY_DONT:
            continue
        if _normalize_label(match.group("label")) in REVIEW_LABELS:
            return True
    return False


# ========================================
# Reducers
# ========================================
def _build(mode: SessionMode, counter: Mapping[str, int]) -> Tally:
    if mode == SessionMode.RELATIONSHIP:
        return TagTally(**{tag: counter.get(tag, 0) for tag in RELATIONSHIP_TAGS})
    return DisciplineTally(**{tag: counter.get(tag, 0) for tag in DISCIPLINE_TAGS})


def aggregate_coding(text: str, mode: SessionMode = SessionMode.RELATIONSHIP) -> Tally:
    """
    Count every valid marker in a coded text blob

    Deterministic and side-effect free; malformed output yields zero counts.
    """
    return _build(mode, Counter(scan_tags(text, mode)))


def aggregate_utterances(
    utterances: Iterable[Utterance], mode: SessionMode = SessionMode.RELATIONSHIP
) -> Tally:
    """Count the tags attached to coded utterances (one tag at most each)"""
    known = RELATIONSHIP_TAGS if mode == SessionMode.RELATIONSHIP else DISCIPLINE_TAGS
    return _build(
        mode, Counter(u.tag for u in utterances if u.tag is not None and u.tag in known)
    )


def tally_from_counts(mode: SessionMode, counts: Mapping[str, int]) -> Tally:
    """Rebuild a tally from stored counts, ignoring derived totals and unknown keys"""
    return _build(mode, {k: int(v) for k, v in counts.items()})


def empty_tally(mode: SessionMode) -> Tally:
    return _build(mode, {})
