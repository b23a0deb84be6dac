#!/usr/bin/env python3
"""
Coach Scribe - Speaker Roles and Behavioral Coding
Turns reasoning-service answers into role-annotated and tagged utterances
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass

from coach_scribe.domain import (
    CodingStatus,
    CodingUnavailable,
    FlaggedItem,
    MessageLevel,
    RoleAssignment,
    SessionMode,
    SpeakerRole,
    Utterance,
    has_review_marker,
    post_message,
    scan_tags,
)
from coach_scribe.domain.constants import NEGATIVE_PHRASE_REASON, QUOTE_MATCH_PREFIX_CHARS

from .reasoning_client import ReasoningClient

_QUOTE_PATTERN = re.compile(r"[\"“]([^\"”]+)[\"”]")


# ========================================
# Coded text helpers
# ========================================
def _quote_of(line: str) -> str | None:
    match = _QUOTE_PATTERN.search(line)
    return match.group(1).strip() if match else None


def _match_utterance(
    quote: str, utterances: Sequence[Utterance], skip: set[int] | None = None
) -> int | None:
    """Index of the first utterance containing the quote's leading characters"""
    key = quote.lower()[:QUOTE_MATCH_PREFIX_CHARS]
    if not key:
        return None
    for index, utterance in enumerate(utterances):
        if skip and index in skip:
            continue
        if key in utterance.text.lower():
            return index
    return None


def attach_tags(
    coding: str, utterances: Sequence[Utterance], mode: SessionMode
) -> tuple[Utterance, ...]:
    """
    Attach at most one tag per utterance from coded lines

    Each line `"<quote>" [Tag] - explanation` tags the first untagged
    utterance whose text contains the quote's leading characters, using the
    line's first valid tag. Lines without a quote or a valid tag are ignored.
    """
    tagged = list(utterances)
    used: set[int] = set()
    for line in coding.splitlines():
        quote = _quote_of(line)
        tags = scan_tags(line, mode)
        if quote is None or not tags:
            continue
        index = _match_utterance(quote, tagged, skip=used)
        if index is None:
            continue
        tagged[index] = tagged[index].with_tag(tags[0])
        used.add(index)
    return tuple(tagged)


def extract_review_flags(
    coding: str, utterances: Sequence[Utterance]
) -> list[FlaggedItem]:
    """Collect negative-phrase lines that need a human coach's review"""
    flags = []
    for line in coding.splitlines():
        if not has_review_marker(line):
            continue
        quote = _quote_of(line)
        index = _match_utterance(quote, utterances) if quote else None
        matched = utterances[index] if index is not None else None
        flags.append(
            FlaggedItem(
                text=quote or line.strip(),
                reason=NEGATIVE_PHRASE_REASON,
                speaker=matched.speaker if matched else None,
                start=matched.start if matched else None,
            )
        )
    return flags


def apply_roles(
    utterances: Sequence[Utterance], parent_speaker: int
) -> tuple[Utterance, ...]:
    """Parent role for the parent index, child role for every other index"""
    return tuple(
        u.with_role(
            SpeakerRole.PARENT if u.speaker == parent_speaker else SpeakerRole.CHILD
        )
        for u in utterances
    )


# ========================================
# Role resolution
# ========================================
class SpeakerRoleResolver:
    """
    Maps anonymous speaker indices to parent and child roles

    Failure is non-fatal: resolve() returns None and callers keep the raw
    speaker indices.
    """

    def __init__(self, client: ReasoningClient) -> None:
        self.client = client

    async def resolve(
        self, mode: SessionMode, utterances: Sequence[Utterance]
    ) -> RoleAssignment | None:
        """
        Ask the reasoning service which speaker is the parent

        Returns:
            RoleAssignment | None: Parent index and role-annotated utterances
        """
        if not utterances:
            return None
        try:
            response = await self.client.analyze(mode, utterances)
        except CodingUnavailable as e:
            post_message(self, f"Speaker roles unavailable: {e}", MessageLevel.WARNING)
            return None

        parent = response.parent_speaker
        if parent is None or parent not in {u.speaker for u in utterances}:
            post_message(
                self,
                "Could not identify the parent speaker; showing speaker numbers",
                MessageLevel.WARNING,
            )
            return None

        return RoleAssignment(
            parent_speaker=parent, utterances=apply_roles(utterances, parent)
        )


# ========================================
# Behavioral coding
# ========================================
@dataclass(frozen=True)
class CodingOutcome:
    """
    Result of one coding request

    status distinguishes "coding failed" from "coded, zero of some tag".
    """

    status: CodingStatus
    utterances: tuple[Utterance, ...]
    coding_text: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == CodingStatus.CODED


class BehavioralCoder:
    """Requests inline behavioral tags for every parent utterance"""

    def __init__(self, client: ReasoningClient) -> None:
        self.client = client

    async def code(
        self, mode: SessionMode, utterances: Sequence[Utterance]
    ) -> CodingOutcome:
        """
        Code a transcript

        Args:
            mode: Session mode selecting the tag taxonomy
            utterances: Chronological utterances

        Returns:
            CodingOutcome: CODED with tagged utterances, or FAILED with the reason
        """
        if not utterances:
            return CodingOutcome(
                status=CodingStatus.FAILED,
                utterances=(),
                error="no utterances to code",
            )
        try:
            response = await self.client.analyze(mode, utterances)
        except CodingUnavailable as e:
            post_message(
                self, f"Behavioral coding unavailable: {e}", MessageLevel.WARNING
            )
            return CodingOutcome(
                status=CodingStatus.FAILED, utterances=tuple(utterances), error=str(e)
            )

        return CodingOutcome(
            status=CodingStatus.CODED,
            utterances=attach_tags(response.coding, utterances, mode),
            coding_text=response.coding,
        )
