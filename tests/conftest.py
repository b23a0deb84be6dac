"""Shared fixtures"""

import sys
from collections.abc import Iterator
from unittest.mock import MagicMock

import pytest

# Mock sounddevice where PortAudio is unavailable (Linux CI etc.)
try:
    import sounddevice  # type: ignore[import-untyped]  # noqa: F401
except OSError:
    sys.modules["sounddevice"] = MagicMock()

from coach_scribe.domain import (  # noqa: E402
    MessagePostedEvent,
    Utterance,
    message_posted,
)


@pytest.fixture
def utterances() -> list[Utterance]:
    """Short parent/child exchange with one long pause"""
    return [
        Utterance(speaker=0, text="Great job stacking the blocks!", start=0.0, end=2.0),
        Utterance(speaker=1, text="I made a tower", start=2.5, end=3.5),
        Utterance(speaker=0, text="You made a tall tower.", start=4.0, end=5.5),
        Utterance(speaker=0, text="What color is that?", start=10.0, end=11.0),
    ]


@pytest.fixture
def coded_text() -> str:
    """Coding answer for the `utterances` fixture"""
    return "\n".join(
        [
            '"Great job stacking the blocks!" [DO: Praise] - labeled praise',
            '"You made a tall tower." [DO: Reflect] - repeats the child',
            '"What color is that?" [DON\'T: Question] - asks a question',
        ]
    )


@pytest.fixture
def messages() -> Iterator[list[MessagePostedEvent]]:
    """Records every message_posted event during the test"""
    received: list[MessagePostedEvent] = []

    def receiver(_sender: object, event: MessagePostedEvent) -> None:
        received.append(event)

    message_posted.connect(receiver)
    yield received
    message_posted.disconnect(receiver)
