"""Tests for tag scanning and tally aggregation"""

from coach_scribe.domain import (
    DisciplineTally,
    SessionMode,
    TagTally,
    Utterance,
    aggregate_coding,
    aggregate_utterances,
    empty_tally,
    has_review_marker,
    scan_tags,
    tally_from_counts,
)
from coach_scribe.domain.tally import round_half_up


class TestScanTags:
    """Marker extraction from coded text"""

    def test_extracts_do_and_dont_markers(self) -> None:
        """DO and DON'T markers resolve to their tags in order"""
        text = "[DO: Praise] Great job! [DON'T: Command] Sit down."
        assert scan_tags(text, SessionMode.RELATIONSHIP) == ["praise", "command"]

    def test_is_case_and_spacing_insensitive(self) -> None:
        """Marker case and inner whitespace do not matter"""
        text = "[do:praise] [ Don't :  Question ] [DONT: criticism]"
        assert scan_tags(text, SessionMode.RELATIONSHIP) == [
            "praise",
            "question",
            "criticism",
        ]

    def test_accepts_curly_apostrophe(self) -> None:
        """DON’T with a typographic apostrophe is a DON'T marker"""
        assert scan_tags("[DON’T: Command]", SessionMode.RELATIONSHIP) == ["command"]

    def test_resolves_aliases(self) -> None:
        """Echo counts as reflect, Narration as describe"""
        text = "[DO: Echo] [DO: Narration] [DO: Labeled Praise] [DO: Imitation]"
        assert scan_tags(text, SessionMode.RELATIONSHIP) == [
            "reflect",
            "describe",
            "praise",
            "imitate",
        ]

    def test_ignores_unknown_labels(self) -> None:
        """Unknown labels are skipped"""
        assert scan_tags("[DO: Hug] [DON'T: Yell]", SessionMode.RELATIONSHIP) == []

    def test_ignores_family_mismatch(self) -> None:
        """A do-skill under DON'T (or vice versa) is not counted"""
        text = "[DON'T: Praise] [DO: Command]"
        assert scan_tags(text, SessionMode.RELATIONSHIP) == []

    def test_neutral_requires_no_prefix(self) -> None:
        """[Neutral] counts, [DO: Neutral] does not"""
        assert scan_tags("[Neutral] [DO: Neutral]", SessionMode.RELATIONSHIP) == ["neutral"]

    def test_discipline_labels(self) -> None:
        """Discipline mode uses its own taxonomy"""
        text = (
            "[DO: Direct Command] [DO: Labeled Praise] [DON'T: Indirect Command] "
            "[DON'T: Harsh Tone] [DO: Correct Time-Out Statement]"
        )
        assert scan_tags(text, SessionMode.DISCIPLINE) == [
            "direct_command",
            "labeled_praise",
            "indirect_command",
            "harsh_tone",
            "correct_timeout",
        ]

    def test_timeout_statement_aliases(self) -> None:
        """Time-out statements count as correct_timeout with or without the prefix"""
        text = "[DO: Time-Out Statement] [DO: Timeout Statement] [do: time out statement]"
        assert scan_tags(text, SessionMode.DISCIPLINE) == ["correct_timeout"] * 3
        tally = aggregate_coding("[DO: Timeout Statement]", SessionMode.DISCIPLINE)
        assert tally == DisciplineTally(correct_timeout=1)

    def test_relationship_labels_do_not_leak_into_discipline(self) -> None:
        """[DO: Reflect] means nothing in discipline mode"""
        assert scan_tags("[DO: Reflect]", SessionMode.DISCIPLINE) == []


class TestReviewMarker:
    """Negative phrase review markers"""

    def test_detects_negative_phrase(self) -> None:
        """[DON'T: Negative Phrase] is a review marker"""
        assert has_review_marker('"Stop it" [DON\'T: Negative Phrase]')

    def test_requires_dont_family(self) -> None:
        """Only the DON'T family flags a review"""
        assert not has_review_marker("[DO: Negative Phrase]")
        assert not has_review_marker("[DON'T: Command]")

    def test_negative_phrase_is_not_tallied(self) -> None:
        """Review markers never appear in a tally"""
        tally = aggregate_coding("[DON'T: Negative Phrase]", SessionMode.RELATIONSHIP)
        assert tally == TagTally()


class TestAggregateCoding:
    """Pure reducer over coded text"""

    def test_counts_each_marker(self) -> None:
        """Praise and command each count once"""
        tally = aggregate_coding(
            "[DO: Praise] Great job! [DON'T: Command] Sit down.", SessionMode.RELATIONSHIP
        )
        assert isinstance(tally, TagTally)
        assert tally.to_dict() == {
            "praise": 1,
            "reflect": 0,
            "describe": 0,
            "imitate": 0,
            "question": 0,
            "command": 1,
            "criticism": 0,
            "neutral": 0,
            "totalPride": 1,
            "totalAvoid": 1,
        }

    def test_returns_fresh_tally_each_call(self) -> None:
        """Repeated calls never accumulate"""
        text = "[DO: Praise] [DO: Praise]"
        first = aggregate_coding(text)
        second = aggregate_coding(text)
        assert first == second
        assert first.praise == 2  # type: ignore[union-attr]

    def test_text_outside_markers_does_not_matter(self) -> None:
        """Reordering the prose around markers leaves the counts unchanged"""
        coded = (
            '"Nice building!" [DO: Praise] - labeled\n'
            '"You put it on top." [DO: Narration] - describes\n'
            '"What is that?" [DON\'T: Question] - asks\n'
        )
        reordered = (
            'Session notes first.\n"What is that?" [DON\'T: Question] - asks\n'
            "some unrelated commentary\n"
            '"You put it on top." [DO: Narration] - describes\n'
            '"Nice building!" [DO: Praise] - labeled\nclosing remark'
        )
        assert aggregate_coding(coded, SessionMode.RELATIONSHIP) == aggregate_coding(
            reordered, SessionMode.RELATIONSHIP
        )
        assert aggregate_coding(reordered, SessionMode.RELATIONSHIP) == TagTally(
            praise=1, describe=1, question=1
        )

    def test_malformed_text_yields_zero_counts(self) -> None:
        """Text without valid markers gives an all-zero tally"""
        assert aggregate_coding("no markers here [DO:", SessionMode.RELATIONSHIP) == TagTally()

    def test_totals(self) -> None:
        """totalPride sums do-skills, totalAvoid sums avoid-skills"""
        tally = aggregate_coding(
            "[DO: Praise] [DO: Reflect] [DO: Describe] [DO: Imitate] "
            "[DON'T: Question] [DON'T: Criticism] [Neutral]"
        )
        assert isinstance(tally, TagTally)
        assert tally.total_pride == 4
        assert tally.total_avoid == 2
        assert tally.neutral == 1


class TestDisciplineTally:
    """Discipline mode aggregation"""

    def test_effective_percent(self) -> None:
        """Effective commands over all commands, rounded half up"""
        tally = aggregate_coding(
            "[DO: Direct Command] [DO: Positive Command] [DO: Specific Command] "
            "[DON'T: Vague Command] [DON'T: Chained Command] [DON'T: Harsh Tone]",
            SessionMode.DISCIPLINE,
        )
        assert isinstance(tally, DisciplineTally)
        assert tally.total_effective == 3
        assert tally.total_ineffective == 2
        assert tally.total_commands == 5
        assert tally.effective_percent == 60
        assert tally.harsh_tone == 1

    def test_effective_percent_without_commands(self) -> None:
        """No command given means 0%"""
        assert DisciplineTally(labeled_praise=3).effective_percent == 0

    def test_effective_percent_rounds_half_up(self) -> None:
        """1 of 8 = 12.5% rounds to 13"""
        tally = DisciplineTally(direct_command=1, negative_command=7)
        assert tally.effective_percent == 13

    def test_to_dict_includes_totals(self) -> None:
        """Derived totals are exported with camelCase keys"""
        data = DisciplineTally(direct_command=1, indirect_command=1).to_dict()
        assert data["totalCommands"] == 2
        assert data["effectivePercent"] == 50


class TestOtherReducers:
    """Utterance and stored-count reducers"""

    def test_aggregate_utterances(self) -> None:
        """Counts one tag per utterance and skips untagged ones"""
        utterances = [
            Utterance(speaker=0, text="a", tag="praise"),
            Utterance(speaker=0, text="b", tag="praise"),
            Utterance(speaker=0, text="c", tag="question"),
            Utterance(speaker=1, text="d"),
        ]
        tally = aggregate_utterances(utterances)
        assert tally == TagTally(praise=2, question=1)

    def test_tally_from_counts_ignores_totals(self) -> None:
        """Stored dicts with derived totals and unknown keys rebuild cleanly"""
        stored = {"praise": 3, "command": 1, "totalPride": 3, "bogus": 9}
        assert tally_from_counts(SessionMode.RELATIONSHIP, stored) == TagTally(
            praise=3, command=1
        )

    def test_empty_tally_matches_mode(self) -> None:
        """Each mode gets its own zero tally type"""
        assert empty_tally(SessionMode.RELATIONSHIP) == TagTally()
        assert empty_tally(SessionMode.DISCIPLINE) == DisciplineTally()


class TestRoundHalfUp:
    """Rounding helper"""

    def test_rounds_halves_up(self) -> None:
        """Halves go up rather than to even"""
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4) == 2
