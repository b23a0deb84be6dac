#!/usr/bin/env python3
"""
Coach Scribe - Prompt Templates
Prompts sent to the reasoning model for coding and competency analysis
"""

from collections.abc import Sequence
from typing import Protocol

from coach_scribe.domain import (
    DisciplineTally,
    MasterySettings,
    SessionMode,
    TagTally,
    Tally,
    Utterance,
)


def format_transcript(utterances: Sequence[Utterance]) -> str:
    """
    Format utterances as one quoted line per turn

    Only speaker indices and text are sent; timestamps and roles are not.

    Returns:
        str: Lines like `Speaker 0: "Look at that tower!"`
    """
    return "\n".join(f'Speaker {u.speaker}: "{u.text}"' for u in utterances)


class CodingPromptStrategy(Protocol):
    """Builds the prompt that asks for the parent speaker and coded lines"""

    @property
    def system_prompt(self) -> str: ...

    def build_user_prompt(self, utterances: Sequence[Utterance]) -> str: ...


class CompetencyPromptStrategy(Protocol):
    """Builds the prompt that asks for a competency analysis of a tally"""

    @property
    def system_prompt(self) -> str: ...

    def build_user_prompt(self, tally: Tally) -> str: ...


_CODER_SYSTEM_PROMPT = (
    "You are an expert PCIT (Parent-Child Interaction Therapy) coder. "
    "Follow the output format exactly and do not add any preamble."
)
_SUPERVISOR_SYSTEM_PROMPT = (
    "You are an expert PCIT (Parent-Child Interaction Therapy) supervisor. "
    "Keep the tone warm, encouraging and constructive."
)

_OUTPUT_FORMAT = """
**Output Format:**
First line: PARENT_SPEAKER: <number>

Then, for EACH parent utterance, provide exactly one tag:
"<exact quote>" [Tag] - Brief explanation
"""


class RelationshipCodingPrompt:
    """Child-directed play: PRIDE skills and the skills to avoid"""

    @property
    def system_prompt(self) -> str:
        return _CODER_SYSTEM_PROMPT

    def build_user_prompt(self, utterances: Sequence[Utterance]) -> str:
        return f"""Your task is to:
1. Identify which speaker is the parent (usually the one with more instructions, questions or praise)
2. Apply one coding tag to every parent utterance

**Input Transcript:**
{format_transcript(utterances)}

**Coding Rules:**
[DO: Praise] - Labeled or unlabeled praise for the child's behavior
[DO: Reflect] - Repeating or paraphrasing the child's words
[DO: Describe] - Narrating the child's ongoing behavior
[DO: Imitate] - Joining in and copying the child's play
[DON'T: Question] - Direct or indirect questions
[DON'T: Command] - Direct or indirect commands
[DON'T: Criticism] - Criticism of the child's behavior, appearance or character
[DON'T: Negative Phrases] - Sarcasm, threats, physical control statements
[Neutral] - Statements that fit none of the above
{_OUTPUT_FORMAT}
Example:
PARENT_SPEAKER: 0
"You're building a tall tower!" [DO: Describe] - Describing ongoing play
"Great job stacking those blocks neatly!" [DO: Praise] - Labeled praise
"What color should we use next?" [DON'T: Question] - Asking a question
"""


class DisciplineCodingPrompt:
    """Parent-directed interaction: command quality and follow-through"""

    @property
    def system_prompt(self) -> str:
        return _CODER_SYSTEM_PROMPT

    def build_user_prompt(self, utterances: Sequence[Utterance]) -> str:
        return f"""Your task is to:
1. Identify which speaker is the parent (usually the one giving directions)
2. Apply one coding tag to every parent utterance

**Input Transcript:**
{format_transcript(utterances)}

**Effective Skills (DO):**
[DO: Direct Command] - Clear, direct command ("Put the block here")
[DO: Positive Command] - States what TO do ("Walk please")
[DO: Specific Command] - Single, clear action ("Hand me the red block")
[DO: Labeled Praise] - Praise naming what was done well
[DO: Correct Warning] - Proper warning before a time-out
[DO: Correct Time-Out Statement] - Proper time-out statement

**Ineffective Skills (DON'T):**
[DON'T: Indirect Command] - Phrased as a question or suggestion ("Can you clean up?")
[DON'T: Negative Command] - States what NOT to do ("Don't throw toys")
[DON'T: Vague Command] - Unclear or general ("Be good")
[DON'T: Chained Command] - Several commands at once
[DON'T: Harsh Tone] - Command delivered with anger or a raised voice

[Neutral] - Statements that fit none of the above
{_OUTPUT_FORMAT}
Example:
PARENT_SPEAKER: 0
"Put the blocks in the box." [DO: Direct Command] - Clear, specific action
"Can you come here?" [DON'T: Indirect Command] - Phrased as question
"""


class RelationshipCompetencyPrompt:
    """Competency analysis of a relationship-building tally"""

    def __init__(self, targets: MasterySettings | None = None) -> None:
        self.targets = targets or MasterySettings()

    @property
    def system_prompt(self) -> str:
        return _SUPERVISOR_SYSTEM_PROMPT

    def build_user_prompt(self, tally: Tally) -> str:
        assert isinstance(tally, TagTally)
        t = self.targets
        return f"""Analyze the skill counts of a 5-minute play session and give a competency analysis with recommendations.

**Counts:**
- Praise: {tally.praise}
- Reflections: {tally.reflect}
- Behavioral Descriptions: {tally.describe}
- Imitations: {tally.imitate}
- Questions: {tally.question}
- Commands: {tally.command}
- Criticisms: {tally.criticism}
- Neutral: {tally.neutral}

**Totals:**
- DO skills: {tally.total_pride}
- DON'T skills: {tally.total_avoid}

**Mastery Criteria:**
- {t.praise_target}+ Praises, {t.reflect_target}+ Reflections, {t.describe_target}+ Descriptions, {t.imitate_target}+ Imitations
- {t.avoid_ceiling} or fewer DON'Ts (Questions + Commands + Criticisms)

Provide:
1. **Overall Performance**: 2-3 sentences
2. **Strengths**: bullet points
3. **Areas for Improvement**: bullet points
4. **Specific Recommendations**: bullet points
"""


class DisciplineCompetencyPrompt:
    """Competency analysis of a discipline tally"""

    def __init__(self, targets: MasterySettings | None = None) -> None:
        self.targets = targets or MasterySettings()

    @property
    def system_prompt(self) -> str:
        return _SUPERVISOR_SYSTEM_PROMPT

    def build_user_prompt(self, tally: Tally) -> str:
        assert isinstance(tally, DisciplineTally)
        t = self.targets
        return f"""Analyze the skill counts of a parent-directed session and give a competency analysis with recommendations.

**Effective Skills:**
- Direct Commands: {tally.direct_command}
- Positive Commands: {tally.positive_command}
- Specific Commands: {tally.specific_command}
- Labeled Praise: {tally.labeled_praise}
- Correct Warnings: {tally.correct_warning}
- Correct Time-Out Statements: {tally.correct_timeout}

**Ineffective Skills:**
- Indirect Commands: {tally.indirect_command}
- Negative Commands: {tally.negative_command}
- Vague Commands: {tally.vague_command}
- Chained Commands: {tally.chained_command}
- Harsh Tone: {tally.harsh_tone}

**Neutral:** {tally.neutral}

**Summary:**
- Effective Commands: {tally.total_effective} of {tally.total_commands} ({tally.effective_percent}%)

**Mastery Criteria:**
- {t.direct_command_target}+ Direct Commands and {t.labeled_praise_target}+ Labeled Praises
- {t.effective_percent_target:.0f}%+ of commands Effective

Provide:
1. **Overall Performance**: 2-3 sentences
2. **Command Effectiveness**: quality of commands and likely compliance
3. **Strengths**: bullet points
4. **Areas for Improvement**: bullet points
5. **Specific Recommendations**: bullet points
"""


def coding_prompt_for(mode: SessionMode) -> CodingPromptStrategy:
    match mode:
        case SessionMode.RELATIONSHIP:
            return RelationshipCodingPrompt()
        case SessionMode.DISCIPLINE:
            return DisciplineCodingPrompt()
        case _:
            raise ValueError(f"Unknown session mode: {mode}")


def competency_prompt_for(
    mode: SessionMode, targets: MasterySettings | None = None
) -> CompetencyPromptStrategy:
    match mode:
        case SessionMode.RELATIONSHIP:
            return RelationshipCompetencyPrompt(targets)
        case SessionMode.DISCIPLINE:
            return DisciplineCompetencyPrompt(targets)
        case _:
            raise ValueError(f"Unknown session mode: {mode}")
