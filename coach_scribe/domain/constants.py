#!/usr/bin/env python3
"""
Coach Scribe - Tag Taxonomy
Behavioral coding vocabulary shared by the tally, the coder and the prompts.
"""

# ========================================
# Relationship-building (child-directed play) tags
# ========================================
DO_TAGS = ("praise", "reflect", "describe", "imitate")
AVOID_TAGS = ("question", "command", "criticism")
NEUTRAL_TAG = "neutral"
RELATIONSHIP_TAGS = DO_TAGS + AVOID_TAGS + (NEUTRAL_TAG,)

# ========================================
# Discipline (parent-directed) tags
# ========================================
EFFECTIVE_COMMAND_TAGS = ("direct_command", "positive_command", "specific_command")
SUPPORTIVE_TAGS = ("labeled_praise", "correct_warning", "correct_timeout")
INEFFECTIVE_COMMAND_TAGS = (
    "indirect_command",
    "negative_command",
    "vague_command",
    "chained_command",
)
HARSH_TONE_TAG = "harsh_tone"
DISCIPLINE_TAGS = (
    EFFECTIVE_COMMAND_TAGS
    + SUPPORTIVE_TAGS
    + INEFFECTIVE_COMMAND_TAGS
    + (HARSH_TONE_TAG, NEUTRAL_TAG)
)

# ========================================
# Marker families
# ========================================
FAMILY_DO = "do"
FAMILY_DONT = "dont"
FAMILY_NONE = "none"

# Label as written inside a marker -> (family, tag)
# Labels are normalised to lowercase with single spaces and no hyphens.
RELATIONSHIP_LABELS: dict[str, tuple[str, str]] = {
    "praise": (FAMILY_DO, "praise"),
    "labeled praise": (FAMILY_DO, "praise"),
    "reflect": (FAMILY_DO, "reflect"),
    "reflection": (FAMILY_DO, "reflect"),
    "echo": (FAMILY_DO, "reflect"),
    "describe": (FAMILY_DO, "describe"),
    "description": (FAMILY_DO, "describe"),
    "narration": (FAMILY_DO, "describe"),
    "imitate": (FAMILY_DO, "imitate"),
    "imitation": (FAMILY_DO, "imitate"),
    "question": (FAMILY_DONT, "question"),
    "command": (FAMILY_DONT, "command"),
    "criticism": (FAMILY_DONT, "criticism"),
}

DISCIPLINE_LABELS: dict[str, tuple[str, str]] = {
    "direct command": (FAMILY_DO, "direct_command"),
    "positive command": (FAMILY_DO, "positive_command"),
    "specific command": (FAMILY_DO, "specific_command"),
    "labeled praise": (FAMILY_DO, "labeled_praise"),
    "correct warning": (FAMILY_DO, "correct_warning"),
    "correct time out statement": (FAMILY_DO, "correct_timeout"),
    "correct timeout statement": (FAMILY_DO, "correct_timeout"),
    "correct timeout": (FAMILY_DO, "correct_timeout"),
    "time out statement": (FAMILY_DO, "correct_timeout"),
    "timeout statement": (FAMILY_DO, "correct_timeout"),
    "indirect command": (FAMILY_DONT, "indirect_command"),
    "negative command": (FAMILY_DONT, "negative_command"),
    "vague command": (FAMILY_DONT, "vague_command"),
    "chained command": (FAMILY_DONT, "chained_command"),
    "harsh tone": (FAMILY_DONT, "harsh_tone"),
}

# Review-only marker, never part of a tally
REVIEW_LABELS = ("negative phrase", "negative phrases")
NEGATIVE_PHRASE_REASON = "Negative phrase detected - requires human coach review"

# Number of leading characters used to match a coded quote to an utterance
QUOTE_MATCH_PREFIX_CHARS = 20

# ========================================
# Transcript analysis
# ========================================
SILENT_SLOT_THRESHOLD_SEC = 3.0
