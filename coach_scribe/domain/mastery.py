#!/usr/bin/env python3
"""
Coach Scribe - Mastery Scoring
Turns a tally into per-skill progress and an overall 0-100 score
"""

from dataclasses import dataclass

from .models import SessionMode
from .settings import MasterySettings
from .tally import DisciplineTally, TagTally, Tally, round_half_up

MASTERY_COMPLETE = 100


def _clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))


@dataclass(frozen=True)
class SkillProgress:
    """One skill: current value, target and clamped percentage of target"""

    name: str
    current: float
    target: float
    percent: float
    inverted: bool = False  # lower is better


@dataclass(frozen=True)
class MasterySnapshot:
    """Progress of one session for one mode"""

    mode: SessionMode
    skills: tuple[SkillProgress, ...]
    overall_progress: int

    @property
    def mastery_achieved(self) -> bool:
        return self.overall_progress >= MASTERY_COMPLETE

    def skill(self, name: str) -> SkillProgress:
        for skill in self.skills:
            if skill.name == name:
                return skill
        raise KeyError(name)


class MasteryScorer:
    """
    Computes MasterySnapshots from tallies

    Relationship-building mode averages four "do" skills and the inverted
    "avoid" aggregate. Discipline mode averages two counted skills and the
    effective-command percentage.
    """

    def __init__(self, settings: MasterySettings | None = None) -> None:
        self.settings = settings or MasterySettings()

    # ========== Skill percentages ==========

    @staticmethod
    def target_percent(current: float, target: float) -> float:
        """min(current / target, 1) * 100; a non-positive target is already met"""
        if target <= 0:
            return 100.0
        return _clamp_percent(min(current / target, 1.0) * 100)

    def avoid_percent(self, current: float, ceiling: float) -> float:
        """100 at or below the ceiling, decaying by a fixed step per unit over it"""
        if current <= ceiling:
            return 100.0
        return _clamp_percent(100 - (current - ceiling) * self.settings.avoid_decay_step)

    def _do_skill(self, name: str, current: float, target: float) -> SkillProgress:
        return SkillProgress(
            name=name,
            current=current,
            target=target,
            percent=self.target_percent(current, target),
        )

    # ========== Scoring ==========

    def score(self, mode: SessionMode, tally: Tally) -> MasterySnapshot:
        """
        Score a tally for the given mode

        Raises:
            TypeError: the tally type does not belong to the mode
        """
        match mode:
            case SessionMode.RELATIONSHIP:
                if not isinstance(tally, TagTally):
                    raise TypeError("relationship mode expects a TagTally")
                return self.score_relationship(tally)
            case SessionMode.DISCIPLINE:
                if not isinstance(tally, DisciplineTally):
                    raise TypeError("discipline mode expects a DisciplineTally")
                return self.score_discipline(tally)
            case _:
                raise ValueError(f"Unknown session mode: {mode}")

    def score_relationship(self, tally: TagTally) -> MasterySnapshot:
        s = self.settings
        skills = (
            self._do_skill("praise", tally.praise, s.praise_target),
            self._do_skill("reflect", tally.reflect, s.reflect_target),
            self._do_skill("describe", tally.describe, s.describe_target),
            self._do_skill("imitate", tally.imitate, s.imitate_target),
            SkillProgress(
                name="avoid",
                current=tally.total_avoid,
                target=s.avoid_ceiling,
                percent=self.avoid_percent(tally.total_avoid, s.avoid_ceiling),
                inverted=True,
            ),
        )
        return self._snapshot(SessionMode.RELATIONSHIP, skills)

    def score_discipline(self, tally: DisciplineTally) -> MasterySnapshot:
        s = self.settings
        skills = (
            self._do_skill("direct_command", tally.direct_command, s.direct_command_target),
            self._do_skill("labeled_praise", tally.labeled_praise, s.labeled_praise_target),
            self._do_skill(
                "effective_percent", tally.effective_percent, s.effective_percent_target
            ),
        )
        return self._snapshot(SessionMode.DISCIPLINE, skills)

    @staticmethod
    def _snapshot(
        mode: SessionMode, skills: tuple[SkillProgress, ...]
    ) -> MasterySnapshot:
        mean = sum(skill.percent for skill in skills) / len(skills)
        overall = max(0, min(MASTERY_COMPLETE, round_half_up(mean)))
        return MasterySnapshot(mode=mode, skills=skills, overall_progress=overall)
