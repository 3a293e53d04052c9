"""XP rewards earned by finishing a lesson."""

from pydantic import BaseModel

from lingo_engine.models.content import Lesson

LESSON_COMPLETE_XP = 10
PERFECT_LESSON_BONUS_XP = 5
PRACTICE_XP = 5
PRACTICE_PERFECT_BONUS_XP = 2
HEARTS_PER_LESSON = 3
SKILL_LEVELS = 5  # crowns per skill


class LessonReward(BaseModel):
    base_xp: int
    bonus_xp: int
    accuracy: float
    skill_level: int
    perfect: bool
    failed: bool = False

    @property
    def xp_earned(self) -> int:
        return self.base_xp + self.bonus_xp


def calculate_accuracy(correct: int, total: int) -> float:
    """Percentage of correct answers, 0 when nothing was attempted."""
    if total <= 0:
        return 0.0
    correct = min(max(0, correct), total)
    return correct / total * 100


def lesson_reward(
    lesson: Lesson,
    correct: int,
    total: int,
    max_level: int = SKILL_LEVELS,
    mistakes: int | None = None,
) -> LessonReward:
    """Compute the XP and crown level a finished lesson earns.

    Practice lessons pay the reduced practice rate and a smaller perfect
    bonus. The crown level scales with accuracy: every fifth of the
    exercises answered correctly is worth one crown on top of the first.
    A full lesson that runs out of hearts fails and earns nothing.

    Args:
        lesson: The lesson that was played.
        correct: Exercises answered correctly.
        total: Exercises counted toward accuracy.
        max_level: Crown cap of the lesson's skill.
        mistakes: Wrong answers given; ``total - correct`` when omitted.
    """
    accuracy = calculate_accuracy(correct, total)
    perfect = total > 0 and correct >= total
    if mistakes is None:
        mistakes = max(0, total - correct)

    if not lesson.is_practice and mistakes >= HEARTS_PER_LESSON:
        return LessonReward(
            base_xp=0,
            bonus_xp=0,
            accuracy=accuracy,
            skill_level=0,
            perfect=False,
            failed=True,
        )

    if lesson.is_practice:
        base_xp = PRACTICE_XP
        bonus_xp = PRACTICE_PERFECT_BONUS_XP if perfect else 0
    else:
        base_xp = lesson.xp_reward or LESSON_COMPLETE_XP
        bonus_xp = PERFECT_LESSON_BONUS_XP if perfect else 0

    if total > 0:
        correct = min(max(0, correct), total)
        skill_level = min(max_level, correct * SKILL_LEVELS // total + 1)
    else:
        skill_level = 0

    return LessonReward(
        base_xp=base_xp,
        bonus_xp=bonus_xp,
        accuracy=accuracy,
        skill_level=skill_level,
        perfect=perfect,
    )
