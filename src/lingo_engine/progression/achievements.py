"""Achievement definitions and unlock rules."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel

from lingo_engine.models.progress import UserProfile


class AchievementId(StrEnum):
    FIRST_LESSON = "first_lesson"
    WEEK_WARRIOR = "week_warrior"
    POLYGLOT = "polyglot"
    PERFECT_STUDENT = "perfect_student"
    EARLY_BIRD = "early_bird"
    NIGHT_OWL = "night_owl"
    MONTH_MASTER = "month_master"
    VOCAB_MASTER = "vocab_master"


class Achievement(BaseModel):
    id: AchievementId
    name: str
    description: str
    icon: str
    tier: str  # "bronze", "silver", "gold"


ACHIEVEMENT_DEFINITIONS: dict[AchievementId, Achievement] = {
    a.id: a
    for a in [
        Achievement(id=AchievementId.FIRST_LESSON, name="First Steps",
                    description="Complete your first lesson", icon="🎯", tier="bronze"),
        Achievement(id=AchievementId.WEEK_WARRIOR, name="Week Warrior",
                    description="Maintain a 7-day streak", icon="🔥", tier="silver"),
        Achievement(id=AchievementId.POLYGLOT, name="Polyglot",
                    description="Start learning 3 languages", icon="🌍", tier="gold"),
        Achievement(id=AchievementId.PERFECT_STUDENT, name="Perfect Student",
                    description="Complete 10 lessons with 100% accuracy", icon="⭐", tier="gold"),
        Achievement(id=AchievementId.EARLY_BIRD, name="Early Bird",
                    description="Complete a lesson before 8 AM", icon="🌅", tier="bronze"),
        Achievement(id=AchievementId.NIGHT_OWL, name="Night Owl",
                    description="Complete a lesson after 10 PM", icon="🦉", tier="bronze"),
        Achievement(id=AchievementId.MONTH_MASTER, name="Month Master",
                    description="Maintain a 30-day streak", icon="👑", tier="gold"),
        Achievement(id=AchievementId.VOCAB_MASTER, name="Vocabulary Master",
                    description="Learn 100 words", icon="📚", tier="silver"),
    ]
}

WEEK_STREAK = 7
MONTH_STREAK = 30
POLYGLOT_LANGUAGES = 3
PERFECT_STUDENT_LESSONS = 10
VOCAB_MASTER_WORDS = 100
EARLY_BIRD_HOUR = 8
NIGHT_OWL_HOUR = 22


def check_achievements(
    profile: UserProfile,
    now: datetime,
    lesson_completed: bool = True,
    vocabulary_count: int = 0,
) -> list[str]:
    """Return achievement ids newly earned, in definition order.

    Args:
        profile: Profile after the lesson's effects were applied.
        now: Local time the lesson finished.
        lesson_completed: Whether this check follows a finished lesson.
        vocabulary_count: Words learned across all languages.
    """
    owned = set(profile.achievements)
    earned: list[str] = []

    def grant(achievement: AchievementId, condition: bool) -> None:
        if condition and achievement.value not in owned:
            earned.append(achievement.value)

    grant(AchievementId.FIRST_LESSON, lesson_completed)
    grant(AchievementId.WEEK_WARRIOR, profile.current_streak >= WEEK_STREAK)
    grant(AchievementId.POLYGLOT, len(profile.languages) >= POLYGLOT_LANGUAGES)
    grant(AchievementId.PERFECT_STUDENT, profile.perfect_lessons >= PERFECT_STUDENT_LESSONS)
    grant(AchievementId.EARLY_BIRD, lesson_completed and now.hour < EARLY_BIRD_HOUR)
    grant(AchievementId.NIGHT_OWL, lesson_completed and now.hour >= NIGHT_OWL_HOUR)
    grant(AchievementId.MONTH_MASTER, profile.current_streak >= MONTH_STREAK)
    grant(AchievementId.VOCAB_MASTER, vocabulary_count >= VOCAB_MASTER_WORDS)
    return earned


def get_achievement(achievement_id: str) -> Achievement | None:
    try:
        return ACHIEVEMENT_DEFINITIONS[AchievementId(achievement_id)]
    except ValueError:
        return None


def all_achievements() -> list[Achievement]:
    return list(ACHIEVEMENT_DEFINITIONS.values())


def unlocked_achievements(profile: UserProfile) -> list[Achievement]:
    """Definitions of the profile's achievements, skipping unknown ids."""
    found = (get_achievement(a) for a in profile.achievements)
    return [a for a in found if a is not None]


def locked_achievements(profile: UserProfile) -> list[Achievement]:
    owned = set(profile.achievements)
    return [a for a in all_achievements() if a.id.value not in owned]
