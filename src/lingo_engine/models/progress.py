"""Learner progress and profile models."""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from lingo_engine.models.content import Exercise

DAILY_XP_GOALS: tuple[int, ...] = (10, 20, 50, 100)


class UserSettings(BaseModel):
    sound_enabled: bool = True
    speech_enabled: bool = True
    notifications_enabled: bool = True


class UserProfile(BaseModel):
    """Learner profile with cross-language aggregates."""

    user_id: str
    display_name: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    total_xp: int = Field(default=0, ge=0)
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    achievements: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    settings: UserSettings = Field(default_factory=UserSettings)
    daily_xp_goal: int = 20
    perfect_lessons: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _normalize(self) -> "UserProfile":
        self.achievements = list(dict.fromkeys(self.achievements))
        self.languages = list(dict.fromkeys(self.languages))
        if self.longest_streak < self.current_streak:
            self.longest_streak = self.current_streak
        if self.daily_xp_goal not in DAILY_XP_GOALS:
            self.daily_xp_goal = 20
        return self


class SkillProgress(BaseModel):
    """Per-skill crown level and practice history."""

    level: int = Field(default=0, ge=0)
    completed_lessons: list[str] = Field(default_factory=list)
    last_practiced: datetime | None = None
    accuracy: float | None = Field(default=None, ge=0, le=100)
    recent_mistakes: list[Exercise] = Field(default_factory=list)


class Progress(BaseModel):
    """Progress record for one user in one language."""

    user_id: str
    language_id: str
    level: int = Field(default=1, ge=1)
    total_xp: int = Field(default=0, ge=0)
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_active_date: datetime | None = None
    skills: dict[str, SkillProgress] = Field(default_factory=dict)
    vocabulary: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _normalize(self) -> "Progress":
        self.vocabulary = list(dict.fromkeys(self.vocabulary))
        if self.longest_streak < self.current_streak:
            self.longest_streak = self.current_streak
        return self


class XPAwardResult(BaseModel):
    leveled_up: bool
    new_level: int
    total_xp: int
    current_streak: int
    longest_streak: int
    profile_changed: bool = False


class SkillUpdateResult(BaseModel):
    success: bool = True
    skill_id: str
    skill_progress: SkillProgress


class LessonOutcome(BaseModel):
    """Everything the UI needs to show after a lesson."""

    lesson_id: str
    skill_id: str
    correct: int
    total: int
    accuracy: float
    xp_earned: int
    leveled_up: bool
    new_level: int
    total_xp: int
    current_streak: int
    skill_level: int
    failed: bool = False
    new_achievements: list[str] = Field(default_factory=list)
    incorrect_exercises: list[Exercise] = Field(default_factory=list)
    profile_changed: bool = False
