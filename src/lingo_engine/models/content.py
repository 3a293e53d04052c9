"""Static content models: skills, vocabulary, exercises and lessons."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ExerciseType(StrEnum):
    """Exercise kinds a lesson can contain."""

    MULTIPLE_CHOICE = "multipleChoice"
    TRANSLATION = "translation"
    LISTENING = "listening"
    MATCHING = "matching"
    FILL_IN_BLANK = "fillInBlank"


# Kinds answered by picking one of `options`
OPTION_TYPES: frozenset[ExerciseType] = frozenset({
    ExerciseType.MULTIPLE_CHOICE,
    ExerciseType.LISTENING,
    ExerciseType.FILL_IN_BLANK,
})


class Skill(BaseModel):
    """A node of the skill tree."""

    id: str
    name: str
    icon: str = ""
    levels: int = Field(default=5, gt=0)
    required_skills: list[str] = Field(default_factory=list)
    position: int = 0


VOCABULARY_KEYS: tuple[str, ...] = ("word1", "word2", "word3", "word4", "word5")


class VocabularySet(BaseModel):
    """Five labeled vocabulary items for one skill level."""

    model_config = ConfigDict(frozen=True)

    word1: str = Field(min_length=1)
    word2: str = Field(min_length=1)
    word3: str = Field(min_length=1)
    word4: str = Field(min_length=1)
    word5: str = Field(min_length=1)

    def __getitem__(self, key: str) -> str:
        if key not in VOCABULARY_KEYS:
            raise KeyError(key)
        return getattr(self, key)

    @property
    def words(self) -> list[str]:
        """Items in label order."""
        return [self[key] for key in VOCABULARY_KEYS]


class MatchingPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    left: str
    right: str


class Exercise(BaseModel):
    """One immutable exercise.

    The material required depends on `type`: option-based kinds need
    `options`, translation needs `word_bank` and matching needs `pairs`.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: ExerciseType
    question: str
    question_text: str | None = None
    audio_text: str | None = None
    options: list[str] = Field(default_factory=list)
    word_bank: list[str] = Field(default_factory=list)
    pairs: list[MatchingPair] = Field(default_factory=list)
    correct_answer: str
    explanation: str | None = None
    vocabulary_key: str | None = None

    @model_validator(mode="after")
    def _check_material(self) -> "Exercise":
        if self.type in OPTION_TYPES and not self.options:
            raise ValueError(f"{self.type.value} exercise requires options")
        if self.type == ExerciseType.TRANSLATION and not self.word_bank:
            raise ValueError("translation exercise requires a word bank")
        if self.type == ExerciseType.MATCHING and not self.pairs:
            raise ValueError("matching exercise requires pairs")
        return self


class ExerciseResult(BaseModel):
    """Outcome of one attempted exercise."""

    exercise: Exercise
    correct: bool
    user_answer: str | None = None


class Lesson(BaseModel):
    """Ordered exercise sequence generated for a skill level."""

    lesson_id: str
    language_id: str
    skill_id: str
    level: int
    exercises: list[Exercise] = Field(default_factory=list)
    xp_reward: int = 10
    is_practice: bool = False

    @property
    def exercise_types(self) -> set[ExerciseType]:
        return {exercise.type for exercise in self.exercises}
