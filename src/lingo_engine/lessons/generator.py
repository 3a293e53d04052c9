"""Full and practice lesson generation from vocabulary sets."""

import random
from collections.abc import Sequence

import structlog

from lingo_engine.content.provider import ContentProvider
from lingo_engine.lessons.practice import compose_practice_exercises
from lingo_engine.models.content import (
    Exercise,
    ExerciseType,
    Lesson,
    MatchingPair,
    VocabularySet,
)
from lingo_engine.progression.rewards import LESSON_COMPLETE_XP, PRACTICE_XP, SKILL_LEVELS

logger = structlog.get_logger()


def _explain(native: str, english: str, language_name: str, heard: bool = False) -> str:
    if heard:
        return f'You heard "{native}" which means "{english}" in {language_name}.'
    return f'"{native}" means "{english}" in {language_name}.'


def build_exercises(
    vocab: VocabularySet, english: VocabularySet, language_name: str, lesson_id: str
) -> list[Exercise]:
    """Ten exercises in fixed order covering every exercise kind.

    Each exercise is keyed to one vocabulary item and draws its
    distractors from the same five-item set. Exercise ids are prefixed
    with `lesson_id` so they stay unique across levels and skills.
    """
    v, e = vocab, english
    return [
        Exercise(
            id=f"{lesson_id}_ex1",
            type=ExerciseType.MULTIPLE_CHOICE,
            question=f'How do you say "{e.word1}" in {language_name}?',
            audio_text=v.word1,
            options=[v.word1, v.word2, v.word3, v.word4],
            correct_answer=v.word1,
            explanation=_explain(v.word1, e.word1, language_name),
            vocabulary_key="word1",
        ),
        Exercise(
            id=f"{lesson_id}_ex2",
            type=ExerciseType.TRANSLATION,
            question="Translate this phrase",
            question_text=v.word2,
            audio_text=v.word2,
            word_bank=e.words,
            correct_answer=e.word2,
            explanation=_explain(v.word2, e.word2, language_name),
            vocabulary_key="word2",
        ),
        Exercise(
            id=f"{lesson_id}_ex3",
            type=ExerciseType.MULTIPLE_CHOICE,
            question=f'What does "{v.word3}" mean?',
            audio_text=v.word3,
            options=[e.word1, e.word2, e.word3, e.word4],
            correct_answer=e.word3,
            explanation=_explain(v.word3, e.word3, language_name),
            vocabulary_key="word3",
        ),
        Exercise(
            id=f"{lesson_id}_ex4",
            type=ExerciseType.LISTENING,
            question="Listen and select what you hear",
            audio_text=v.word4,
            options=[e.word1, e.word2, e.word4, e.word5],
            correct_answer=e.word4,
            explanation=_explain(v.word4, e.word4, language_name, heard=True),
            vocabulary_key="word4",
        ),
        Exercise(
            id=f"{lesson_id}_ex5",
            type=ExerciseType.MATCHING,
            question=f"Match the {language_name} words with their English translations",
            pairs=[
                MatchingPair(left=v[key], right=e[key])
                for key in ("word1", "word2", "word3", "word4")
            ],
            correct_answer=e.word1,
            explanation=(
                f"{_explain(v.word1, e.word1, language_name)} "
                "Match each word with its correct translation."
            ),
            vocabulary_key="word1",
        ),
        Exercise(
            id=f"{lesson_id}_ex6",
            type=ExerciseType.FILL_IN_BLANK,
            question=f'"{v.word5}" means ___ in English.',
            options=[e.word1, e.word2, e.word3, e.word5],
            correct_answer=e.word5,
            explanation=_explain(v.word5, e.word5, language_name),
            vocabulary_key="word5",
        ),
        Exercise(
            id=f"{lesson_id}_ex7",
            type=ExerciseType.MULTIPLE_CHOICE,
            question=f'How do you say "{e.word2}" in {language_name}?',
            audio_text=v.word2,
            options=[v.word1, v.word2, v.word4, v.word5],
            correct_answer=v.word2,
            explanation=_explain(v.word2, e.word2, language_name),
            vocabulary_key="word2",
        ),
        Exercise(
            id=f"{lesson_id}_ex8",
            type=ExerciseType.TRANSLATION,
            question="Translate this phrase",
            question_text=v.word1,
            audio_text=v.word1,
            word_bank=[e.word1, e.word3, e.word4, e.word5],
            correct_answer=e.word1,
            explanation=_explain(v.word1, e.word1, language_name),
            vocabulary_key="word1",
        ),
        Exercise(
            id=f"{lesson_id}_ex9",
            type=ExerciseType.LISTENING,
            question="Listen and select the correct translation",
            audio_text=v.word5,
            options=[e.word2, e.word3, e.word4, e.word5],
            correct_answer=e.word5,
            explanation=_explain(v.word5, e.word5, language_name, heard=True),
            vocabulary_key="word5",
        ),
        Exercise(
            id=f"{lesson_id}_ex10",
            type=ExerciseType.MULTIPLE_CHOICE,
            question=f'What is the {language_name} word for "{e.word4}"?',
            audio_text=v.word4,
            options=[v.word1, v.word3, v.word4, v.word5],
            correct_answer=v.word4,
            explanation=_explain(v.word4, e.word4, language_name),
            vocabulary_key="word4",
        ),
    ]


class LessonGenerator:
    """Builds lessons for a skill level from a content provider.

    Full lessons are deterministic and memoized per (language, skill, level).
    Practice lessons are randomized and never cached.

    Args:
        content: Vocabulary and skill source.
    """

    def __init__(self, content: ContentProvider):
        self.content = content
        self._cache: dict[tuple[str, str, int], Lesson] = {}

    def build_lesson(self, language_id: str, skill_id: str, level: int) -> Lesson:
        """Build the full ten-exercise lesson for a skill level.

        Unknown languages and skills resolve to the defaults and the level
        is clamped to the skill's range, so the cache only ever holds
        lessons for real content.
        """
        language = self.content.resolve(language_id)
        skill = self.content.get_skill(language, skill_id)
        level = min(max(1, int(level)), skill.levels)
        key = (language, skill.id, level)
        if key in self._cache:
            return self._cache[key]

        vocab = self.content.get_vocabulary(language, skill.id, level)
        english = self.content.get_english_vocabulary(skill.id, level)
        lesson_id = f"{language}_{skill.id}_l{level}"

        lesson = Lesson(
            lesson_id=lesson_id,
            language_id=language,
            skill_id=skill.id,
            level=level,
            exercises=build_exercises(vocab, english, language.capitalize(), lesson_id),
            xp_reward=LESSON_COMPLETE_XP,
        )
        self._cache[key] = lesson
        logger.debug("lesson_built", lesson_id=lesson.lesson_id)
        return lesson

    def build_practice_lesson(
        self,
        language_id: str,
        skill_id: str,
        level: int,
        missed_exercises: Sequence[Exercise] = (),
        rng: random.Random | None = None,
    ) -> Lesson:
        """Build a short randomized lesson weighted toward past mistakes.

        Args:
            language_id: Requested language.
            skill_id: Skill to practice.
            level: Skill level whose exercises form the candidate pool.
            missed_exercises: Previously missed exercises, most recent first.
            rng: Random source; a fresh unseeded one when omitted.
        """
        rng = rng or random.Random()
        full = self.build_lesson(language_id, skill_id, level)
        exercises = compose_practice_exercises(full.exercises, missed_exercises, rng)
        return Lesson(
            lesson_id=f"{full.language_id}_{full.skill_id}_practice_{rng.getrandbits(32):08x}",
            language_id=full.language_id,
            skill_id=full.skill_id,
            level=full.level,
            exercises=exercises,
            xp_reward=PRACTICE_XP,
            is_practice=True,
        )

    def next_lesson(
        self, language_id: str, skill_id: str, current_level: int, max_level: int = SKILL_LEVELS
    ) -> Lesson | None:
        """The lesson one level up, or None once the skill is complete."""
        if current_level >= max_level:
            return None
        return self.build_lesson(language_id, skill_id, current_level + 1)

    def lessons_for_skill(self, language_id: str, skill_id: str, levels: int = SKILL_LEVELS) -> list[Lesson]:
        return [self.build_lesson(language_id, skill_id, level) for level in range(1, levels + 1)]
