"""Tests for full lesson generation."""

import pytest

from lingo_engine.content.provider import YamlContentProvider
from lingo_engine.lessons.generator import LessonGenerator
from lingo_engine.models.content import ExerciseType


@pytest.fixture
def content():
    return YamlContentProvider()


@pytest.fixture
def generator(content):
    return LessonGenerator(content)


class TestBuildLesson:
    def test_ten_exercises_all_kinds(self, generator):
        lesson = generator.build_lesson("hindi", "basics_1", 1)
        assert len(lesson.exercises) == 10
        assert lesson.exercise_types == set(ExerciseType)
        assert lesson.xp_reward == 10
        assert lesson.is_practice is False
        assert lesson.lesson_id == "hindi_basics_1_l1"

    @pytest.mark.parametrize("language", ["hindi", "bengali", "telugu", "kannada", "tamil"])
    @pytest.mark.parametrize("skill", ["basics_1", "numbers", "food"])
    def test_answers_come_from_vocabulary(self, generator, content, language, skill):
        lesson = generator.build_lesson(language, skill, 2)
        native = content.get_vocabulary(language, skill, 2)
        english = content.get_english_vocabulary(skill, 2)
        allowed = set(native.words) | set(english.words)

        for exercise in lesson.exercises:
            assert exercise.correct_answer in allowed
            assert set(exercise.options) <= allowed
            assert set(exercise.word_bank) <= allowed
            key = exercise.vocabulary_key
            assert native[key] in exercise.explanation
            assert english[key] in exercise.explanation

    def test_option_exercises_contain_answer(self, generator):
        lesson = generator.build_lesson("tamil", "family", 1)
        for exercise in lesson.exercises:
            if exercise.options:
                assert exercise.correct_answer in exercise.options
            if exercise.word_bank:
                assert exercise.correct_answer in exercise.word_bank

    def test_matching_pairs_follow_vocabulary(self, generator, content):
        lesson = generator.build_lesson("kannada", "basics_2", 3)
        matching = next(ex for ex in lesson.exercises if ex.type == ExerciseType.MATCHING)
        native = content.get_vocabulary("kannada", "basics_2", 3)
        english = content.get_english_vocabulary("basics_2", 3)
        assert [(p.left, p.right) for p in matching.pairs] == list(zip(native.words[:4], english.words[:4]))

    def test_fixed_order(self, generator):
        lesson = generator.build_lesson("hindi", "numbers", 1)
        assert [ex.id for ex in lesson.exercises] == [f"hindi_numbers_l1_ex{i}" for i in range(1, 11)]
        assert [ex.type for ex in lesson.exercises][:6] == [
            ExerciseType.MULTIPLE_CHOICE,
            ExerciseType.TRANSLATION,
            ExerciseType.MULTIPLE_CHOICE,
            ExerciseType.LISTENING,
            ExerciseType.MATCHING,
            ExerciseType.FILL_IN_BLANK,
        ]

    def test_language_name_in_prompt(self, generator):
        lesson = generator.build_lesson("telugu", "basics_1", 1)
        assert "Telugu" in lesson.exercises[0].question

    def test_memoized(self, generator):
        first = generator.build_lesson("hindi", "basics_1", 1)
        assert generator.build_lesson("hindi", "basics_1", 1) is first

    def test_deterministic_across_generators(self, content):
        a = LessonGenerator(content).build_lesson("bengali", "food", 4)
        b = LessonGenerator(content).build_lesson("bengali", "food", 4)
        assert a == b

    def test_unknown_content_falls_back(self, generator):
        lesson = generator.build_lesson("klingon", "warp_drive", 9)
        assert len(lesson.exercises) == 10
        assert lesson.language_id == "hindi"
        assert lesson.skill_id == "basics_1"
        assert lesson.level == 5
        assert lesson.lesson_id == "hindi_basics_1_l5"

    def test_unknown_requests_share_cache_entries(self, generator):
        canonical = generator.build_lesson("hindi", "basics_1", 1)
        for language, skill, level in [("klingon", "basics_1", 1), ("hindi", "nope", 0), ("xx", "yy", -3)]:
            assert generator.build_lesson(language, skill, level) is canonical
        generator.build_lesson("hindi", "basics_1", 99)
        generator.build_lesson("hindi", "basics_1", 500)
        assert len(generator._cache) == 2

    def test_exercise_ids_unique_across_levels(self, generator):
        ids = [ex.id for lesson in generator.lessons_for_skill("hindi", "food") for ex in lesson.exercises]
        assert len(ids) == len(set(ids)) == 50


class TestLessonNavigation:
    def test_next_lesson(self, generator):
        lesson = generator.next_lesson("hindi", "basics_1", 1)
        assert lesson is not None
        assert lesson.level == 2

    def test_no_next_lesson_after_max(self, generator):
        assert generator.next_lesson("hindi", "basics_1", 5) is None

    def test_lessons_for_skill(self, generator):
        lessons = generator.lessons_for_skill("tamil", "numbers")
        assert [lesson.level for lesson in lessons] == [1, 2, 3, 4, 5]
