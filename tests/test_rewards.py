"""Tests for lesson XP rewards."""

import pytest

from lingo_engine.models.content import Lesson
from lingo_engine.progression.rewards import HEARTS_PER_LESSON, calculate_accuracy, lesson_reward


def _lesson(is_practice: bool = False) -> Lesson:
    return Lesson(
        lesson_id="hindi_basics_1_l1",
        language_id="hindi",
        skill_id="basics_1",
        level=1,
        xp_reward=5 if is_practice else 10,
        is_practice=is_practice,
    )


@pytest.mark.parametrize("correct,total,expected", [(0, 0, 0.0), (5, 10, 50.0), (10, 10, 100.0), (12, 10, 100.0)])
def test_calculate_accuracy(correct, total, expected):
    assert calculate_accuracy(correct, total) == expected


def test_perfect_lesson_bonus():
    reward = lesson_reward(_lesson(), 10, 10)
    assert reward.perfect is True
    assert reward.xp_earned == 15
    assert reward.skill_level == 5


def test_imperfect_lesson():
    reward = lesson_reward(_lesson(), 8, 10)
    assert reward.perfect is False
    assert reward.failed is False
    assert reward.xp_earned == 10
    assert reward.accuracy == 80.0
    assert reward.skill_level == 5


def test_crown_scales_with_accuracy():
    assert lesson_reward(_lesson(), 7, 8).skill_level == 5
    assert lesson_reward(_lesson(), 2, 4).skill_level == 3
    assert lesson_reward(_lesson(), 0, 2).skill_level == 1


@pytest.mark.parametrize("correct", [7, 3, 0])
def test_third_mistake_fails_lesson(correct):
    reward = lesson_reward(_lesson(), correct, 10)
    assert reward.failed is True
    assert reward.xp_earned == 0
    assert reward.skill_level == 0
    assert reward.accuracy == pytest.approx(correct * 10)


def test_explicit_mistake_count():
    # unanswered exercises are not wrong answers
    assert lesson_reward(_lesson(), 5, 10, mistakes=2).failed is False
    assert lesson_reward(_lesson(), 9, 10, mistakes=HEARTS_PER_LESSON).failed is True


def test_practice_never_fails():
    reward = lesson_reward(_lesson(is_practice=True), 0, 6)
    assert reward.failed is False
    assert reward.xp_earned == 5


def test_practice_rates():
    assert lesson_reward(_lesson(is_practice=True), 6, 6).xp_earned == 7
    assert lesson_reward(_lesson(is_practice=True), 3, 6).xp_earned == 5


def test_crown_capped_by_skill_levels():
    assert lesson_reward(_lesson(), 10, 10, max_level=3).skill_level == 3


def test_nothing_attempted():
    reward = lesson_reward(_lesson(), 0, 0)
    assert reward.skill_level == 0
    assert reward.perfect is False
