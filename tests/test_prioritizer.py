"""Tests for practice prioritization."""

from datetime import datetime, timedelta, timezone

from lingo_engine.lessons.prioritizer import (
    entry_skill_id,
    rank_skills_needing_practice,
    score_skill,
)
from lingo_engine.models.content import Skill
from lingo_engine.models.progress import SkillProgress

NOW = datetime(2026, 3, 10, 12, 0)

BASICS_1 = Skill(id="basics_1", name="Basics 1", position=1)
BASICS_2 = Skill(id="basics_2", name="Basics 2", required_skills=["basics_1"], position=2)
NUMBERS = Skill(id="numbers", name="Numbers", required_skills=["basics_1"], position=3)
FOOD = Skill(id="food", name="Food", required_skills=["basics_2", "numbers"], position=5)
SKILLS = [BASICS_1, BASICS_2, NUMBERS, FOOD]


def test_entry_skill_is_first_without_prerequisites():
    assert entry_skill_id(SKILLS) == "basics_1"
    assert entry_skill_id([BASICS_2]) is None


class TestScoreSkill:
    def test_untouched_entry_skill(self):
        assert score_skill(BASICS_1, None, NOW, is_entry=True) == 20

    def test_untouched_other_skill(self):
        assert score_skill(NUMBERS, SkillProgress(level=0), NOW) == 10

    def test_started_never_practiced(self):
        assert score_skill(NUMBERS, SkillProgress(level=2), NOW) == 15

    def test_stale_skill(self):
        progress = SkillProgress(level=2, last_practiced=NOW - timedelta(days=10))
        assert score_skill(NUMBERS, progress, NOW) == 18

    def test_stale_bonus_capped(self):
        progress = SkillProgress(level=5, last_practiced=NOW - timedelta(days=100))
        assert score_skill(NUMBERS, progress, NOW) == 15

    def test_low_accuracy(self):
        progress = SkillProgress(level=2, last_practiced=NOW, accuracy=50)
        assert score_skill(NUMBERS, progress, NOW) == 15

    def test_mastered_recent_skill_keeps_minimum(self):
        progress = SkillProgress(level=5, last_practiced=NOW - timedelta(hours=1), accuracy=100)
        assert score_skill(NUMBERS, progress, NOW) == 1

    def test_aware_timestamps_compare_with_naive_now(self):
        # the same instant as NOW - 10 days, written with an Indian offset
        ist = timezone(timedelta(hours=5, minutes=30))
        last = (NOW - timedelta(days=10)).astimezone(ist)
        progress = SkillProgress(level=2, last_practiced=last)
        assert score_skill(NUMBERS, progress, NOW) == 18


class TestRanking:
    def test_new_user_sees_entry_skill_only(self):
        assert rank_skills_needing_practice(SKILLS, {}, NOW) == [BASICS_1]

    def test_none_progress_treated_as_empty(self):
        assert rank_skills_needing_practice(SKILLS, None, NOW) == [BASICS_1]

    def test_new_skill_outranks_mastered_recent_one(self):
        progress = {"basics_1": SkillProgress(level=5, last_practiced=NOW - timedelta(hours=2))}
        ranked = rank_skills_needing_practice(SKILLS, progress, NOW)
        assert ranked.index(BASICS_2) < ranked.index(BASICS_1)
        assert ranked.index(NUMBERS) < ranked.index(BASICS_1)

    def test_locked_skills_excluded(self):
        progress = {"basics_1": SkillProgress(level=1, last_practiced=NOW)}
        ranked = rank_skills_needing_practice(SKILLS, progress, NOW)
        assert FOOD not in ranked

    def test_ties_keep_position_order(self):
        progress = {"basics_1": SkillProgress(level=1, last_practiced=NOW)}
        ranked = rank_skills_needing_practice(SKILLS, progress, NOW)
        assert ranked == [BASICS_1, BASICS_2, NUMBERS]

    def test_stale_skill_rises(self):
        progress = {
            "basics_1": SkillProgress(level=5, last_practiced=NOW),
            "basics_2": SkillProgress(level=3, last_practiced=NOW - timedelta(days=20)),
            "numbers": SkillProgress(level=3, last_practiced=NOW),
        }
        ranked = rank_skills_needing_practice(SKILLS, progress, NOW)
        assert ranked[0] == BASICS_2
        assert ranked[-1] == BASICS_1
