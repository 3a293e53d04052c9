"""Per-user progress bookkeeping: XP, streaks, skill crowns and achievements."""

import asyncio
import math
from collections import defaultdict
from collections.abc import Callable, Sequence
from datetime import datetime

import structlog

from lingo_engine.content.provider import ContentProvider
from lingo_engine.errors import ContentNotFound, PersistenceError, ProgressUpdateFailed
from lingo_engine.lessons.prioritizer import rank_skills_needing_practice
from lingo_engine.models.content import Exercise, ExerciseResult, Lesson, Skill
from lingo_engine.models.progress import (
    LessonOutcome,
    Progress,
    SkillProgress,
    SkillUpdateResult,
    UserProfile,
    XPAwardResult,
)
from lingo_engine.progression.achievements import check_achievements
from lingo_engine.progression.leveling import level_for_xp
from lingo_engine.progression.rewards import lesson_reward
from lingo_engine.progression.streak import evaluate_streak
from lingo_engine.progression.unlock import is_unlocked
from lingo_engine.storage.base import ProfileStore, ProgressStore

logger = structlog.get_logger()

DEFAULT_MAX_RECENT_MISTAKES = 10


def _clamp_xp(value: float) -> int:
    """Non-negative whole XP; NaN and garbage count as 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or math.isinf(number) or number <= 0:
        return 0
    return int(number)


def _dump_skills(skills: dict[str, SkillProgress]) -> dict[str, dict]:
    return {skill_id: skill.model_dump() for skill_id, skill in skills.items()}


class ProgressAggregator:
    """Owns one learner's progress records across languages.

    Every mutation re-reads the stored record before writing it back, and
    mutations on the same language are serialized by a per-language lock.
    The progress write is the primary guarantee; profile reconciliation is
    best-effort and reported through ``profile_changed``.

    Args:
        user_id: Learner whose records are managed.
        profile_store: Profile persistence.
        progress_store: Per-language progress persistence.
        content: Skill and vocabulary source.
        clock: Returns the current local time.
        max_recent_mistakes: Bound on remembered missed exercises per skill.
    """

    def __init__(
        self,
        user_id: str,
        profile_store: ProfileStore,
        progress_store: ProgressStore,
        content: ContentProvider,
        clock: Callable[[], datetime] = datetime.now,
        max_recent_mistakes: int = DEFAULT_MAX_RECENT_MISTAKES,
    ):
        self.user_id = user_id
        self.profile_store = profile_store
        self.progress_store = progress_store
        self.content = content
        self.clock = clock
        self.max_recent_mistakes = max_recent_mistakes
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    # -- record access -------------------------------------------------

    async def _snapshot(self, language_id: str) -> Progress:
        """Latest stored record, or an unsaved fresh one."""
        try:
            progress = await self.progress_store.get(self.user_id, language_id)
        except PersistenceError as e:
            logger.error("progress_read_failed", user_id=self.user_id, language=language_id, error=str(e))
            raise ProgressUpdateFailed(f"Could not load {language_id} progress: {e}") from e
        if progress is None:
            return Progress(user_id=self.user_id, language_id=language_id)
        return progress

    async def _read(self, language_id: str) -> Progress:
        """Latest stored record, created and saved on first access."""
        try:
            progress = await self.progress_store.get(self.user_id, language_id)
            if progress is None:
                progress = Progress(user_id=self.user_id, language_id=language_id)
                await self.progress_store.upsert(self.user_id, language_id, progress.model_dump())
                logger.info("progress_created", user_id=self.user_id, language=language_id)
        except PersistenceError as e:
            logger.error("progress_read_failed", user_id=self.user_id, language=language_id, error=str(e))
            raise ProgressUpdateFailed(f"Could not load {language_id} progress: {e}") from e
        return progress

    async def _write(self, language_id: str, fields: dict, action: str) -> None:
        try:
            await self.progress_store.upsert(self.user_id, language_id, fields)
        except PersistenceError as e:
            logger.error(
                "progress_write_failed",
                user_id=self.user_id,
                language=language_id,
                action=action,
                error=str(e),
            )
            raise ProgressUpdateFailed(f"Could not {action}: {e}") from e

    async def load_progress(self, language_id: str) -> Progress:
        """Progress for a language, creating it on first access."""
        async with self._locks[language_id]:
            return await self._read(language_id)

    # -- XP and streaks ------------------------------------------------

    def _apply_xp(
        self, progress: Progress, base_xp: float, bonus_xp: float, now: datetime
    ) -> tuple[dict, XPAwardResult]:
        """Fields and result of adding XP to `progress`; nothing is saved."""
        gained = _clamp_xp(base_xp) + _clamp_xp(bonus_xp)
        total_xp = progress.total_xp + gained
        new_level = level_for_xp(total_xp)
        streak = evaluate_streak(
            progress.last_active_date,
            now,
            progress.current_streak,
            progress.longest_streak,
        )
        fields = {
            "total_xp": total_xp,
            "level": new_level,
            "current_streak": streak.current_streak,
            "longest_streak": streak.longest_streak,
            "last_active_date": streak.last_active_date,
        }
        return fields, XPAwardResult(
            leveled_up=new_level > progress.level,
            new_level=new_level,
            total_xp=total_xp,
            current_streak=streak.current_streak,
            longest_streak=streak.longest_streak,
        )

    def _log_award(self, language_id: str, previous: Progress, result: XPAwardResult) -> None:
        logger.info(
            "xp_awarded",
            user_id=self.user_id,
            language=language_id,
            gained=result.total_xp - previous.total_xp,
            total_xp=result.total_xp,
            level=result.new_level,
            leveled_up=result.leveled_up,
            streak=result.current_streak,
        )

    async def award_xp(self, language_id: str, base_xp: float, bonus_xp: float = 0) -> XPAwardResult:
        """Add XP to a language, advance the streak and refresh the profile.

        Negative or malformed XP amounts contribute nothing.

        Raises:
            ProgressUpdateFailed: The progress record could not be saved.
        """
        async with self._locks[language_id]:
            progress = await self._read(language_id)
            fields, result = self._apply_xp(progress, base_xp, bonus_xp, self.clock())
            await self._write(language_id, fields, "award XP")
            self._log_award(language_id, progress, result)
        changed, _ = await self._reconcile_profile(language_id)
        return result.model_copy(update={"profile_changed": changed})

    # -- skills --------------------------------------------------------

    def _max_level(self, language_id: str, skill_id: str) -> int:
        return self.content.get_skill(self.content.resolve(language_id), skill_id).levels

    def _apply_skill(
        self,
        progress: Progress,
        language_id: str,
        skill_id: str,
        level: int,
        lesson_id: str,
        now: datetime,
        accuracy: float | None = None,
        results: Sequence[ExerciseResult] = (),
        learned_words: Sequence[str] = (),
    ) -> tuple[dict, SkillProgress]:
        """Fields and new state of a skill after a lesson; nothing is saved."""
        current = progress.skills.get(skill_id) or SkillProgress()

        requested = max(0, min(int(level), self._max_level(language_id, skill_id)))
        skill = current.model_copy(deep=True)
        skill.level = max(current.level, requested)
        if lesson_id and lesson_id not in skill.completed_lessons:
            skill.completed_lessons.append(lesson_id)
        skill.last_practiced = now
        if accuracy is not None:
            skill.accuracy = round(accuracy, 1)
        if results:
            skill.recent_mistakes = self._merge_mistakes(skill.recent_mistakes, results)

        fields: dict = {"skills": _dump_skills({**progress.skills, skill_id: skill})}
        if learned_words:
            fields["vocabulary"] = list(dict.fromkeys([*progress.vocabulary, *learned_words]))
        return fields, skill

    def _apply_mistakes(
        self, progress: Progress, skill_id: str, results: Sequence[ExerciseResult]
    ) -> tuple[dict, SkillProgress]:
        current = progress.skills.get(skill_id) or SkillProgress()
        skill = current.model_copy(deep=True)
        skill.recent_mistakes = self._merge_mistakes(skill.recent_mistakes, results)
        return {"skills": _dump_skills({**progress.skills, skill_id: skill})}, skill

    def _merge_mistakes(self, previous: list[Exercise], results: Sequence[ExerciseResult]) -> list[Exercise]:
        """Newest misses first; exercises answered correctly drop out."""
        missed = [r.exercise for r in reversed(results) if not r.correct]
        missed_ids = {ex.id for ex in missed}
        cleared = {r.exercise.id for r in results if r.correct} - missed_ids
        merged: dict[str, Exercise] = {}
        for exercise in [*missed, *previous]:
            if exercise.id not in cleared:
                merged.setdefault(exercise.id, exercise)
        return list(merged.values())[: self.max_recent_mistakes]

    async def update_skill_progress(
        self, language_id: str, skill_id: str, level: int, lesson_id: str
    ) -> SkillUpdateResult:
        """Raise a skill's crown level (never lowering it) and log the lesson.

        Raises:
            ProgressUpdateFailed: The progress record could not be saved.
        """
        async with self._locks[language_id]:
            progress = await self._read(language_id)
            fields, skill = self._apply_skill(progress, language_id, skill_id, level, lesson_id, self.clock())
            await self._write(language_id, fields, "update skill progress")
        logger.info(
            "skill_progress_updated",
            user_id=self.user_id,
            language=language_id,
            skill=skill_id,
            level=skill.level,
            lesson_id=lesson_id,
        )
        return SkillUpdateResult(success=True, skill_id=skill_id, skill_progress=skill)

    async def is_skill_unlocked(
        self, language_id: str, skill_id: str, required_skills: Sequence[str] | None = None
    ) -> bool:
        """Check prerequisites against the current progress snapshot.

        When `required_skills` is omitted the skill's content definition
        supplies them.
        """
        if required_skills is None:
            required_skills = self.content.get_skill(self.content.resolve(language_id), skill_id).required_skills
        progress = await self._snapshot(language_id)
        return is_unlocked(skill_id, required_skills, progress.skills)

    async def missed_exercises(self, language_id: str, skill_id: str) -> list[Exercise]:
        """Recently missed exercises for a skill, most recent first."""
        progress = await self._snapshot(language_id)
        skill = progress.skills.get(skill_id)
        return list(skill.recent_mistakes) if skill else []

    async def skills_needing_practice(self, language_id: str) -> list[Skill]:
        progress = await self._snapshot(language_id)
        skills = self.content.get_skills(self.content.resolve(language_id))
        return rank_skills_needing_practice(skills, progress.skills, now=self.clock())

    # -- lessons -------------------------------------------------------

    def _lesson_words(self, lesson: Lesson) -> list[str]:
        try:
            return self.content.get_vocabulary(lesson.language_id, lesson.skill_id, lesson.level).words
        except ContentNotFound:
            return []

    async def complete_lesson(self, lesson: Lesson, results: Sequence[ExerciseResult]) -> LessonOutcome:
        """Apply a finished lesson: XP, streak, crown, mistakes, vocabulary, achievements.

        XP, streak, crown, mistakes and vocabulary are saved in one write, so
        a failed save leaves the record as it was. A full lesson that ran
        out of hearts only records its mistakes.

        Args:
            lesson: The lesson that was played.
            results: One result per attempted exercise, in answer order.

        Raises:
            ProgressUpdateFailed: The progress record could not be saved.
        """
        language_id = lesson.language_id
        total = len(results) or len(lesson.exercises)
        correct = sum(1 for r in results if r.correct)
        reward = lesson_reward(
            lesson,
            correct,
            total,
            max_level=self._max_level(language_id, lesson.skill_id),
            mistakes=sum(1 for r in results if not r.correct),
        )

        async with self._locks[language_id]:
            progress = await self._read(language_id)
            if reward.failed:
                fields, skill = self._apply_mistakes(progress, lesson.skill_id, results)
                award = XPAwardResult(
                    leveled_up=False,
                    new_level=progress.level,
                    total_xp=progress.total_xp,
                    current_streak=progress.current_streak,
                    longest_streak=progress.longest_streak,
                )
            else:
                now = self.clock()
                fields, award = self._apply_xp(progress, reward.base_xp, reward.bonus_xp, now)
                skill_fields, skill = self._apply_skill(
                    progress,
                    language_id,
                    lesson.skill_id,
                    reward.skill_level,
                    lesson.lesson_id,
                    now,
                    accuracy=reward.accuracy,
                    results=results,
                    learned_words=self._lesson_words(lesson),
                )
                fields.update(skill_fields)
            await self._write(language_id, fields, "complete lesson")
            if not reward.failed:
                self._log_award(language_id, progress, award)

        if reward.failed:
            changed, achievements = False, []
        else:
            changed, achievements = await self._reconcile_profile(
                language_id, lesson_completed=True, perfect=reward.perfect
            )
        logger.info(
            "lesson_completed",
            user_id=self.user_id,
            lesson_id=lesson.lesson_id,
            accuracy=round(reward.accuracy, 1),
            xp=reward.xp_earned,
            failed=reward.failed,
            achievements=achievements,
        )
        return LessonOutcome(
            lesson_id=lesson.lesson_id,
            skill_id=lesson.skill_id,
            correct=correct,
            total=total,
            accuracy=reward.accuracy,
            xp_earned=reward.xp_earned,
            leveled_up=award.leveled_up,
            new_level=award.new_level,
            total_xp=award.total_xp,
            current_streak=award.current_streak,
            skill_level=skill.level,
            failed=reward.failed,
            new_achievements=achievements,
            incorrect_exercises=[r.exercise for r in results if not r.correct],
            profile_changed=changed,
        )

    # -- profile aggregates --------------------------------------------

    async def _known_progress(self, profile: UserProfile | None, language_id: str | None) -> list[Progress]:
        languages = [*self.content.languages(), *(profile.languages if profile else [])]
        if language_id:
            languages.append(language_id)
        records = []
        for language in dict.fromkeys(languages):
            progress = await self.progress_store.get(self.user_id, language)
            if progress is not None:
                records.append(progress)
        return records

    async def get_total_xp(self) -> int:
        """XP summed over every language with a progress record."""
        try:
            profile = await self.profile_store.get(self.user_id)
            records = await self._known_progress(profile, None)
        except PersistenceError as e:
            raise ProgressUpdateFailed(f"Could not total XP: {e}") from e
        return sum(p.total_xp for p in records)

    async def _reconcile_profile(
        self,
        language_id: str | None = None,
        lesson_completed: bool = False,
        perfect: bool = False,
    ) -> tuple[bool, list[str]]:
        """Recompute profile aggregates from progress records.

        Returns whether the profile was saved and any newly earned
        achievements. Failures are logged and never raised.
        """
        try:
            profile = await self.profile_store.get(self.user_id)
            records = await self._known_progress(profile, language_id)
            base = profile or UserProfile(user_id=self.user_id)

            current = max((p.current_streak for p in records), default=0)
            longest = max([base.longest_streak, current, *(p.longest_streak for p in records)])
            updated = base.model_copy(update={
                "total_xp": sum(p.total_xp for p in records),
                "current_streak": current,
                "longest_streak": longest,
                "languages": list(dict.fromkeys([*base.languages, *(p.language_id for p in records)])),
                "perfect_lessons": base.perfect_lessons + (1 if perfect else 0),
            })

            earned: list[str] = []
            if lesson_completed:
                vocabulary_count = sum(len(p.vocabulary) for p in records)
                earned = check_achievements(updated, self.clock(), True, vocabulary_count)

            await self.profile_store.upsert(self.user_id, {
                "total_xp": updated.total_xp,
                "current_streak": updated.current_streak,
                "longest_streak": updated.longest_streak,
                "languages": updated.languages,
                "perfect_lessons": updated.perfect_lessons,
                "achievements": list(dict.fromkeys([*base.achievements, *earned])),
            })
            return True, earned
        except Exception as e:
            logger.error("profile_reconcile_failed", user_id=self.user_id, error=str(e))
            return False, []
