"""Rank skills by how urgently they need review."""

from collections.abc import Mapping, Sequence
from datetime import datetime

from lingo_engine.models.content import Skill
from lingo_engine.models.progress import SkillProgress
from lingo_engine.progression.unlock import is_unlocked

NEW_SKILL_PRIORITY = 10
ENTRY_SKILL_PRIORITY = 20
BELOW_MAX_LEVEL_BONUS = 10
STALE_AFTER_DAYS = 7
STALE_BASE_BONUS = 5
STALE_MAX_EXTRA = 10
NEVER_PRACTICED_BONUS = 5
LOW_ACCURACY_THRESHOLD = 70
LOW_ACCURACY_BASE = 15


def entry_skill_id(skills: Sequence[Skill]) -> str | None:
    """First skill by position with no prerequisites."""
    for skill in sorted(skills, key=lambda s: s.position):
        if not skill.required_skills:
            return skill.id
    return None


def score_skill(
    skill: Skill,
    progress: SkillProgress | None,
    now: datetime,
    is_entry: bool = False,
) -> float:
    """Review priority for one unlocked skill (higher means more urgent)."""
    if progress is None or progress.level == 0:
        return ENTRY_SKILL_PRIORITY if is_entry else NEW_SKILL_PRIORITY

    priority = 0.0
    if progress.level < skill.levels:
        priority += BELOW_MAX_LEVEL_BONUS

    if progress.last_practiced is not None:
        last = progress.last_practiced
        if last.tzinfo is not None and now.tzinfo is None:
            last = last.astimezone().replace(tzinfo=None)
        elif last.tzinfo is None and now.tzinfo is not None:
            last = last.replace(tzinfo=now.tzinfo)
        days_since = (now - last).total_seconds() / 86400
        if days_since > STALE_AFTER_DAYS:
            priority += STALE_BASE_BONUS + min(STALE_MAX_EXTRA, days_since - STALE_AFTER_DAYS)
    else:
        priority += NEVER_PRACTICED_BONUS

    # accuracy is optional; absent means no contribution
    if progress.accuracy is not None and progress.accuracy < LOW_ACCURACY_THRESHOLD:
        priority += LOW_ACCURACY_BASE - progress.accuracy / 5

    if priority <= 0:
        priority = 1
    return priority


def rank_skills_needing_practice(
    skills: Sequence[Skill],
    skills_progress: Mapping[str, SkillProgress] | None,
    now: datetime | None = None,
) -> list[Skill]:
    """Unlocked skills ordered by review priority, highest first.

    Locked skills are left out. Ties keep skill position order.
    """
    now = now or datetime.now()
    progress = skills_progress or {}
    entry = entry_skill_id(skills)

    scored: list[tuple[float, Skill]] = []
    for skill in skills:
        if not is_unlocked(skill.id, skill.required_skills, progress):
            continue
        priority = score_skill(skill, progress.get(skill.id), now, is_entry=skill.id == entry)
        if priority > 0:
            scored.append((priority, skill))

    scored.sort(key=lambda item: (-item[0], item[1].position))
    return [skill for _, skill in scored]
