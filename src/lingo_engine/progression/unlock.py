"""Skill prerequisite gate."""

from collections.abc import Mapping, Sequence

from lingo_engine.models.progress import SkillProgress


def is_unlocked(
    skill_id: str,
    required_skills: Sequence[str] | None,
    skills_progress: Mapping[str, SkillProgress] | None,
) -> bool:
    """Return whether `skill_id` is accessible.

    Skills without prerequisites are always open. Otherwise every required
    skill must have at least one crown; missing entries count as unmet.
    """
    if not required_skills:
        return True
    progress = skills_progress or {}
    for required in required_skills:
        entry = progress.get(required)
        if entry is None or entry.level < 1:
            return False
    return True
