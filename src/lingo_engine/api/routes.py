"""REST API routes exposing lessons, progress and practice ranking."""

import functools

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from lingo_engine.config import get_settings
from lingo_engine.content.provider import ContentProvider, YamlContentProvider
from lingo_engine.errors import PersistenceError, ProgressUpdateFailed
from lingo_engine.lessons.generator import LessonGenerator
from lingo_engine.models.content import ExerciseResult, Lesson, Skill
from lingo_engine.models.progress import (
    LessonOutcome,
    Progress,
    SkillUpdateResult,
    UserProfile,
    XPAwardResult,
)
from lingo_engine.progress.aggregator import ProgressAggregator
from lingo_engine.progression.achievements import locked_achievements, unlocked_achievements
from lingo_engine.progression.leveling import level_for_xp, level_progress_percent
from lingo_engine.progression.unlock import is_unlocked
from lingo_engine.storage.json_store import JsonProfileStore, JsonProgressStore

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


class Services:
    """Collaborators shared by all requests."""

    def __init__(self, content: ContentProvider, profile_store, progress_store, max_recent_mistakes: int = 10):
        self.content = content
        self.generator = LessonGenerator(content)
        self.profile_store = profile_store
        self.progress_store = progress_store
        self.max_recent_mistakes = max_recent_mistakes
        self._aggregators: dict[str, ProgressAggregator] = {}

    def aggregator(self, user_id: str) -> ProgressAggregator:
        # One aggregator per user so its per-language locks are shared
        if user_id not in self._aggregators:
            self._aggregators[user_id] = ProgressAggregator(
                user_id,
                self.profile_store,
                self.progress_store,
                self.content,
                max_recent_mistakes=self.max_recent_mistakes,
            )
        return self._aggregators[user_id]


@functools.lru_cache
def get_services() -> Services:
    settings = get_settings()
    return Services(
        content=YamlContentProvider(
            default_language=settings.default_language,
            default_skill_id=settings.default_skill_id,
        ),
        profile_store=JsonProfileStore(settings.profiles_dir),
        progress_store=JsonProgressStore(settings.languages_dir),
        max_recent_mistakes=settings.max_recent_mistakes,
    )


def _unavailable(e: ProgressUpdateFailed) -> HTTPException:
    return HTTPException(status_code=503, detail=e.reason)


class SkillState(BaseModel):
    skill: Skill
    unlocked: bool
    level: int = 0


class ProgressView(BaseModel):
    progress: Progress
    level_progress: float


class ProfileView(BaseModel):
    profile: UserProfile
    level: int
    level_progress: float
    unlocked_achievements: list[str]
    locked_achievements: list[str]


class AwardXPRequest(BaseModel):
    base_xp: float = 0
    bonus_xp: float = 0


class SkillUpdateRequest(BaseModel):
    level: int = Field(ge=0)
    lesson_id: str


class CompleteLessonRequest(BaseModel):
    lesson: Lesson
    results: list[ExerciseResult]


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/languages/{language_id}/skills")
async def list_skills(
    language_id: str,
    user_id: str | None = None,
    services: Services = Depends(get_services),
) -> list[SkillState]:
    """Skill tree for a language with unlock state for `user_id`."""
    language = services.content.resolve(language_id)
    skills_progress = {}
    if user_id:
        try:
            progress = await services.aggregator(user_id).load_progress(language_id)
        except ProgressUpdateFailed as e:
            raise _unavailable(e)
        skills_progress = progress.skills
    return [
        SkillState(
            skill=skill,
            unlocked=is_unlocked(skill.id, skill.required_skills, skills_progress),
            level=skills_progress[skill.id].level if skill.id in skills_progress else 0,
        )
        for skill in services.content.get_skills(language)
    ]


@router.get("/languages/{language_id}/skills/{skill_id}/lessons/{level}")
async def get_lesson(
    language_id: str, skill_id: str, level: int, services: Services = Depends(get_services)
) -> Lesson:
    return services.generator.build_lesson(language_id, skill_id, level)


@router.get("/users/{user_id}/profile")
async def get_profile(user_id: str, services: Services = Depends(get_services)) -> ProfileView:
    try:
        profile = await services.profile_store.get(user_id)
    except PersistenceError as e:
        logger.error("profile_read_failed", user_id=user_id, error=str(e))
        raise HTTPException(status_code=503, detail=str(e))
    profile = profile or UserProfile(user_id=user_id)
    level = level_for_xp(profile.total_xp)
    return ProfileView(
        profile=profile,
        level=level,
        level_progress=level_progress_percent(profile.total_xp, level),
        unlocked_achievements=[a.id.value for a in unlocked_achievements(profile)],
        locked_achievements=[a.id.value for a in locked_achievements(profile)],
    )


@router.get("/users/{user_id}/languages/{language_id}/progress")
async def get_progress(user_id: str, language_id: str, services: Services = Depends(get_services)) -> ProgressView:
    try:
        progress = await services.aggregator(user_id).load_progress(language_id)
    except ProgressUpdateFailed as e:
        raise _unavailable(e)
    return ProgressView(
        progress=progress,
        level_progress=level_progress_percent(progress.total_xp, progress.level),
    )


@router.post("/users/{user_id}/languages/{language_id}/xp")
async def award_xp(
    user_id: str,
    language_id: str,
    body: AwardXPRequest,
    services: Services = Depends(get_services),
) -> XPAwardResult:
    try:
        return await services.aggregator(user_id).award_xp(language_id, body.base_xp, body.bonus_xp)
    except ProgressUpdateFailed as e:
        raise _unavailable(e)


@router.post("/users/{user_id}/languages/{language_id}/skills/{skill_id}")
async def update_skill(
    user_id: str,
    language_id: str,
    skill_id: str,
    body: SkillUpdateRequest,
    services: Services = Depends(get_services),
) -> SkillUpdateResult:
    try:
        return await services.aggregator(user_id).update_skill_progress(
            language_id, skill_id, body.level, body.lesson_id
        )
    except ProgressUpdateFailed as e:
        raise _unavailable(e)


@router.post("/users/{user_id}/lessons/complete")
async def complete_lesson(
    user_id: str, body: CompleteLessonRequest, services: Services = Depends(get_services)
) -> LessonOutcome:
    try:
        return await services.aggregator(user_id).complete_lesson(body.lesson, body.results)
    except ProgressUpdateFailed as e:
        raise _unavailable(e)


@router.get("/users/{user_id}/languages/{language_id}/practice")
async def practice_skills(user_id: str, language_id: str, services: Services = Depends(get_services)) -> list[Skill]:
    """Unlocked skills ordered by how urgently they need review."""
    try:
        return await services.aggregator(user_id).skills_needing_practice(language_id)
    except ProgressUpdateFailed as e:
        raise _unavailable(e)


@router.post("/users/{user_id}/languages/{language_id}/practice/{skill_id}")
async def practice_lesson(
    user_id: str,
    language_id: str,
    skill_id: str,
    level: int | None = None,
    services: Services = Depends(get_services),
) -> Lesson:
    """Practice lesson built from the skill's recent mistakes."""
    aggregator = services.aggregator(user_id)
    try:
        progress = await aggregator.load_progress(language_id)
        missed = await aggregator.missed_exercises(language_id, skill_id)
    except ProgressUpdateFailed as e:
        raise _unavailable(e)
    if level is None:
        skill_progress = progress.skills.get(skill_id)
        level = max(1, skill_progress.level) if skill_progress else 1
    return services.generator.build_practice_lesson(language_id, skill_id, level, missed)
