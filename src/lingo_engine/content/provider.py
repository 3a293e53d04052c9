"""Skill trees and vocabulary tables behind a content interface."""

from functools import lru_cache
from pathlib import Path
from typing import Protocol

import structlog
import yaml
from pydantic import ValidationError

from lingo_engine.errors import ContentNotFound
from lingo_engine.models.content import Skill, VocabularySet

logger = structlog.get_logger()

DATA_DIR = Path(__file__).parent / "data"
REFERENCE_LANGUAGE = "english"
DEFAULT_LANGUAGE = "hindi"
DEFAULT_SKILL_ID = "basics_1"


@lru_cache(maxsize=8)
def _load_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


class ContentProvider(Protocol):
    """Source of skills and vocabulary for the lesson engine."""

    def languages(self) -> list[str]: ...

    def resolve(self, language_id: str) -> str: ...

    def get_skills(self, language_id: str) -> list[Skill]: ...

    def get_skill(self, language_id: str, skill_id: str) -> Skill: ...

    def get_vocabulary(self, language_id: str, skill_id: str, level: int) -> VocabularySet: ...

    def get_english_vocabulary(self, skill_id: str, level: int) -> VocabularySet: ...


class YamlContentProvider:
    """Content read from the YAML tables shipped with the package.

    Unknown languages, skills and levels never fail: they resolve to the
    default language, the default skill and level 1 respectively.

    Args:
        data_dir: Directory holding ``skills.yaml`` and ``vocabulary.yaml``.
        default_language: Language used when a requested one is unknown.
        default_skill_id: Skill used when a requested one is unknown.
    """

    def __init__(
        self,
        data_dir: Path = DATA_DIR,
        default_language: str = DEFAULT_LANGUAGE,
        default_skill_id: str = DEFAULT_SKILL_ID,
    ):
        self.data_dir = data_dir
        self.default_language = default_language
        self.default_skill_id = default_skill_id

    @property
    def _skills_data(self) -> dict:
        return _load_yaml(self.data_dir / "skills.yaml")

    @property
    def _vocabulary_data(self) -> dict:
        return _load_yaml(self.data_dir / "vocabulary.yaml").get("skills", {}) or {}

    def languages(self) -> list[str]:
        return list(self._skills_data.get("languages", []) or [])

    def resolve(self, language_id: str) -> str:
        """Map a requested language onto one that has content."""
        if language_id in self.languages() or language_id == REFERENCE_LANGUAGE:
            return language_id
        logger.debug("language_fallback", requested=language_id, effective=self.default_language)
        return self.default_language

    def get_skills(self, language_id: str) -> list[Skill]:
        """Skills sorted by position. Malformed entries are skipped."""
        skills = []
        for raw in self._skills_data.get("skills", []) or []:
            try:
                skills.append(Skill.model_validate(raw))
            except ValidationError:
                logger.warning("skill_entry_invalid", language=language_id, entry=str(raw)[:80])
        return sorted(skills, key=lambda s: s.position)

    def get_skill(self, language_id: str, skill_id: str) -> Skill:
        skills = {s.id: s for s in self.get_skills(language_id)}
        if skill_id in skills:
            return skills[skill_id]
        logger.debug("skill_fallback", requested=skill_id, effective=self.default_skill_id)
        if self.default_skill_id in skills:
            return skills[self.default_skill_id]
        return Skill(id=self.default_skill_id, name=self.default_skill_id)

    def _lookup(self, skill_id: str, level: int, language_id: str) -> VocabularySet:
        try:
            entry = self._vocabulary_data[skill_id][level][language_id]
            return VocabularySet.model_validate(entry)
        except (KeyError, TypeError, ValidationError) as e:
            raise ContentNotFound(f"{language_id}/{skill_id}/{level}") from e

    def get_vocabulary(self, language_id: str, skill_id: str, level: int) -> VocabularySet:
        """Vocabulary for a skill level, falling back to default content."""
        language = self.resolve(language_id)
        candidates = [
            (skill_id, level, language),
            (skill_id, 1, language),
            (skill_id, level, self.default_language),
            (skill_id, 1, self.default_language),
            (self.default_skill_id, 1, language),
            (self.default_skill_id, 1, self.default_language),
        ]
        for candidate in candidates:
            try:
                vocabulary = self._lookup(*candidate)
            except ContentNotFound:
                continue
            if candidate != (skill_id, level, language):
                logger.debug(
                    "vocabulary_fallback",
                    requested=f"{language_id}/{skill_id}/{level}",
                    effective="/".join(str(part) for part in (candidate[2], candidate[0], candidate[1])),
                )
            return vocabulary
        raise ContentNotFound(f"no vocabulary available for {language_id}/{skill_id}/{level}")

    def get_english_vocabulary(self, skill_id: str, level: int) -> VocabularySet:
        """Reference-language vocabulary with the same shape as `get_vocabulary`."""
        return self.get_vocabulary(REFERENCE_LANGUAGE, skill_id, level)
