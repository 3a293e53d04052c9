"""In-memory stores for preview mode and tests."""

from typing import Any

from lingo_engine.models.progress import Progress, UserProfile
from lingo_engine.storage.base import merge_record


class MemoryProfileStore:
    def __init__(self) -> None:
        self._records: dict[str, UserProfile] = {}

    async def get(self, user_id: str) -> UserProfile | None:
        record = self._records.get(user_id)
        return record.model_copy(deep=True) if record is not None else None

    async def upsert(self, user_id: str, fields: dict[str, Any]) -> None:
        existing = self._records.get(user_id)
        self._records[user_id] = merge_record(
            UserProfile,
            existing.model_dump() if existing is not None else None,
            {"user_id": user_id},
            fields,
        )


class MemoryProgressStore:
    def __init__(self) -> None:
        self._records: dict[tuple[str, str], Progress] = {}

    async def get(self, user_id: str, language_id: str) -> Progress | None:
        record = self._records.get((user_id, language_id))
        return record.model_copy(deep=True) if record is not None else None

    async def upsert(self, user_id: str, language_id: str, fields: dict[str, Any]) -> None:
        existing = self._records.get((user_id, language_id))
        self._records[(user_id, language_id)] = merge_record(
            Progress,
            existing.model_dump() if existing is not None else None,
            {"user_id": user_id, "language_id": language_id},
            fields,
        )
