"""Profile and progress persistence (JSON + fcntl.flock + atomic write)."""

import asyncio
import fcntl
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from lingo_engine.errors import PersistenceError
from lingo_engine.models.progress import Progress, UserProfile
from lingo_engine.storage.base import merge_record

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


def _safe_name(value: str) -> str:
    name = _UNSAFE.sub("_", value)
    if name in ("", ".", ".."):
        raise PersistenceError(f"invalid record key: {value!r}")
    return name


def _read_json(path: Path) -> dict | None:
    if not path.exists():
        return None
    with open(path, encoding="utf-8") as f:
        fcntl.flock(f, fcntl.LOCK_SH)
        data = json.load(f)
        fcntl.flock(f, fcntl.LOCK_UN)
    return data


def _write_json(path: Path, data: dict) -> None:
    tmp = tempfile.NamedTemporaryFile(
        "w", dir=path.parent, delete=False, suffix=".json", encoding="utf-8"
    )
    try:
        with tmp:
            json.dump(data, tmp, ensure_ascii=False)
        os.replace(tmp.name, path)
    except Exception:
        Path(tmp.name).unlink(missing_ok=True)
        raise


def _upsert_json(path: Path, update) -> None:
    """Read-modify-write `path` under an exclusive lock file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lock_path = path.with_suffix(".lock")
    with open(lock_path, "w") as lock_file:
        fcntl.flock(lock_file, fcntl.LOCK_EX)
        record = update(_read_json(path))
        _write_json(path, record.model_dump(mode="json"))


class JsonProfileStore:
    """One JSON file per user profile.

    Args:
        profiles_dir: Directory holding the profile files.
    """

    def __init__(self, profiles_dir: Path):
        self.profiles_dir = Path(profiles_dir)

    def get_profile_path(self, user_id: str) -> Path:
        return self.profiles_dir / f"{_safe_name(user_id)}.json"

    def _get(self, user_id: str) -> UserProfile | None:
        data = _read_json(self.get_profile_path(user_id))
        if data is None:
            return None
        return UserProfile(**data)

    def _upsert(self, user_id: str, fields: dict[str, Any]) -> None:
        _upsert_json(
            self.get_profile_path(user_id),
            lambda existing: merge_record(UserProfile, existing, {"user_id": user_id}, fields),
        )

    async def get(self, user_id: str) -> UserProfile | None:
        try:
            return await asyncio.to_thread(self._get, user_id)
        except (OSError, ValueError, ValidationError) as e:
            raise PersistenceError(f"could not read profile {user_id}: {e}") from e

    async def upsert(self, user_id: str, fields: dict[str, Any]) -> None:
        try:
            await asyncio.to_thread(self._upsert, user_id, fields)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"could not write profile {user_id}: {e}") from e


class JsonProgressStore:
    """One JSON file per (user, language) progress record.

    Args:
        languages_dir: Root directory; each user gets a subdirectory.
    """

    def __init__(self, languages_dir: Path):
        self.languages_dir = Path(languages_dir)

    def get_progress_path(self, user_id: str, language_id: str) -> Path:
        return self.languages_dir / _safe_name(user_id) / f"{_safe_name(language_id)}.json"

    def _get(self, user_id: str, language_id: str) -> Progress | None:
        data = _read_json(self.get_progress_path(user_id, language_id))
        if data is None:
            return None
        return Progress(**data)

    def _upsert(self, user_id: str, language_id: str, fields: dict[str, Any]) -> None:
        keys = {"user_id": user_id, "language_id": language_id}
        _upsert_json(
            self.get_progress_path(user_id, language_id),
            lambda existing: merge_record(Progress, existing, keys, fields),
        )

    async def get(self, user_id: str, language_id: str) -> Progress | None:
        try:
            return await asyncio.to_thread(self._get, user_id, language_id)
        except (OSError, ValueError, ValidationError) as e:
            raise PersistenceError(f"could not read progress {user_id}/{language_id}: {e}") from e

    async def upsert(self, user_id: str, language_id: str, fields: dict[str, Any]) -> None:
        try:
            await asyncio.to_thread(self._upsert, user_id, language_id, fields)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"could not write progress {user_id}/{language_id}: {e}") from e
