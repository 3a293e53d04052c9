"""Persistence interfaces consumed by the progress aggregator."""

from datetime import datetime
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from lingo_engine.errors import PersistenceError
from lingo_engine.models.progress import Progress, UserProfile

ModelT = TypeVar("ModelT", bound=BaseModel)


class ProfileStore(Protocol):
    async def get(self, user_id: str) -> UserProfile | None: ...

    async def upsert(self, user_id: str, fields: dict[str, Any]) -> None: ...


class ProgressStore(Protocol):
    async def get(self, user_id: str, language_id: str) -> Progress | None: ...

    async def upsert(self, user_id: str, language_id: str, fields: dict[str, Any]) -> None: ...


def merge_record(
    model_cls: type[ModelT],
    existing: dict[str, Any] | None,
    keys: dict[str, Any],
    fields: dict[str, Any],
) -> ModelT:
    """Shallow-merge `fields` over a stored record and validate the result.

    Args:
        model_cls: Record model.
        existing: Stored record data, or None when creating.
        keys: Identity fields that always win over `fields`.
        fields: Partial update.

    Raises:
        PersistenceError: The merged record is not valid.
    """
    data = dict(existing or {})
    data.update(fields)
    data.update(keys)
    if "updated_at" in model_cls.model_fields:
        data["updated_at"] = datetime.now()
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        raise PersistenceError(f"invalid {model_cls.__name__} update: {e}") from e
