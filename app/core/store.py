from typing import Protocol

from sqlalchemy import delete
from sqlmodel import col
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.enums import StateKind
from app.models.engine_state import EngineState
from app.utils.misc import get_utc_now


class StateStore(Protocol):
    """Per-user persistence of the draw engine's records.

    Payloads are plain JSON documents. Writes become visible to other sessions
    only after ``commit``.
    """

    async def load(self, user_id: int, kind: StateKind) -> dict | None: ...

    async def save(self, user_id: int, kind: StateKind, payload: dict) -> None: ...

    async def delete(self, user_id: int, kind: StateKind | None = None) -> None: ...

    async def commit(self) -> None: ...


class MemoryStateStore:
    def __init__(self) -> None:
        self.records: dict[tuple[int, StateKind], dict] = {}

    async def load(self, user_id: int, kind: StateKind) -> dict | None:
        return self.records.get((user_id, kind))

    async def save(self, user_id: int, kind: StateKind, payload: dict) -> None:
        self.records[user_id, kind] = payload

    async def delete(self, user_id: int, kind: StateKind | None = None) -> None:
        kinds = [kind] if kind is not None else list(StateKind)
        for item in kinds:
            self.records.pop((user_id, item), None)

    async def commit(self) -> None:
        return None


class DatabaseStateStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def load(self, user_id: int, kind: StateKind) -> dict | None:
        record = await self.db.get(EngineState, (user_id, kind))
        return record.payload if record else None

    async def save(self, user_id: int, kind: StateKind, payload: dict) -> None:
        record = await self.db.get(EngineState, (user_id, kind))
        if record:
            record.payload = payload
            record.updated_at = get_utc_now()
        else:
            record = EngineState(user_id=user_id, kind=kind, payload=payload)
        self.db.add(record)

    async def delete(self, user_id: int, kind: StateKind | None = None) -> None:
        statement = delete(EngineState).where(col(EngineState.user_id) == user_id)
        if kind is not None:
            statement = statement.where(col(EngineState.kind) == kind)
        await self.db.execute(statement)

    async def commit(self) -> None:
        await self.db.commit()
