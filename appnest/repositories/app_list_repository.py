# appnest/repositories/app_list_repository.py
import asyncio
import inspect
import json
from typing import Awaitable, Callable, List

from databases import Database
from sqlalchemy import insert, select, update

from appnest.core.database import database
from appnest.domain.ports import AppListRepository
from appnest.models.db import StoreDB


class SQLAppListRepository(AppListRepository):
    """
    Persisted lists of app ids keyed by name (e.g. "apps").
    Writers go through with_exclusive_access so concurrent read-modify-write
    cycles never lose an update.
    """

    def __init__(self, db: Database = database):
        self.db = db
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> List[str]:
        row = await self.db.fetch_one(select(StoreDB).where(StoreDB.key == key))
        if not row:
            return []
        return json.loads(row["value"])

    async def with_exclusive_access(
        self,
        key: str,
        fn: Callable[[List[str]], List[str] | Awaitable[List[str]]],
    ) -> List[str]:
        async with self._lock:
            async with self.db.transaction():
                row = await self.db.fetch_one(select(StoreDB).where(StoreDB.key == key))
                snapshot = json.loads(row["value"]) if row else []

                replacement = fn(list(snapshot))
                if inspect.isawaitable(replacement):
                    replacement = await replacement

                value = json.dumps(list(replacement))
                if row:
                    await self.db.execute(
                        update(StoreDB).where(StoreDB.key == key).values(value=value)
                    )
                else:
                    await self.db.execute(insert(StoreDB).values(key=key, value=value))

                return list(replacement)
