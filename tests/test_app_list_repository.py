import asyncio

import pytest
import pytest_asyncio
from databases import Database

from appnest.core.database import create_tables
from appnest.repositories.app_list_repository import SQLAppListRepository


@pytest_asyncio.fixture
async def repo(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'store.db'}"
    create_tables(url)
    db = Database(url)
    await db.connect()
    yield SQLAppListRepository(db)
    await db.disconnect()


@pytest.mark.asyncio
async def test_get_missing_key_is_empty(repo):
    assert await repo.get("apps") == []


@pytest.mark.asyncio
async def test_exclusive_access_persists_replacement(repo):
    await repo.with_exclusive_access("apps", lambda apps: [*apps, "demo"])
    result = await repo.with_exclusive_access("apps", lambda apps: [*apps, "other"])

    assert result == ["demo", "other"]
    assert await repo.get("apps") == ["demo", "other"]


@pytest.mark.asyncio
async def test_exclusive_access_accepts_async_callbacks(repo):
    async def add(apps):
        await asyncio.sleep(0)
        return [*apps, "demo"]

    assert await repo.with_exclusive_access("apps", add) == ["demo"]


@pytest.mark.asyncio
async def test_concurrent_removals_do_not_lose_updates(repo):
    await repo.with_exclusive_access("apps", lambda apps: ["first", "second", "third"])

    def remover(app_id):
        async def remove(apps):
            # Yield mid-cycle so an unlocked implementation would interleave
            await asyncio.sleep(0.01)
            return [a for a in apps if a != app_id]
        return remove

    await asyncio.gather(
        repo.with_exclusive_access("apps", remover("first")),
        repo.with_exclusive_access("apps", remover("second")),
    )

    assert await repo.get("apps") == ["third"]


@pytest.mark.asyncio
async def test_failed_callback_leaves_list_unchanged(repo):
    await repo.with_exclusive_access("apps", lambda apps: ["demo"])

    def explode(apps):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await repo.with_exclusive_access("apps", explode)

    assert await repo.get("apps") == ["demo"]
