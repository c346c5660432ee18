import asyncio
import copy

import pytest
from unittest.mock import AsyncMock

from appnest.domain.errors import ScriptError
from appnest.domain.ports import ScriptResult
from appnest.services.app import App


class FakeScriptRunner:
    """Records actions in `events`; fails on the actions listed in `failing`."""

    def __init__(self, events, failing=(), stdout="", hooks=None):
        self.events = events
        self.failing = set(failing)
        self.stdout = stdout
        self.hooks = hooks or {}

    async def run(self, action, app_id):
        self.events.append(action)
        if action in self.hooks:
            self.hooks[action]()
        if action in self.failing:
            raise ScriptError(action, app_id, 1, "boom")
        return ScriptResult(stdout=self.stdout)


class InMemoryComposeStore:
    def __init__(self, files=None):
        self.files = files or {}

    async def read(self, path):
        return copy.deepcopy(self.files[str(path)])

    async def write(self, path, descriptor):
        self.files[str(path)] = copy.deepcopy(descriptor)


class InMemoryAppList:
    def __init__(self, apps=()):
        self.data = {"apps": list(apps)}
        self._lock = asyncio.Lock()

    async def get(self, key):
        return list(self.data.get(key, []))

    async def with_exclusive_access(self, key, fn):
        async with self._lock:
            snapshot = list(self.data.get(key, []))
            await asyncio.sleep(0)
            self.data[key] = list(fn(snapshot))
            return self.data[key]


@pytest.fixture
def events():
    return []


@pytest.fixture
def compose():
    return {
        "version": "3.7",
        "services": {
            "web": {"image": "nginx:1.0", "ports": ["8080:80"]},
            "db": {"image": "redis:6", "container_name": "legacy-db"},
            "init": {"build": "."},
        },
    }


@pytest.fixture
def make_app(tmp_path, events, compose):
    def _make(app_id="demo", failing=(), hooks=None, stdout="", apps=("demo",)):
        data_dir = tmp_path / "data"
        compose_store = InMemoryComposeStore()
        app_list = InMemoryAppList(apps)
        engine = AsyncMock()
        host = AsyncMock()
        app = App(
            app_id,
            data_dir=data_dir,
            script_runner=FakeScriptRunner(events, failing, stdout, hooks),
            engine=engine,
            compose_store=compose_store,
            app_list=app_list,
            host=host,
        )
        compose_store.files[str(app.compose_path)] = copy.deepcopy(compose)
        return app
    return _make
