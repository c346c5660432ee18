# appnest/services/app_service.py
import asyncio
import logging
from pathlib import Path
from typing import Dict, List

from appnest.core.config import Settings
from appnest.domain.errors import AppNotFoundError
from appnest.domain.ports import (
    AppListRepository,
    ComposeStore,
    ContainerEngine,
    HostInventory,
    ScriptRunner,
)
from appnest.services.app import APPS_KEY, App

logger = logging.getLogger(__name__)


class AppService:
    """Hands out one App controller per id and tracks the installed list."""

    def __init__(
        self,
        app_list: AppListRepository,
        script_runner: ScriptRunner,
        engine: ContainerEngine,
        compose_store: ComposeStore,
        host: HostInventory,
        settings: Settings | None = None,
    ):
        self.settings = settings or Settings()
        self.app_list = app_list
        self.script_runner = script_runner
        self.engine = engine
        self.compose_store = compose_store
        self.host = host
        self._apps: Dict[str, App] = {}
        self._lock = asyncio.Lock()

    @property
    def data_dir(self) -> Path:
        return self.settings.DATA_DIR

    def _new_app(self, app_id: str) -> App:
        return App(
            app_id,
            data_dir=self.data_dir,
            script_runner=self.script_runner,
            engine=self.engine,
            compose_store=self.compose_store,
            app_list=self.app_list,
            host=self.host,
            manifest_file=self.settings.MANIFEST_FILE,
        )

    async def get_app(self, app_id: str) -> App:
        """Controller for an installed app; raises AppNotFoundError otherwise."""
        async with self._lock:
            app = self._apps.get(app_id)
        if app:
            return app

        if app_id not in await self.app_list.get(APPS_KEY):
            # Validate first so a malformed id reports as such
            self._new_app(app_id)
            raise AppNotFoundError(app_id)

        async with self._lock:
            return self._apps.setdefault(app_id, self._new_app(app_id))

    async def list_apps(self) -> List[App]:
        return [await self.get_app(app_id) for app_id in await self.app_list.get(APPS_KEY)]

    # -------------------------------
    # Lifecycle
    # -------------------------------
    async def install(self, app_id: str) -> App:
        """Install an app whose files are already in its data directory."""
        async with self._lock:
            app = self._apps.get(app_id) or self._new_app(app_id)
            self._apps[app_id] = app

        await app.install()
        await self.app_list.with_exclusive_access(
            APPS_KEY,
            lambda apps: apps if app_id in apps else [*apps, app_id],
        )
        return app

    async def uninstall(self, app_id: str) -> App:
        app = await self.get_app(app_id)
        await app.uninstall()
        async with self._lock:
            self._apps.pop(app_id, None)
        logger.info("[UNINSTALL] %s removed", app_id)
        return app
