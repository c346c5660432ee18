# appnest/services/app.py
import asyncio
import logging
import shutil
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Awaitable, Callable, List

from appnest.domain.app import TRANSITIONS, AppState, UsageRecord, validate_app_id
from appnest.domain.errors import EngineError
from appnest.domain.ports import (
    AppListRepository,
    ComposeStore,
    ContainerEngine,
    HostInventory,
    ScriptRunner,
)
from appnest.services.compose import container_name_for, patch_container_names
from appnest.services.usage import PercentageParser, directory_size

logger = logging.getLogger(__name__)

APPS_KEY = "apps"
MANIFEST_FILE = "umbrel-app.yml"
COMPOSE_FILE = "docker-compose.yml"


def _remove_tree(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)


class App:
    """
    Controller for one installed app.

    Every lifecycle operation sets an in-progress state, runs its steps strictly
    in order and only then moves to the target state. Nothing is rolled back:
    if a step raises, `state` keeps the in-progress value and
    `state_confirmed` stays False until the next successful transition.
    """

    def __init__(
        self,
        app_id: str,
        *,
        data_dir: Path,
        script_runner: ScriptRunner,
        engine: ContainerEngine,
        compose_store: ComposeStore,
        app_list: AppListRepository,
        host: HostInventory,
        disk_usage: Callable[[Path], Awaitable[int]] = directory_size,
        manifest_file: str = MANIFEST_FILE,
    ):
        self.id = validate_app_id(app_id)
        self.data_directory = Path(data_dir) / "app-data" / self.id
        self.state = AppState.UNKNOWN
        self.state_confirmed = False
        self.state_progress = 0  # reserved, not reported yet
        self.skipped_samples = 0

        self.script_runner = script_runner
        self.engine = engine
        self.compose_store = compose_store
        self.app_list = app_list
        self.host = host
        self._disk_usage = disk_usage
        self.manifest_file = manifest_file

    def __repr__(self):
        return f"App(id={self.id!r}, state={self.state.value!r})"

    # -------------------------------
    # Descriptors
    # -------------------------------
    @property
    def compose_path(self) -> Path:
        return self.data_directory / COMPOSE_FILE

    async def read_manifest(self) -> dict[str, Any]:
        return await self.compose_store.read(self.data_directory / self.manifest_file)

    async def read_compose(self) -> dict[str, Any]:
        return await self.compose_store.read(self.compose_path)

    async def write_compose(self, compose: dict[str, Any]) -> None:
        await self.compose_store.write(self.compose_path, compose)

    async def patch_compose_services(self) -> None:
        compose = await self.read_compose()
        await self.write_compose(patch_container_names(self.id, compose))

    def _services(self, compose: dict[str, Any]) -> dict[str, dict]:
        return {name: service or {} for name, service in (compose.get("services") or {}).items()}

    # -------------------------------
    # Lifecycle
    # -------------------------------
    @asynccontextmanager
    async def _transition(self, operation: str):
        transition = TRANSITIONS[operation]
        self.state = transition.in_progress
        self.state_confirmed = False
        try:
            yield
        except Exception as exc:
            logger.error("[%s] %s failed in state %s: %s", operation.upper(), self.id, self.state.value, exc)
            raise
        self.state = transition.target or transition.in_progress
        self.state_confirmed = True

    async def _script(self, action: str):
        return await self.script_runner.run(action, self.id)

    async def install(self) -> bool:
        async with self._transition("install"):
            logger.info("[INSTALL] Installing app %s", self.id)
            await self.patch_compose_services()
            await self._script("install")
        return True

    async def update(self) -> bool:
        async with self._transition("update"):
            logger.info("[UPDATE] Updating app %s", self.id)

            compose = await self.read_compose()
            old_images = [s["image"] for s in self._services(compose).values() if s.get("image")]

            # Container names are normalised between the two update phases
            await self._script("pre-patch-update")
            await self.patch_compose_services()
            await self._script("post-patch-update")

            await self._remove_stale_images(old_images)
        return True

    async def _remove_stale_images(self, images: List[str]) -> None:
        if not images:
            return
        try:
            await self.engine.remove_images(images)
        except EngineError as exc:
            # Ignorable: fails whenever one of the images is still in use
            logger.warning("[UPDATE] Could not remove old images for %s: %s", self.id, exc)

    async def start(self) -> bool:
        async with self._transition("start"):
            logger.info("[START] Starting app %s", self.id)
            await self._script("start")
        return True

    async def stop(self) -> bool:
        async with self._transition("stop"):
            logger.info("[STOP] Stopping app %s", self.id)
            await self._script("stop")
        return True

    async def restart(self) -> bool:
        async with self._transition("restart"):
            logger.info("[RESTART] Restarting app %s", self.id)
            await self._script("stop")
            await self._script("start")
        return True

    async def uninstall(self) -> bool:
        async with self._transition("uninstall"):
            logger.info("[UNINSTALL] Uninstalling app %s", self.id)
            await self._script("stop")
            await asyncio.to_thread(_remove_tree, self.data_directory)
            await self.app_list.with_exclusive_access(
                APPS_KEY,
                lambda apps: [app_id for app_id in apps if app_id != self.id],
            )
        return True

    # -------------------------------
    # Resource usage
    # -------------------------------
    async def get_resource_usage(self) -> List[UsageRecord]:
        compose = await self.read_compose()
        containers = [
            service.get("container_name") or container_name_for(self.id, name)
            for name, service in self._services(compose).items()
        ]
        return await self.engine.stats_snapshot(containers)

    async def get_memory_usage(self, records: List[UsageRecord] | None = None) -> float:
        """
        Approximate bytes used; engine memory percentages are relative to host memory.
        Pass `records` to reuse a snapshot from get_resource_usage().
        """
        if records is None:
            records = await self.get_resource_usage()
        parse = PercentageParser()
        total_percentage = sum(parse(record.mem_perc) for record in records)
        self.skipped_samples += parse.skipped

        total = await self.host.total_memory()
        return total * (total_percentage / 100)

    async def get_cpu_usage(self, records: List[UsageRecord] | None = None) -> float:
        """Summed CPU percentage; exceeds 100 on multi-core hosts."""
        if records is None:
            records = await self.get_resource_usage()
        parse = PercentageParser()
        total_cpu_usage = sum(parse(record.cpu_perc) for record in records)
        self.skipped_samples += parse.skipped
        return total_cpu_usage

    async def get_disk_usage(self) -> int:
        return await self._disk_usage(self.data_directory)

    async def get_logs(self) -> str:
        result = await self._script("logs")
        return result.stdout
