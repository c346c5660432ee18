from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Protocol

from appnest.domain.app import UsageRecord


@dataclass
class ScriptResult:
    stdout: str
    exit_code: int = 0


class ScriptRunner(Protocol):
    async def run(self, action: str, app_id: str) -> ScriptResult:
        """Run an app script action. Raises ScriptError on a non-zero exit."""
        ...


class ContainerEngine(Protocol):
    # -------------------------------
    # Images
    # -------------------------------
    async def remove_images(self, image_refs: List[str]) -> None:
        """Remove images by reference. Raises EngineError if any removal failed."""
        ...

    # -------------------------------
    # Containers
    # -------------------------------
    async def stats_snapshot(self, container_names: List[str]) -> List[UsageRecord]:
        """One-shot (non-streaming) usage stats for the named containers."""
        ...


class ComposeStore(Protocol):
    async def read(self, path: Path) -> dict[str, Any]: ...

    async def write(self, path: Path, descriptor: dict[str, Any]) -> None: ...


class AppListRepository(Protocol):
    async def get(self, key: str) -> List[str]:
        """Unlocked read of the current list."""
        ...

    async def with_exclusive_access(
        self,
        key: str,
        fn: Callable[[List[str]], List[str] | Awaitable[List[str]]],
    ) -> List[str]:
        """
        Run one read-modify-write cycle under an exclusive lock.
        fn receives the current snapshot and returns its replacement.
        """
        ...


class HostInventory(Protocol):
    async def total_memory(self) -> int:
        """Total physical memory of the host in bytes."""
        ...
