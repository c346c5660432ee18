# appnest/services/compose.py
from pathlib import Path
from typing import Any

import aiofiles
import yaml

from appnest.domain.ports import ComposeStore


def container_name_for(app_id: str, service_name: str) -> str:
    return f"{app_id}_{service_name}_1"


def patch_container_names(app_id: str, compose: dict[str, Any]) -> dict[str, Any]:
    """
    Pin a container name on every service that lacks one.

    Newer docker compose releases name containers <project>-<service>-1 where
    older ones used <project>_<service>_1. Containers are referenced by name
    (and by the DNS hostname derived from it), so the old scheme is forced
    explicitly. Explicit names are never overwritten. Mutates and returns
    `compose`; persisting it is up to the caller.
    """
    for service_name, service in (compose.get("services") or {}).items():
        if service is None:
            service = compose["services"][service_name] = {}
        if not service.get("container_name"):
            service["container_name"] = container_name_for(app_id, service_name)
    return compose


class ComposeFileStore(ComposeStore):
    """YAML compose descriptors on disk."""

    async def read(self, path: Path) -> dict[str, Any]:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            content = await f.read()
        return yaml.safe_load(content) or {}

    async def write(self, path: Path, descriptor: dict[str, Any]) -> None:
        content = yaml.safe_dump(descriptor, sort_keys=False)
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(content)
