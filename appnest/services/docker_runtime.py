import asyncio
import logging
from typing import List, Optional

import docker
import requests
from docker.errors import DockerException, NotFound

from appnest.domain.app import UsageRecord
from appnest.domain.errors import EngineError
from appnest.domain.ports import ContainerEngine

logger = logging.getLogger(__name__)


def _cpu_percent(stats: dict) -> float:
    cpu_stats = stats["cpu_stats"]
    precpu_stats = stats.get("precpu_stats") or {}

    cpu_delta = cpu_stats["cpu_usage"]["total_usage"] - (
        precpu_stats.get("cpu_usage", {}).get("total_usage", 0)
    )
    system_delta = cpu_stats.get("system_cpu_usage", 0) - precpu_stats.get("system_cpu_usage", 0)
    online_cpus = cpu_stats.get("online_cpus") or len(
        cpu_stats["cpu_usage"].get("percpu_usage") or []
    ) or 1

    if cpu_delta <= 0 or system_delta <= 0:
        return 0.0
    return cpu_delta / system_delta * online_cpus * 100.0


def _memory_percent(stats: dict) -> float:
    memory_stats = stats["memory_stats"]
    usage = memory_stats.get("usage", 0)
    limit = memory_stats.get("limit", 0)
    # Same as `docker stats`: inactive page cache is not counted
    # (cgroup v1 "total_inactive_file", cgroup v2 "inactive_file")
    extra = memory_stats.get("stats") or {}
    inactive = extra["total_inactive_file"] if "total_inactive_file" in extra else extra.get("inactive_file", 0)
    if inactive < usage:
        usage -= inactive

    if limit <= 0:
        return 0.0
    return max(usage, 0) / limit * 100.0


def to_usage_record(name: str, stats: dict) -> UsageRecord:
    """Turn a raw stats payload into the `docker stats`-style record."""
    try:
        return UsageRecord(
            name=name,
            mem_perc=f"{_memory_percent(stats):.2f}%",
            cpu_perc=f"{_cpu_percent(stats):.2f}%",
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise EngineError(f"Unexpected stats payload for {name}: {e}") from e


class DockerSDKEngine(ContainerEngine):
    def __init__(self, base_url: Optional[str] = None, client: Optional[docker.DockerClient] = None):
        self._base_url = base_url
        self._client = client

    @property
    def docker_client(self) -> docker.DockerClient:
        if self._client is None:
            try:
                self._client = (
                    docker.DockerClient(base_url=self._base_url) if self._base_url else docker.from_env()
                )
            except DockerException as e:
                raise EngineError(f"Could not connect to Docker daemon: {e}") from e
        return self._client

    # -------------------------------
    # Image lifecycle
    # -------------------------------
    async def remove_images(self, image_refs: List[str]) -> None:
        """Attempt every removal, then raise if any of them failed."""
        failures = []
        for ref in image_refs:
            try:
                await asyncio.to_thread(self.docker_client.images.remove, ref)
            except (DockerException, requests.exceptions.RequestException) as e:
                failures.append(f"{ref}: {e}")

        if failures:
            raise EngineError("Failed to remove images: " + "; ".join(failures))

    # -------------------------------
    # Container stats
    # -------------------------------
    async def stats_snapshot(self, container_names: List[str]) -> List[UsageRecord]:
        records = []
        for name in container_names:
            try:
                container = await asyncio.to_thread(self.docker_client.containers.get, name)
                stats = await asyncio.to_thread(container.stats, stream=False)
            except NotFound as e:
                raise EngineError(f"Container not found: {name}") from e
            except (DockerException, requests.exceptions.RequestException) as e:
                raise EngineError(f"Docker stats failed for {name}: {e}") from e

            if not isinstance(stats, dict):
                raise EngineError(f"Unexpected stats payload for {name}: {stats!r}")
            records.append(to_usage_record(name, stats))

        return records
