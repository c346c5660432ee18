# appnest/services/usage.py
import asyncio
import logging
import os
from pathlib import Path

import psutil

from appnest.domain.ports import HostInventory

logger = logging.getLogger(__name__)


class PercentageParser:
    """
    Tolerant parser for engine-reported percentages ("12.34%").
    Engine output formatting drifts across versions, so anything unparseable
    contributes zero and is counted in `skipped`.
    """

    def __init__(self):
        self.skipped = 0

    def __call__(self, text) -> float:
        try:
            return float(str(text).strip().rstrip("%"))
        except (TypeError, ValueError):
            self.skipped += 1
            logger.debug("[USAGE] Unparseable percentage %r counted as 0", text)
            return 0.0


def parse_percentage(text) -> float:
    return PercentageParser()(text)


def _walk_size(path: Path) -> int:
    total = 0
    for root, _dirs, files in os.walk(path):
        for name in files:
            file_path = os.path.join(root, name)
            if not os.path.islink(file_path):
                total += os.path.getsize(file_path)
    return total


async def directory_size(path: Path) -> int:
    """Recursive size of `path` in bytes (0 if it does not exist)."""
    return await asyncio.to_thread(_walk_size, Path(path))


class PsutilHostInventory(HostInventory):
    async def total_memory(self) -> int:
        return psutil.virtual_memory().total
