import asyncio
import logging
import os
from pathlib import Path

from appnest.domain.errors import ScriptError
from appnest.domain.ports import ScriptResult, ScriptRunner

logger = logging.getLogger(__name__)


class AppScriptRunner(ScriptRunner):
    """Runs `<script> <action> <app_id>` and captures its output."""

    def __init__(self, script: Path, data_dir: Path):
        self.script = Path(script)
        self.data_dir = Path(data_dir)

    async def run(self, action: str, app_id: str) -> ScriptResult:
        logger.debug("[SCRIPT] %s %s", action, app_id)
        process = await asyncio.create_subprocess_exec(
            str(self.script),
            action,
            app_id,
            env={**os.environ, "APPNEST_DATA_DIR": str(self.data_dir)},
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()

        if process.returncode != 0:
            raise ScriptError(
                action,
                app_id,
                process.returncode,
                stderr.decode(errors="replace"),
            )

        return ScriptResult(stdout=stdout.decode(errors="replace"), exit_code=process.returncode)
