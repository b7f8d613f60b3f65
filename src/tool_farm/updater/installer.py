"""Reinstall runtime dependencies after the working tree changed."""

from __future__ import annotations

from pathlib import Path

import structlog

from tool_farm.logging import get_logger
from tool_farm.updater.commands import run_cmd
from tool_farm.updater.errors import InstallError
from tool_farm.updater.models import StepResult

log = get_logger("tool_farm.updater.installer")

STEP_NAME = "install_dependencies"


class DependencyInstaller:
    """Run the package manager's install command and wait for it."""

    def __init__(
        self,
        command: str,
        project_dir: str | Path = ".",
        timeout: float = 600,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._command = command
        self._project_dir = Path(project_dir)
        self._timeout = timeout
        self._log = logger or log

    async def install(self) -> StepResult:
        self._log.info("updater_installing_dependencies", cmd=self._command)
        output = await run_cmd(
            self._command, cwd=self._project_dir, timeout=self._timeout, logger=self._log
        )
        if output is None:
            # The previous dependency set is still on disk, so keep going
            error = InstallError("dependency installation failed")
            self._log.error("updater_install_failed", error=error.message)
            return StepResult.failure(STEP_NAME, error)

        self._log.info("updater_dependencies_installed")
        return StepResult.success(STEP_NAME)
