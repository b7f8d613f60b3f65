"""Choose between the git and archive update strategies."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import structlog

from tool_farm.logging import get_logger
from tool_farm.updater.commands import run_cmd

log = get_logger("tool_farm.updater.strategy")

VCS_METADATA_DIR = ".git"
VCS_PROBE_CMD = "git --version"


class UpdateStrategy(Enum):
    """How the working tree gets refreshed."""

    VCS = "vcs"
    ARCHIVE = "archive"


class StrategySelector:
    """Pick git when the working tree is a checkout and git runs, else the archive."""

    def __init__(
        self,
        project_dir: str | Path = ".",
        probe_timeout: float = 30,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._project_dir = Path(project_dir)
        self._probe_timeout = probe_timeout
        self._log = logger or log

    def has_vcs_metadata(self) -> bool:
        return (self._project_dir / VCS_METADATA_DIR).exists()

    async def vcs_available(self) -> bool:
        output = await run_cmd(
            VCS_PROBE_CMD, cwd=self._project_dir, timeout=self._probe_timeout, logger=self._log
        )
        return output is not None

    async def select(self) -> UpdateStrategy:
        if not self.has_vcs_metadata():
            self._log.debug("updater_no_vcs_metadata", project_dir=str(self._project_dir))
            return UpdateStrategy.ARCHIVE

        if not await self.vcs_available():
            self._log.info("updater_git_not_found", fallback=UpdateStrategy.ARCHIVE.value)
            return UpdateStrategy.ARCHIVE

        self._log.info("updater_git_detected")
        return UpdateStrategy.VCS
