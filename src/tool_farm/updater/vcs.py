"""Update the working tree with git."""

from __future__ import annotations

import shlex
from pathlib import Path

import structlog

from tool_farm.logging import get_logger
from tool_farm.updater.commands import run_cmd
from tool_farm.updater.errors import VcsError
from tool_farm.updater.models import StepResult

log = get_logger("tool_farm.updater.vcs")

STEP_NAME = "vcs_update"


class VcsUpdater:
    """Stash local edits, force-pull, then hard-reset to the pulled commit.

    The sequence stops at the first failing command. Whatever git already
    changed stays in place; the failure is reported in the returned
    ``StepResult`` rather than raised.
    """

    def __init__(
        self,
        project_dir: str | Path = ".",
        remote: str | None = None,
        branch: str | None = None,
        timeout: float = 300,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._project_dir = Path(project_dir)
        self._remote = remote
        self._branch = branch
        self._timeout = timeout
        self._log = logger or log

    def commands(self) -> list[tuple[str, str]]:
        """Return ``(step, command)`` pairs in execution order."""
        pull = "git pull --force"
        # A branch can only be named after a remote
        remote = self._remote or ("origin" if self._branch else None)
        if remote:
            pull += f" {shlex.quote(remote)}"
            if self._branch:
                pull += f" {shlex.quote(self._branch)}"
        return [
            ("stash", "git stash"),
            ("pull", pull),
            ("reset", "git reset --hard"),
        ]

    async def update(self) -> StepResult:
        for step, cmd in self.commands():
            self._log.debug("updater_git_step", step=step, cmd=cmd)
            output = await run_cmd(
                cmd, cwd=self._project_dir, timeout=self._timeout, logger=self._log
            )
            if output is None:
                error = VcsError(f"git {step} failed", code=step)
                self._log.error("updater_git_update_failed", step=step, error=error.message)
                return StepResult.failure(STEP_NAME, error)

        self._log.info("updater_git_update_complete")
        return StepResult.success(STEP_NAME)
