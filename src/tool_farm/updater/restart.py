"""Hand off to a freshly started application process."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import Any, NoReturn

import structlog

from tool_farm.constants import RESTART_EXIT_CODE
from tool_farm.logging import get_logger

log = get_logger("tool_farm.updater.restart")


def detached_popen_kwargs() -> dict[str, Any]:
    """Platform flags that let the child outlive this process."""
    if os.name == "nt":
        flags = getattr(subprocess, "CREATE_NEW_CONSOLE", 0) | getattr(
            subprocess, "CREATE_NEW_PROCESS_GROUP", 0
        )
        return {"creationflags": flags}
    return {"start_new_session": True}


class ProcessRestarter:
    """Spawn the start command detached, then exit the current process.

    The child is never waited on. If spawning fails the ``OSError``
    propagates and this process keeps running on the old code.
    """

    def __init__(
        self,
        start_command: str,
        project_dir: str | Path = ".",
        exit_code: int = RESTART_EXIT_CODE,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._start_command = start_command
        self._project_dir = Path(project_dir)
        self._exit_code = exit_code
        self._log = logger or log

    def spawn(self) -> subprocess.Popen[bytes]:
        return subprocess.Popen(
            self._start_command,
            shell=True,
            cwd=str(self._project_dir),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            close_fds=True,
            **detached_popen_kwargs(),
        )

    def restart(self) -> NoReturn:
        proc = self.spawn()
        self._log.info("updater_restarting", pid=proc.pid, cmd=self._start_command)
        sys.exit(self._exit_code)
