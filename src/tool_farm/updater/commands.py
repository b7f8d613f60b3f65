"""Subprocess helper for the update pipeline.

All shell commands issued while updating go through ``run_cmd`` so that
failures are logged the same way everywhere.
"""

from __future__ import annotations

import asyncio
import contextlib
from pathlib import Path

import structlog

from tool_farm.logging import get_logger

log = get_logger("tool_farm.updater.commands")


async def run_cmd(
    cmd: str,
    cwd: str | Path = ".",
    timeout: float = 120,
    logger: structlog.stdlib.BoundLogger | None = None,
) -> str | None:
    """Run a shell command and return stdout, or None on failure."""
    log_ = logger or log
    try:
        proc = await asyncio.create_subprocess_shell(
            cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd),
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except TimeoutError:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            raise

        if proc.returncode != 0:
            log_.warning(
                "updater_cmd_failed",
                cmd=cmd,
                returncode=proc.returncode,
                stderr=stderr.decode(errors="replace")[:500],
            )
            return None

        return stdout.decode(errors="replace")

    except TimeoutError:
        log_.warning("updater_cmd_timeout", cmd=cmd, timeout=timeout)
        return None
    except Exception as exc:
        log_.warning("updater_cmd_error", cmd=cmd, error=str(exc))
        return None
