"""Local/remote version lookup and the update-available decision."""

from __future__ import annotations

import json
import re
from pathlib import Path

import structlog

from tool_farm.logging import get_logger
from tool_farm.updater.errors import LocalReadError, NetworkError
from tool_farm.updater.models import VersionCheck
from tool_farm.updater.net import http_get
from tool_farm.updater.retry import RetryExecutor, RetryPolicy

log = get_logger("tool_farm.updater.version")

_NUMERIC_VERSION_RE = re.compile(r"^v?\d+(?:\.\d+)*$")


def read_local_version(manifest_path: str | Path) -> str:
    """Return the ``version`` field of the local JSON manifest.

    Raises:
        LocalReadError: The file is missing, is not a JSON object, or has
            no non-empty ``version``.
    """
    path = Path(manifest_path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise LocalReadError(f"local manifest not found: {path}", code="missing") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise LocalReadError(f"cannot read local manifest {path}: {exc}", code="io") from exc
    except json.JSONDecodeError as exc:
        raise LocalReadError(f"local manifest {path} is not valid JSON", code="parse") from exc

    version = data.get("version") if isinstance(data, dict) else None
    if not isinstance(version, str) or not version:
        raise LocalReadError(f"local manifest {path} has no version field", code="parse")
    return version


async def fetch_remote_version(url: str, *, user_agent: str, timeout: float) -> str:
    """Fetch the remote manifest and return its ``version`` field."""
    resp = await http_get(url, user_agent=user_agent, timeout=timeout)
    try:
        data = resp.json()
    except ValueError as exc:
        raise NetworkError(f"remote manifest at {url} is not valid JSON", code="parse") from exc

    version = data.get("version") if isinstance(data, dict) else None
    if not isinstance(version, str) or not version:
        raise NetworkError(f"remote manifest at {url} has no version field", code="parse")
    return version


def _numeric_key(version: str) -> tuple[int, ...] | None:
    if not _NUMERIC_VERSION_RE.match(version):
        return None
    return tuple(int(part) for part in version.lstrip("v").split("."))


def is_update_available(
    local: str, remote: str, logger: structlog.stdlib.BoundLogger | None = None
) -> bool:
    """Return True when ``local`` sorts before ``remote``.

    Versions are compared as plain strings (code point order), so
    ``"1.2.0"`` is considered newer than ``"1.10.0"``. When both sides look
    like dotted numbers and numeric order disagrees, a warning is logged
    but the string comparison still decides.
    """
    available = local < remote

    local_key, remote_key = _numeric_key(local), _numeric_key(remote)
    if local_key is not None and remote_key is not None and (local_key < remote_key) != available:
        (logger or log).warning(
            "updater_version_order_mismatch",
            local=local,
            remote=remote,
            update_available=available,
        )
    return available


class VersionChecker:
    """Decide whether the upstream manifest announces a newer release."""

    def __init__(
        self,
        manifest_path: str | Path,
        manifest_url: str,
        user_agent: str,
        timeout: float,
        policy: RetryPolicy,
        retry: RetryExecutor | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._manifest_path = Path(manifest_path)
        self._manifest_url = manifest_url
        self._user_agent = user_agent
        self._timeout = timeout
        self._policy = policy
        self._log = logger or log
        self._retry = retry or RetryExecutor(logger=self._log)

    async def check(self) -> VersionCheck:
        """Compare local and remote versions.

        Raises:
            LocalReadError: The local manifest cannot be read (not retried).
            RetryExhausted: Every attempt to fetch the remote manifest failed.
        """
        self._log.info("updater_checking")
        local = read_local_version(self._manifest_path)

        remote = await self._retry.execute(
            lambda: fetch_remote_version(
                self._manifest_url, user_agent=self._user_agent, timeout=self._timeout
            ),
            self._policy,
        )

        if is_update_available(local, remote, logger=self._log):
            self._log.info("updater_new_version_available", current=local, latest=remote)
            return VersionCheck(up_to_date=False, local=local, remote=remote)

        self._log.info("updater_up_to_date", current=local, latest=remote)
        return VersionCheck(up_to_date=True, local=local, remote=remote)
