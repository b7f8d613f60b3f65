"""Update the working tree from a downloaded release archive."""

from __future__ import annotations

import io
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path

import structlog

from tool_farm.logging import get_logger
from tool_farm.updater.errors import ArchiveError, RetryExhausted
from tool_farm.updater.models import StepResult
from tool_farm.updater.net import http_get
from tool_farm.updater.retry import RetryExecutor, RetryPolicy
from tool_farm.utils import copy_tree

log = get_logger("tool_farm.updater.archive")

STEP_NAME = "archive_update"


@dataclass(frozen=True)
class RemoteArtifact:
    """A zip archive whose first entry is the directory wrapping the release.

    When ``expected_root_entry_name`` is set, an archive rooted anywhere
    else is rejected.
    """

    download_url: str
    expected_root_entry_name: str | None = None


def resolve_root_entry(names: list[str]) -> str:
    """Return the top-level directory named by the archive's first entry."""
    if not names:
        raise ArchiveError("release archive is empty", code="empty")
    first = names[0]
    root, sep, _ = first.partition("/")
    if not sep or not root:
        raise ArchiveError(
            f"first archive entry {first!r} is not inside a top-level directory",
            code="layout",
        )
    return root


class ArchiveUpdater:
    """Download, extract and overlay a release archive onto the project.

    Extraction goes to a shared temporary directory and overwrites any
    earlier extraction. The overlay only adds and replaces files; files
    missing from the release are left in place.
    """

    def __init__(
        self,
        artifact: RemoteArtifact,
        user_agent: str,
        timeout: float,
        policy: RetryPolicy,
        project_dir: str | Path = ".",
        temp_dir: str | Path | None = None,
        retry: RetryExecutor | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._artifact = artifact
        self._user_agent = user_agent
        self._timeout = timeout
        self._policy = policy
        self._project_dir = Path(project_dir)
        self._temp_dir = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())
        self._log = logger or log
        self._retry = retry or RetryExecutor(logger=self._log)

    async def download(self) -> bytes:
        async def _fetch() -> bytes:
            resp = await http_get(
                self._artifact.download_url, user_agent=self._user_agent, timeout=self._timeout
            )
            return resp.content

        return await self._retry.execute(_fetch, self._policy)

    def extract(self, payload: bytes) -> Path:
        """Unpack ``payload`` into the temp dir and return the release root."""
        try:
            with zipfile.ZipFile(io.BytesIO(payload)) as zf:
                root_name = resolve_root_entry(zf.namelist())
                expected = self._artifact.expected_root_entry_name
                if expected and root_name != expected.rstrip("/"):
                    raise ArchiveError(
                        f"archive root {root_name!r} does not match expected {expected!r}",
                        code="layout",
                    )
                self._temp_dir.mkdir(parents=True, exist_ok=True)
                zf.extractall(self._temp_dir)
        except zipfile.BadZipFile as exc:
            raise ArchiveError("downloaded payload is not a zip archive", code="corrupt") from exc

        root = self._temp_dir / root_name
        if not root.is_dir():
            raise ArchiveError(f"extracted root {root} is not a directory", code="layout")
        return root

    async def update(self) -> StepResult:
        try:
            self._log.debug("updater_archive_downloading", url=self._artifact.download_url)
            payload = await self.download()

            root = self.extract(payload)
            self._log.debug("updater_archive_extracted", root=str(root), size=len(payload))

            copy_tree(root, self._project_dir)
        except RetryExhausted as exc:
            error = ArchiveError(f"archive download failed: {exc.message}", code=exc.code)
            self._log.error("updater_archive_update_failed", error=error.message)
            return StepResult.failure(STEP_NAME, error)
        except ArchiveError as exc:
            self._log.error("updater_archive_update_failed", error=exc.message)
            return StepResult.failure(STEP_NAME, exc)
        except Exception as exc:
            error = ArchiveError(f"archive update failed: {exc}", code=type(exc).__name__)
            self._log.error("updater_archive_update_failed", error=error.message, exc_info=True)
            return StepResult.failure(STEP_NAME, error)

        self._log.info("updater_archive_update_complete", project_dir=str(self._project_dir))
        return StepResult.success(STEP_NAME)
