"""End-to-end self-update flow.

Typical session:
1. ``VersionChecker.check()`` compares the local and upstream manifests
2. the operator confirms the update
3. ``StrategySelector`` picks git or the release archive and the files are refreshed
4. ``DependencyInstaller`` reinstalls dependencies
5. ``ProcessRestarter`` starts the new version and exits this process

Only a local manifest read error or an exhausted remote fetch stop a
session early. The update, install and restart steps always run in
order once the operator has agreed.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path

import structlog

from tool_farm.config import Settings, get_settings
from tool_farm.logging import get_logger
from tool_farm.prompts import confirm as console_confirm
from tool_farm.updater.archive import ArchiveUpdater, RemoteArtifact
from tool_farm.updater.errors import LocalReadError, RetryExhausted
from tool_farm.updater.installer import DependencyInstaller
from tool_farm.updater.models import SessionState, StepResult, UpdateSession
from tool_farm.updater.restart import ProcessRestarter
from tool_farm.updater.retry import RetryExecutor
from tool_farm.updater.strategy import StrategySelector, UpdateStrategy
from tool_farm.updater.vcs import VcsUpdater
from tool_farm.updater.version import VersionChecker

log = get_logger("tool_farm.updater.orchestrator")

NETWORK_HINT = "Please check your network connection and try again later."

ConfirmFn = Callable[[str], Awaitable[bool]]


class UpdateOrchestrator:
    """Sequence the update components and own error reporting."""

    def __init__(
        self,
        checker: VersionChecker,
        selector: StrategySelector,
        vcs_updater: VcsUpdater,
        archive_updater: ArchiveUpdater,
        installer: DependencyInstaller,
        restarter: ProcessRestarter,
        confirm: ConfirmFn = console_confirm,
        archive_fallback: bool = False,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._checker = checker
        self._selector = selector
        self._vcs = vcs_updater
        self._archive = archive_updater
        self._installer = installer
        self._restarter = restarter
        self._confirm = confirm
        self._archive_fallback = archive_fallback
        self._log = logger or log
        self._session: UpdateSession | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        project_dir: str | Path | None = None,
        confirm: ConfirmFn = console_confirm,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> UpdateOrchestrator:
        """Wire every component from configuration."""
        settings = settings or get_settings()
        project_dir = Path(project_dir) if project_dir is not None else Path.cwd()
        log_ = logger or log
        retry = RetryExecutor(logger=log_)
        policy = settings.retry_policy

        return cls(
            checker=VersionChecker(
                manifest_path=project_dir / settings.update_manifest_file,
                manifest_url=settings.update_manifest_url,
                user_agent=settings.update_user_agent,
                timeout=settings.update_manifest_timeout,
                policy=policy,
                retry=retry,
                logger=log_,
            ),
            selector=StrategySelector(project_dir, logger=log_),
            vcs_updater=VcsUpdater(
                project_dir,
                remote=settings.update_vcs_remote,
                branch=settings.update_vcs_branch,
                logger=log_,
            ),
            archive_updater=ArchiveUpdater(
                RemoteArtifact(
                    download_url=settings.update_archive_url,
                    expected_root_entry_name=settings.update_archive_root,
                ),
                user_agent=settings.update_user_agent,
                timeout=settings.update_archive_timeout,
                policy=policy,
                project_dir=project_dir,
                temp_dir=settings.update_temp_dir,
                retry=retry,
                logger=log_,
            ),
            installer=DependencyInstaller(
                settings.update_install_command,
                project_dir=project_dir,
                timeout=settings.update_install_timeout,
                logger=log_,
            ),
            restarter=ProcessRestarter(
                settings.update_start_command, project_dir=project_dir, logger=log_
            ),
            confirm=confirm,
            archive_fallback=settings.update_archive_fallback,
            logger=log_,
        )

    @property
    def session(self) -> UpdateSession | None:
        """The most recent session, if any."""
        return self._session

    async def check_update(self) -> UpdateSession:
        """Run one update session.

        Returns the finished session unless the restart succeeded, in
        which case this process exits and nothing is returned.
        """
        session = UpdateSession()
        self._session = session
        try:
            await self._run(session)
        except Exception as exc:
            self._log.exception("updater_unexpected_error", state=session.state.value)
            session.fail(str(exc) or type(exc).__name__)
        return session

    async def _run(self, session: UpdateSession) -> None:
        session.transition(SessionState.CHECKING_VERSION)
        try:
            result = await self._checker.check()
        except LocalReadError as exc:
            self._log.error("updater_local_read_failed", error=exc.message)
            session.fail(exc.message)
            return
        except RetryExhausted as exc:
            self._log.error(
                "updater_check_failed",
                error=exc.message,
                code=exc.code,
                attempts=exc.attempts,
            )
            self._log.info("updater_check_network_hint", hint=NETWORK_HINT)
            session.fail(exc.message)
            return

        session.local_version = result.local
        session.remote_version = result.remote
        if result.up_to_date:
            session.transition(SessionState.UP_TO_DATE)
            return

        session.transition(SessionState.UPDATE_AVAILABLE)
        session.transition(SessionState.AWAITING_CONFIRMATION)
        if not await self._confirm("Would you like to update?"):
            self._log.info(
                "updater_update_declined", current=result.local, latest=result.remote
            )
            session.transition(SessionState.DECLINED)
            return

        session.transition(SessionState.UPDATING)
        self._log.info("updater_updating", current=result.local, latest=result.remote)
        session.steps.extend(await self._apply_update(session))

        session.transition(SessionState.INSTALLING_DEPENDENCIES)
        session.steps.append(await self._installer.install())

        self._log.info(
            "updater_update_completed",
            version=result.remote,
            failed_steps=[s.step for s in session.steps if not s.ok],
        )
        session.transition(SessionState.RESTARTING)
        self._restarter.restart()

    async def _apply_update(self, session: UpdateSession) -> list[StepResult]:
        strategy = await self._selector.select()
        session.strategy = strategy.value

        if strategy is UpdateStrategy.ARCHIVE:
            return [await self._archive.update()]

        results = [await self._vcs.update()]
        if not results[0].ok and self._archive_fallback:
            self._log.warning("updater_vcs_fallback_to_archive")
            results.append(await self._archive.update())
        return results


async def check_update(
    settings: Settings | None = None,
    confirm: ConfirmFn = console_confirm,
) -> UpdateSession:
    """Check for a newer release and, if the operator agrees, install it."""
    return await UpdateOrchestrator.from_settings(settings, confirm=confirm).check_update()
