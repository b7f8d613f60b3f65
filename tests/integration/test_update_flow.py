"""End-to-end update sessions wired from Settings.

Network access is replaced by patching ``http_get`` and process creation
by patching the subprocess entry points; everything else (manifest
reading, retry loop, zip extraction, overlay copy) runs for real.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from tool_farm.config import Settings
from tool_farm.updater.errors import NetworkError
from tool_farm.updater.models import SessionState
from tool_farm.updater.orchestrator import UpdateOrchestrator

MANIFEST_URL = "https://example.invalid/manifest.json"
ARCHIVE_URL = "https://example.invalid/master.zip"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "app"
    root.mkdir()
    (root / "manifest.json").write_text(json.dumps({"version": "1.0.0"}), encoding="utf-8")
    (root / "settings.local.json").write_text('{"token": "keep"}', encoding="utf-8")
    return root


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        update_manifest_url=MANIFEST_URL,
        update_archive_url=ARCHIVE_URL,
        update_initial_delay=0,
        update_max_retries=3,
        update_temp_dir=str(tmp_path / "extract"),
        update_install_command="pip install -e .",
        update_start_command="python -m tool_farm",
    )


def _fake_remote(version: str, archive: bytes = b"") -> AsyncMock:
    async def _get(url: str, *, user_agent: str, timeout: float) -> httpx.Response:
        if url == MANIFEST_URL:
            return httpx.Response(200, json={"version": version})
        return httpx.Response(200, content=archive)

    return AsyncMock(side_effect=_get)


def _orchestrator(
    settings: Settings, project: Path, confirm: AsyncMock
) -> UpdateOrchestrator:
    return UpdateOrchestrator.from_settings(
        settings, project_dir=project, confirm=confirm, logger=MagicMock()
    )


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestUpdateFlow:
    """Whole-session scenarios."""

    @pytest.mark.asyncio
    async def test_same_version_is_up_to_date(self, settings: Settings, project: Path) -> None:
        confirm = AsyncMock(return_value=True)
        remote = _fake_remote("1.0.0")

        with (
            patch("tool_farm.updater.version.http_get", remote),
            patch("tool_farm.updater.archive.http_get", remote),
            patch(
                "tool_farm.updater.commands.asyncio.create_subprocess_shell", new=AsyncMock()
            ) as shell,
            patch("tool_farm.updater.restart.subprocess.Popen") as popen,
        ):
            session = await _orchestrator(settings, project, confirm).check_update()

        assert session.state is SessionState.UP_TO_DATE
        confirm.assert_not_awaited()
        shell.assert_not_awaited()
        popen.assert_not_called()

    @pytest.mark.asyncio
    async def test_unreachable_remote_fails_without_restart(
        self, settings: Settings, project: Path
    ) -> None:
        confirm = AsyncMock(return_value=True)
        remote = AsyncMock(side_effect=NetworkError("connection refused", code="ConnectError"))

        with (
            patch("tool_farm.updater.version.http_get", remote),
            patch("tool_farm.updater.restart.subprocess.Popen") as popen,
            patch("tool_farm.updater.restart.sys.exit") as exit_,
        ):
            session = await _orchestrator(settings, project, confirm).check_update()

        assert session.state is SessionState.FAILED
        assert remote.await_count == settings.update_max_retries + 1
        confirm.assert_not_awaited()
        popen.assert_not_called()
        exit_.assert_not_called()

    @pytest.mark.asyncio
    async def test_git_probe_failure_falls_back_to_archive(
        self, settings: Settings, project: Path, make_zip: Callable[..., bytes]
    ) -> None:
        (project / ".git").mkdir()
        confirm = AsyncMock(return_value=True)
        archive = make_zip(
            {
                "release-v2/": "",
                "release-v2/a.txt": "hello",
                "release-v2/manifest.json": json.dumps({"version": "2.0.0"}),
            }
        )
        remote = _fake_remote("2.0.0", archive)
        orchestrator = _orchestrator(settings, project, confirm)

        with (
            patch("tool_farm.updater.version.http_get", remote),
            patch("tool_farm.updater.archive.http_get", remote),
            patch("tool_farm.updater.strategy.run_cmd", AsyncMock(return_value=None)),
            patch("tool_farm.updater.installer.run_cmd", AsyncMock(return_value="")) as install,
            patch(
                "tool_farm.updater.restart.subprocess.Popen", return_value=MagicMock(pid=99)
            ) as popen,
        ):
            with pytest.raises(SystemExit) as exc_info:
                await orchestrator.check_update()

        assert exc_info.value.code == 1
        session = orchestrator.session
        assert session is not None
        assert session.state is SessionState.RESTARTING
        assert session.strategy == "archive"
        assert all(step.ok for step in session.steps)

        assert (project / "a.txt").read_text(encoding="utf-8") == "hello"
        assert json.loads((project / "manifest.json").read_text(encoding="utf-8")) == {
            "version": "2.0.0"
        }
        assert (project / "settings.local.json").read_text(encoding="utf-8") == '{"token": "keep"}'

        confirm.assert_awaited_once()
        install.assert_awaited_once()
        assert install.call_args.args[0] == "pip install -e ."
        assert popen.call_args.args[0] == "python -m tool_farm"
        assert popen.call_args.kwargs["cwd"] == str(project)

    @pytest.mark.asyncio
    async def test_configured_archive_root_rejects_other_layout(
        self, settings: Settings, project: Path, make_zip: Callable[..., bytes]
    ) -> None:
        settings.update_archive_root = "tool-farm-master"
        archive = make_zip({"someone-else/": "", "someone-else/a.txt": "foreign"})
        orchestrator = _orchestrator(settings, project, AsyncMock(return_value=True))

        with (
            patch("tool_farm.updater.version.http_get", _fake_remote("2.0.0", archive)),
            patch("tool_farm.updater.archive.http_get", _fake_remote("2.0.0", archive)),
            patch("tool_farm.updater.installer.run_cmd", AsyncMock(return_value="")),
            patch("tool_farm.updater.restart.subprocess.Popen", return_value=MagicMock(pid=5)),
        ):
            with pytest.raises(SystemExit):
                await orchestrator.check_update()

        session = orchestrator.session
        assert session is not None
        archive_step = session.steps[0]
        assert archive_step.step == "archive_update"
        assert archive_step.ok is False
        assert archive_step.error.code == "layout"
        assert not (project / "a.txt").exists()

    @pytest.mark.asyncio
    async def test_git_update_path(self, settings: Settings, project: Path) -> None:
        (project / ".git").mkdir()
        confirm = AsyncMock(return_value=True)
        git = AsyncMock(return_value="")

        with (
            patch("tool_farm.updater.version.http_get", _fake_remote("1.1.0")),
            patch("tool_farm.updater.strategy.run_cmd", AsyncMock(return_value="git version 2")),
            patch("tool_farm.updater.vcs.run_cmd", git),
            patch("tool_farm.updater.installer.run_cmd", AsyncMock(return_value="")),
            patch("tool_farm.updater.restart.subprocess.Popen", return_value=MagicMock(pid=7)),
        ):
            with pytest.raises(SystemExit):
                await _orchestrator(settings, project, confirm).check_update()

        assert [c.args[0] for c in git.call_args_list] == [
            "git stash",
            "git pull --force",
            "git reset --hard",
        ]

    @pytest.mark.asyncio
    async def test_declined_leaves_tree_untouched(
        self, settings: Settings, project: Path
    ) -> None:
        confirm = AsyncMock(return_value=False)
        before = sorted(p.name for p in project.iterdir())

        with (
            patch("tool_farm.updater.version.http_get", _fake_remote("9.9.9")),
            patch("tool_farm.updater.restart.subprocess.Popen") as popen,
        ):
            session = await _orchestrator(settings, project, confirm).check_update()

        assert session.state is SessionState.DECLINED
        assert sorted(p.name for p in project.iterdir()) == before
        popen.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_local_manifest_fails_fast(
        self, settings: Settings, project: Path
    ) -> None:
        (project / "manifest.json").unlink()
        remote = _fake_remote("2.0.0")

        with patch("tool_farm.updater.version.http_get", remote):
            session = await _orchestrator(
                settings, project, AsyncMock(return_value=True)
            ).check_update()

        assert session.state is SessionState.FAILED
        remote.assert_not_awaited()
