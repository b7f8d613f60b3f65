"""Data types shared by the update pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from tool_farm.updater.errors import UpdateError


class SessionState(Enum):
    """States of a single update session."""

    IDLE = "idle"
    CHECKING_VERSION = "checking_version"
    UP_TO_DATE = "up_to_date"
    UPDATE_AVAILABLE = "update_available"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    DECLINED = "declined"
    UPDATING = "updating"
    INSTALLING_DEPENDENCIES = "installing_dependencies"
    RESTARTING = "restarting"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {
        SessionState.UP_TO_DATE,
        SessionState.DECLINED,
        SessionState.RESTARTING,
        SessionState.FAILED,
    }
)


@dataclass(frozen=True)
class VersionCheck:
    """Outcome of comparing the local and remote versions."""

    up_to_date: bool
    local: str
    remote: str


@dataclass
class StepResult:
    """Outcome of a best-effort step (git update, archive update, install).

    Best-effort steps never raise; the orchestrator inspects ``ok`` and
    moves on regardless.
    """

    step: str
    ok: bool
    error: UpdateError | None = None

    @classmethod
    def success(cls, step: str) -> StepResult:
        return cls(step=step, ok=True)

    @classmethod
    def failure(cls, step: str, error: UpdateError) -> StepResult:
        return cls(step=step, ok=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "ok": self.ok,
            "error": self.error.message if self.error else None,
        }


@dataclass
class UpdateSession:
    """Ephemeral record of one ``check_update`` run."""

    state: SessionState = SessionState.IDLE
    history: list[SessionState] = field(default_factory=lambda: [SessionState.IDLE])
    local_version: str | None = None
    remote_version: str | None = None
    strategy: str | None = None
    steps: list[StepResult] = field(default_factory=list)
    error: str | None = None

    def transition(self, state: SessionState) -> None:
        if self.state.is_terminal:
            raise RuntimeError(f"session already finished in {self.state.value}")
        self.state = state
        self.history.append(state)

    def fail(self, error: str) -> None:
        """Move to ``FAILED`` from any state, including a restart that never happened."""
        self.error = error
        if self.state is not SessionState.FAILED:
            self.state = SessionState.FAILED
            self.history.append(SessionState.FAILED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "history": [s.value for s in self.history],
            "local_version": self.local_version,
            "remote_version": self.remote_version,
            "strategy": self.strategy,
            "steps": [s.to_dict() for s in self.steps],
            "error": self.error,
        }
