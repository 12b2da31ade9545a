import io
from datetime import datetime
from typing import List, Optional

import pytest
from rich.console import Console

from sentinel.core.context import CommandContext

# a Wednesday at noon: no late-night or weekend heuristics
QUIET_NOON = datetime(2024, 5, 15, 12, 0)


def make_context(
    full_command: str,
    branch: Optional[str] = None,
    environment: str = "unknown",
    cwd: str = "/work",
) -> CommandContext:
    parts = full_command.split()
    return CommandContext(
        binary=parts[0] if parts else "",
        args=tuple(parts[1:]),
        full_command=full_command,
        current_branch=branch,
        current_directory=cwd,
        environment=environment,
    )


class ScriptedPrompter:
    """Answers prompts from a queue; records every question asked."""

    def __init__(self, answers: List[object]):
        self.answers = list(answers)
        self.asked: List[str] = []

    def _next(self, message):
        self.asked.append(message)
        if not self.answers:
            raise AssertionError(f"unexpected prompt: {message}")
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def confirm(self, message: str, default: bool = False) -> bool:
        return self._next(message)

    def ask(self, message: str) -> str:
        return self._next(message)


@pytest.fixture
def quiet_console():
    return Console(file=io.StringIO(), force_terminal=False, width=120)


@pytest.fixture(autouse=True)
def sentinel_home(tmp_path, monkeypatch):
    home = tmp_path / "sentinel-home"
    monkeypatch.setenv("SENTINEL_HOME", str(home))
    for var in ("SENTINEL_ENV", "NODE_ENV", "ENVIRONMENT", "SENTINEL_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    return home
