# sentinel/core/context.py
from __future__ import annotations

import os
import shlex
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Tuple

from ..utils.git import current_branch

ENV_VARS = ("SENTINEL_ENV", "NODE_ENV", "ENVIRONMENT")


@dataclass(frozen=True)
class CommandContext:
    """Snapshot of the command under evaluation. Built once, never mutated."""

    binary: str
    args: Tuple[str, ...]
    full_command: str
    current_branch: Optional[str]
    current_directory: str
    environment: str = "unknown"


def detect_environment(environ: Optional[Mapping[str, str]] = None, cwd: Optional[str] = None) -> str:
    """
    Map env vars and the working directory onto production, staging,
    development or unknown.
    The first non-empty variable of ENV_VARS decides; the cwd is only a fallback.
    """
    environ = os.environ if environ is None else environ
    value = next((environ[k] for k in ENV_VARS if environ.get(k)), "").lower()
    if "prod" in value:
        return "production"
    if "stag" in value:
        return "staging"
    if "dev" in value:
        return "development"

    where = (cwd if cwd is not None else os.getcwd()).lower()
    if "prod" in where:
        return "production"
    if "stag" in where:
        return "staging"
    return "unknown"


def build_context(
    argv: Sequence[str],
    cwd: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    branch: Optional[str] = None,
    detect_branch: bool = True,
) -> CommandContext:
    """
    Turn the words after `sentinel exec` into a CommandContext.

    A single word is taken verbatim as the full command (shell hooks pass the
    whole line quoted); several words are re-quoted with shlex.join so the
    string can be handed back to the shell unchanged.
    """
    words = [w for w in argv if w != ""]
    if len(words) == 1:
        full = words[0].strip()
        try:
            parts = shlex.split(full)
        except ValueError:
            parts = full.split()
    else:
        full = shlex.join(words)
        parts = words

    cwd = cwd or os.getcwd()
    if branch is None and detect_branch:
        branch = current_branch(cwd)
    return CommandContext(
        binary=parts[0] if parts else "",
        args=tuple(parts[1:]),
        full_command=full,
        current_branch=branch,
        current_directory=cwd,
        environment=detect_environment(environ, cwd),
    )
