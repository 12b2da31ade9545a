# sentinel/shell.py
"""Shell integration snippets: wrapper functions that route commands through `sentinel exec`."""
from __future__ import annotations

import os
from typing import Optional, Sequence

SHELLS = ("bash", "zsh", "fish")
GUARDED_COMMANDS = ("git", "kubectl", "helm", "terraform", "docker", "npx", "prisma", "psql")

BEGIN = "# >>> sentinel >>>"
END = "# <<< sentinel <<<"


def detect_shell(shell_path: Optional[str] = None) -> Optional[str]:
    name = os.path.basename(shell_path if shell_path is not None else os.environ.get("SHELL", ""))
    return name if name in SHELLS else None


def _posix_snippet(commands: Sequence[str]) -> str:
    lines = [BEGIN, "# eval \"$(sentinel init bash)\" in ~/.bashrc (or zsh in ~/.zshrc)"]
    for cmd in commands:
        lines.append(f'{cmd}() {{ command sentinel exec -- {cmd} "$@"; }}')
    lines.append(END)
    return "\n".join(lines) + "\n"


def _fish_snippet(commands: Sequence[str]) -> str:
    lines = [BEGIN, "# sentinel init fish | source   in ~/.config/fish/config.fish"]
    for cmd in commands:
        lines.append(f"function {cmd} --wraps {cmd}")
        lines.append(f"    command sentinel exec -- {cmd} $argv")
        lines.append("end")
    lines.append(END)
    return "\n".join(lines) + "\n"


def integration_script(shell: str, commands: Sequence[str] = GUARDED_COMMANDS) -> str:
    if shell not in SHELLS:
        raise ValueError(f"unsupported shell {shell!r}; expected one of {', '.join(SHELLS)}")
    commands = [c for c in commands if c and c.replace("-", "").replace("_", "").isalnum()]
    if shell == "fish":
        return _fish_snippet(commands)
    return _posix_snippet(commands)
