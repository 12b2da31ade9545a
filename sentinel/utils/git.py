# sentinel/utils/git.py
from __future__ import annotations

import subprocess
from typing import Optional


def _git_out(*args: str, cwd: Optional[str] = None) -> Optional[str]:
    """Run git and return stdout (stripped), or None when git fails or is missing."""
    try:
        res = subprocess.run(
            ["git", *args], cwd=cwd, check=True,
            stdout=subprocess.PIPE, stderr=subprocess.DEVNULL, text=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return (res.stdout or "").strip() or None


def current_branch(cwd: Optional[str] = None) -> Optional[str]:
    return _git_out("rev-parse", "--abbrev-ref", "HEAD", cwd=cwd)
