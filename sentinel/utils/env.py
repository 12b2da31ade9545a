# sentinel/utils/env.py
import os
import pathlib
from typing import Dict, Optional


def sentinel_home() -> pathlib.Path:
    """State directory for logs, telemetry and the user config ($SENTINEL_HOME or ~/.sentinel)."""
    return pathlib.Path(os.path.expanduser(os.environ.get("SENTINEL_HOME") or "~/.sentinel"))


def load_env(path: Optional[str] = None) -> Dict[str, str]:
    """
    Load $SENTINEL_HOME/.env into the current process env (without clobbering
    anything already set in the real environment). Returns the parsed dict.

    Rules:
      - Lines beginning with '#' are ignored.
      - Blank lines ignored.
      - First '=' splits KEY and VALUE; an optional leading 'export ' is dropped.
      - Surrounding single or double quotes around VALUE are stripped.
    """
    p = pathlib.Path(os.path.expanduser(path)) if path else sentinel_home() / ".env"
    if not p.is_file():
        return {}

    env: Dict[str, str] = {}
    for raw in p.read_text(encoding="utf-8", errors="ignore").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):]
        k, v = line.split("=", 1)
        k, v = k.strip(), v.strip()
        if len(v) >= 2 and v[0] == v[-1] and v[0] in ("'", '"'):
            v = v[1:-1]
        env[k] = v
        os.environ.setdefault(k, v)
    return env
