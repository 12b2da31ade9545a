# sentinel/utils/config.py
from __future__ import annotations

import logging
import pathlib
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from .env import sentinel_home
from .schema import Rule, SentinelConfig

CONFIG_NAMES = ("sentinel.yml", ".sentinel.yml", "config/sentinel.yml")

DEFAULT_CFG: Dict[str, Any] = {
    "globalIntercept": False,
    "telemetryEnabled": True,
    "strictMode": False,
    "logLevel": "info",
    "plugins": [],
    "rules": [
        {"pattern": "*migrate reset*", "level": "critical",
         "message": "This command looks suicidal. Want to think it over?"},
        {"pattern": "*deploy*main*", "level": "critical",
         "message": "Deploy straight to main without review? Betting against the universe?"},
        {"pattern": "*--force*", "level": "warning",
         "message": "--force flag detected. Be careful what you wish for."},
    ],
}


def default_config() -> SentinelConfig:
    return SentinelConfig.model_validate(DEFAULT_CFG)


def find_config_file(cwd: Optional[str] = None) -> Optional[pathlib.Path]:
    """First existing config file among the cwd candidates and $SENTINEL_HOME/config.yaml."""
    base = pathlib.Path(cwd) if cwd else pathlib.Path.cwd()
    candidates = [base / name for name in CONFIG_NAMES]
    candidates.append(sentinel_home() / "config.yaml")
    for p in candidates:
        if p.is_file():
            return p
    return None


def _read_yaml(p: pathlib.Path) -> Dict[str, Any]:
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read config: {e}", str(p)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping", str(p))
    return data


def _parse_rules(raw: Any, log: logging.Logger) -> Optional[List[Rule]]:
    if not isinstance(raw, list):
        log.warning("invalid or missing rules in config, using defaults: %r", raw)
        return None
    rules: List[Rule] = []
    for i, entry in enumerate(raw):
        try:
            rules.append(Rule.model_validate(entry))
        except ValidationError as e:
            log.warning("skipping invalid rule #%d %r: %s", i + 1, entry, e)
    if raw and not rules:
        log.warning("no valid rules in config, using defaults")
        return None
    return rules


def parse_config(data: Dict[str, Any], logger: Optional[logging.Logger] = None) -> SentinelConfig:
    """
    Validate a raw config mapping.

    Rules are validated one by one and invalid entries are dropped. When no
    usable rule list remains the default rules are used and the remaining
    flags are kept; invalid flags raise ConfigError.
    """
    log = logger or logging.getLogger(__name__)
    raw = dict(data)
    rules = _parse_rules(raw.pop("rules", None), log)
    if rules is None:
        rules = default_config().rules
    try:
        return SentinelConfig.model_validate({**raw, "rules": rules})
    except ValidationError as e:
        raise ConfigError(f"invalid config: {e}") from e


def load_config(path: Optional[str] = None, cwd: Optional[str] = None,
                logger: Optional[logging.Logger] = None) -> SentinelConfig:
    """
    Load the rule set and flags. Never fatal: any problem falls back to the
    built-in defaults and is logged.
    """
    log = logger or logging.getLogger(__name__)
    p = pathlib.Path(path).expanduser() if path else find_config_file(cwd)
    if p is None:
        log.warning("no config file found, using default rules")
        return default_config()
    try:
        cfg = parse_config(_read_yaml(p), logger=log)
    except ConfigError as e:
        log.error("failed to load config, using defaults: %s", e)
        return default_config()
    log.info("configuration loaded from %s (%d rules)", p, len(cfg.rules))
    return cfg


def write_default_config(path: str = "sentinel.yml") -> pathlib.Path:
    p = pathlib.Path(path).expanduser()
    if p.parent and not p.parent.exists():
        p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        yaml.safe_dump(DEFAULT_CFG, f, sort_keys=False, allow_unicode=True)
    return p
