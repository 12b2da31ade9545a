"""
Sentinel error definitions.

Every error raised on purpose inside the gate derives from SentinelError.
Most of them never reach the operator: the config loader, the plugin loader
and the decision engine each catch their own error type and degrade
(default rules, skipped plugin, declined prompt).
"""

from __future__ import annotations

from typing import Optional


class SentinelError(Exception):
    """Base exception for all sentinel errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigError(SentinelError):
    """
    Raised when a configuration file cannot be read or validated.

    The loader catches it and falls back to the built-in default rule set.
    """

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        detail = f" ({path})" if path else ""
        super().__init__(f"{message}{detail}")
        self.path = path


class PluginLoadError(SentinelError):
    """Raised when a plugin location cannot be turned into a usable plugin."""

    def __init__(self, location: str, reason: str) -> None:
        super().__init__(f"cannot load plugin {location!r}: {reason}")
        self.location = location
        self.reason = reason


class PromptCancelled(SentinelError):
    """
    Raised by a prompter when no answer can be obtained.

    EOF on stdin, Ctrl-C and an expired input timeout all end up here. The
    decision engine treats it as the operator declining.
    """

    def __init__(self, reason: str = "prompt cancelled") -> None:
        super().__init__(reason)
