# sentinel/plugins/branch_guard.py
from __future__ import annotations

import logging

from ..core.context import CommandContext
from ..core.plugins import Plugin, register
from ..utils.schema import TelemetryEvent

DANGEROUS_OPS = ("push", "deploy", "publish", "delete", "drop", "reset")


@register("branch-guard")
class BranchGuardPlugin(Plugin):
    """
    Extra weight for risky operations on main/master and in production.

      +15 once, when on main/master and the command mentions one of DANGEROUS_OPS
      +10 in the production environment
    """

    name = "branch-guard"

    def __init__(self, logger: logging.Logger | None = None):
        self.log = logger or logging.getLogger(__name__)

    def evaluate(self, context: CommandContext, score: int) -> int:
        command = context.full_command.lower()
        if context.current_branch in ("main", "master"):
            op = next((op for op in DANGEROUS_OPS if op in command), None)
            if op:
                score += 15
                self.log.info("branch-guard: +15 for %s on %s", op, context.current_branch)
        if context.environment == "production":
            score += 10
            self.log.info("branch-guard: +10 for production environment")
        return score

    def on_event(self, event: TelemetryEvent) -> None:
        if event.risk_level == "critical" and event.executed:
            self.log.warning("branch-guard: critical command executed: %s", event.command)
