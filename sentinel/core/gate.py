# sentinel/core/gate.py
"""
Execution gate and the end-to-end pipeline.

    context -> RiskAssessor -> PluginPipeline -> DecisionEngine
            -> telemetry + plugin on_event -> ExecutionGate

`guard()` is the single entry point used by the CLI: it never raises and
always returns the process exit status.
"""
from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from rich.console import Console
from rich.markup import escape

from ..utils.clock import Clock
from ..utils.config import load_config
from ..utils.logger import apply_log_level
from ..utils.schema import SentinelConfig, TelemetryEvent
from .context import CommandContext, build_context
from .decision import ConsolePrompter, Decision, DecisionEngine, Prompter
from .plugins import PluginPipeline
from .risk import Assessment, RiskAssessor
from .telemetry import Telemetry, build_event


@dataclass
class GuardOptions:
    config_path: Optional[str] = None
    auto_approve: bool = False
    analyze_only: bool = False
    emit_json: bool = False


@dataclass(frozen=True)
class GuardResult:
    context: CommandContext
    assessment: Assessment
    decision: Decision
    event: TelemetryEvent

    def to_dict(self) -> dict:
        return {
            "command": self.context.full_command,
            "branch": self.context.current_branch,
            "environment": self.context.environment,
            "score": self.assessment.score,
            "level": self.assessment.level,
            "reasons": list(self.assessment.reasons),
            "matchedRules": [r.model_dump(exclude_none=True) for r in self.assessment.matched_rules],
            "decision": {
                "action": self.decision.action,
                "executed": self.decision.executed,
                "userConfirmed": self.decision.user_confirmed,
                "timestamp": self.decision.timestamp.isoformat(),
            },
        }


class ExecutionGate:
    def __init__(
        self,
        console: Optional[Console] = None,
        logger: Optional[logging.Logger] = None,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        self.console = console or Console(stderr=True)
        self.log = logger or logging.getLogger(__name__)
        self.runner = runner

    def run(self, context: CommandContext, decision: Decision, analyze_only: bool = False) -> int:
        if analyze_only:
            return 0 if decision.executed else 1
        if not decision.executed:
            self.console.print("\n[green]🛡️  Sentinel blocked the command for safety[/green]\n")
            return 1

        self.console.print("\n[cyan]⚡ Running command...[/cyan]\n")
        try:
            # streams are inherited: no capture, no pipes
            proc = self.runner(context.full_command, shell=True, check=False)
        except OSError as e:
            self.log.error("failed to spawn command %r: %s", context.full_command, e)
            self.console.print(f"\n[red]❌ Could not start command:[/red] {escape(str(e))}\n")
            return 1

        code = proc.returncode
        if code < 0:
            # killed by a signal; report it the way a shell does
            code = 128 - code
        if code == 0:
            self.console.print("\n[green]✅ Command finished successfully[/green]\n")
        else:
            self.console.print(f"\n[red]❌ Command failed (exit {code})[/red]\n")
        self.log.info("command exited with %d: %s", code, context.full_command)
        return code


class Sentinel:
    """Wires the assessment, plugin and decision stages for one configuration."""

    def __init__(
        self,
        config: SentinelConfig,
        plugins: Optional[PluginPipeline] = None,
        decisions: Optional[DecisionEngine] = None,
        telemetry: Optional[Telemetry] = None,
        logger: Optional[logging.Logger] = None,
        now: Optional[Clock] = None,
    ):
        self.config = config
        self.log = logger or logging.getLogger(__name__)
        self.assessor = RiskAssessor(config, now=now)
        self.plugins = plugins or PluginPipeline(logger=self.log)
        self.decisions = decisions or DecisionEngine(logger=self.log)
        self.telemetry = telemetry

    def evaluate(self, context: CommandContext, auto_approve: bool = False) -> GuardResult:
        self.log.info("command received: %s", context.full_command)
        base = self.assessor.assess(context)
        assessment = self.plugins.reassess(context, base)
        self.log.info(
            "risk assessment completed: score=%d level=%s reasons=%s",
            assessment.score, assessment.level, list(assessment.reasons),
        )

        decision = self.decisions.decide(context, assessment, auto_approve=auto_approve)

        if self.config.telemetry_enabled and self.telemetry is not None:
            event = self.telemetry.record(context, assessment, decision)
        else:
            event = build_event(context, assessment, decision)
        self.plugins.notify(event)
        return GuardResult(context=context, assessment=assessment, decision=decision, event=event)


def guard(
    argv: Sequence[str],
    options: Optional[GuardOptions] = None,
    console: Optional[Console] = None,
    prompter: Optional[Prompter] = None,
    telemetry: Optional[Telemetry] = None,
    gate: Optional[ExecutionGate] = None,
    logger: Optional[logging.Logger] = None,
) -> int:
    options = options or GuardOptions()
    log = logger or logging.getLogger("sentinel")
    err = console or Console(stderr=True)
    try:
        config = load_config(options.config_path, logger=log)
        apply_log_level(config.log_level)
        if config.strict_mode:
            log.info("strict mode is enabled (advisory only)")

        context = build_context(argv)
        if not context.full_command:
            err.print("[red][!] no command given[/red]")
            return 1

        prompter = prompter or ConsolePrompter(err, timeout=config.prompt_timeout)
        plugins = PluginPipeline.from_locations(config.plugins, logger=log)
        if plugins.names:
            log.info("plugins loaded: %s", plugins.names)

        sentinel = Sentinel(
            config,
            plugins=plugins,
            decisions=DecisionEngine(prompter=prompter, console=err, logger=log),
            telemetry=telemetry or Telemetry(logger=log),
            logger=log,
        )
        result = sentinel.evaluate(context, auto_approve=options.auto_approve)

        if options.emit_json:
            print(json.dumps(result.to_dict(), ensure_ascii=False))

        gate = gate or ExecutionGate(console=err, logger=log)
        return gate.run(context, result.decision, analyze_only=options.analyze_only)
    except Exception as e:
        log.exception("unexpected error")
        err.print(f"\n[red]❌ Unexpected error:[/red] {escape(str(e))}")
        return 1
