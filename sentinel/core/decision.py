# sentinel/core/decision.py
"""
Decision state machine: risk level -> execution outcome.

  safe      allow, no interaction
  warning   one yes/no question, default No
  critical  "do you understand?" then the operator must retype the command

`auto_approve` skips both prompts and allows warning AND critical commands.
It exists for scripted callers; it is a full bypass of the gate.
"""
from __future__ import annotations

import logging
import select
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Protocol, TextIO

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from ..errors import PromptCancelled
from .context import CommandContext
from .risk import CRITICAL, SAFE, WARNING, Assessment

ALLOW, BLOCK, CONFIRM = "allow", "block", "confirm"

RULE = "━" * 50

GUIDANCE = (
    "Review the command carefully",
    "Check that you are in the right environment",
    "Consider taking a backup before proceeding",
    "Ask the team if in doubt",
)


@dataclass(frozen=True)
class Decision:
    action: str
    executed: bool
    timestamp: datetime
    user_confirmed: Optional[bool] = None


class Prompter(Protocol):
    def confirm(self, message: str, default: bool = False) -> bool: ...

    def ask(self, message: str) -> str: ...


class ConsolePrompter:
    """
    rich prompts on the given console. With `timeout` (seconds) stdin is
    polled with select and an unanswered question raises PromptCancelled.
    """

    def __init__(self, console: Optional[Console] = None, timeout: Optional[float] = None,
                 stream: Optional[TextIO] = None):
        self.console = console or Console(stderr=True)
        self.timeout = timeout
        self.stream = stream or sys.stdin

    def _timed_input(self, prompt: str) -> str:
        self.console.print(prompt, end="")
        try:
            ready, _, _ = select.select([self.stream], [], [], self.timeout)
        except KeyboardInterrupt as e:
            raise PromptCancelled("interrupted") from e
        if not ready:
            self.console.print()
            raise PromptCancelled(f"no answer within {self.timeout:g}s")
        line = self.stream.readline()
        if not line:
            raise PromptCancelled("end of input")
        return line.rstrip("\n")

    def confirm(self, message: str, default: bool = False) -> bool:
        if self.timeout is None:
            try:
                return Confirm.ask(message, console=self.console, default=default)
            except (EOFError, KeyboardInterrupt) as e:
                raise PromptCancelled("prompt cancelled") from e
        hint = "[y/n] (y)" if default else "[y/n] (n)"
        answer = self._timed_input(f"{message} {hint}: ").strip().lower()
        if not answer:
            return default
        return answer in ("y", "yes")

    def ask(self, message: str) -> str:
        if self.timeout is None:
            try:
                return Prompt.ask(message, console=self.console)
            except (EOFError, KeyboardInterrupt) as e:
                raise PromptCancelled("prompt cancelled") from e
        return self._timed_input(f"{message}: ")


class DecisionEngine:
    def __init__(
        self,
        prompter: Optional[Prompter] = None,
        console: Optional[Console] = None,
        logger: Optional[logging.Logger] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.console = console or Console(stderr=True)
        self.prompter = prompter or ConsolePrompter(self.console)
        self.log = logger or logging.getLogger(__name__)
        self.now = now or (lambda: datetime.now().astimezone())

    def decide(self, context: CommandContext, assessment: Assessment, auto_approve: bool = False) -> Decision:
        timestamp = self.now()
        if assessment.level == SAFE:
            return Decision(action=ALLOW, executed=True, timestamp=timestamp)
        if auto_approve:
            self.log.warning(
                "auto-approve bypassed %s confirmation (score=%d): %s",
                assessment.level, assessment.score, context.full_command,
            )
            return Decision(action=ALLOW, executed=True, timestamp=timestamp)
        if assessment.level == WARNING:
            return self._warning(context, assessment, timestamp)
        if assessment.level == CRITICAL:
            return self._critical(context, assessment, timestamp)
        raise ValueError(f"unknown risk level: {assessment.level!r}")

    def _confirm(self, message: str) -> bool:
        try:
            return self.prompter.confirm(message, default=False)
        except PromptCancelled as e:
            self.log.info("prompt declined: %s", e)
            return False

    def _reasons(self, assessment: Assessment, title: str, color: str) -> None:
        if not assessment.reasons:
            return
        self.console.print(f"\n[{color}]{title}[/{color}]")
        for reason in assessment.reasons:
            self.console.print(f"[{color}]  • {escape(reason)}[/{color}]")

    # ---------- warning ----------
    def _warning(self, context: CommandContext, assessment: Assessment, timestamp: datetime) -> Decision:
        c = self.console
        c.print("\n[yellow]⚠️  MODERATE RISK WARNING[/yellow]")
        c.print(f"[yellow]{RULE}[/yellow]")
        c.print(f"Command: [bold]{escape(context.full_command)}[/bold]")
        c.print(f"[yellow]Risk score: {assessment.score}/100[/yellow]")
        self._reasons(assessment, "Reasons:", "yellow")
        c.print(f"[yellow]{RULE}[/yellow]")

        proceed = self._confirm("Proceed anyway?")
        self.log.info("warning prompt answered proceed=%s: %s", proceed, context.full_command)
        return Decision(action=CONFIRM, executed=proceed, user_confirmed=proceed, timestamp=timestamp)

    # ---------- critical ----------
    def _critical(self, context: CommandContext, assessment: Assessment, timestamp: datetime) -> Decision:
        c = self.console
        c.print("\n[red]🚨 CRITICAL ALERT - DANGEROUS COMMAND DETECTED[/red]")
        c.print(f"[red]{RULE}[/red]")
        c.print(f"Command: [bold red]{escape(context.full_command)}[/bold red]")
        c.print(f"[red]Risk score: [bold]{assessment.score}[/bold]/100[/red]")
        if context.current_branch:
            c.print(f"Branch: [bold]{escape(context.current_branch)}[/bold]")
        if context.environment != "unknown":
            c.print(f"Environment: [bold]{escape(context.environment)}[/bold]")
        self._reasons(assessment, "Reasons for blocking:", "red")
        c.print(f"[red]{RULE}[/red]")
        c.print("\n[yellow]💡 Sentinel recommends:[/yellow]")
        for line in GUIDANCE:
            c.print(f"  • {line}")
        c.print()

        if not self._confirm("[red]Do you truly understand the consequences of this command?[/red]"):
            c.print("\n[green]✅ Wise decision. Command blocked.[/green]\n")
            self.log.info("critical command declined: %s", context.full_command)
            return Decision(action=BLOCK, executed=False, user_confirmed=False, timestamp=timestamp)

        try:
            typed = self.prompter.ask(f'Type the full command to confirm: "{escape(context.full_command)}"')
        except PromptCancelled as e:
            self.log.info("prompt declined: %s", e)
            typed = None
        if typed is None or typed.strip() != context.full_command.strip():
            c.print("\n[red]❌ Command does not match. Blocked for safety.[/red]\n")
            self.log.info("critical command retype mismatch: %s", context.full_command)
            return Decision(action=BLOCK, executed=False, user_confirmed=False, timestamp=timestamp)

        c.print("\n[yellow]⚠️  Proceeding at your own risk...[/yellow]\n")
        self.log.warning("critical command confirmed by operator: %s", context.full_command)
        return Decision(action=CONFIRM, executed=True, user_confirmed=True, timestamp=timestamp)
