# sentinel/ui/stats.py
from __future__ import annotations

from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.telemetry import Telemetry
from ..utils.schema import TelemetryEvent, TelemetryStats

WIDTH = 64
LEVEL_STYLE = {"safe": ("green", "✓"), "warning": ("yellow", "⚠"), "critical": ("red", "✖")}


def bar(value: int, total: int, length: int = 30) -> str:
    filled = round((value / total) * length) if total > 0 else 0
    return "█" * filled + "░" * (length - filled)


def truncate(s: str, n: int) -> str:
    return s if len(s) <= n else s[: n - 3] + "..."


def pct(value: int, total: int) -> str:
    return f"{(value / total) * 100:.1f}" if total > 0 else "0.0"


def days_message(days: int) -> str:
    if days == 0:
        return "[bold red]0 😬 (it was today...)[/bold red]"
    if days == 1:
        return "[bold yellow]1 🤞 (yesterday was tense)[/bold yellow]"
    if days < 7:
        return f"[yellow]{days} 👍 (getting better)[/yellow]"
    if days < 30:
        return f"[green]{days} 🎯 (nice streak!)[/green]"
    return f"[bold green]{days} 🏆 (legendary!)[/bold green]"


def footer_hint(stats: TelemetryStats) -> str:
    if stats.blocked_commands > stats.executed_commands * 0.5:
        return "[yellow]  💡 Sentinel saved you several times. Consider reviewing your workflows.[/yellow]"
    if stats.risk_distribution.get("critical", 0) > 5:
        return "[yellow]  ⚠️  Many critical commands detected. Prudence is key.[/yellow]"
    if stats.days_without_incident > 30:
        return "[green]  🌟 Excellent! You are mastering the art of technical caution.[/green]"
    return "[cyan]  🛡️  Sentinel is watching. Keep operating mindfully.[/cyan]"


class StatsDisplay:
    def __init__(self, telemetry: Telemetry, console: Optional[Console] = None):
        self.telemetry = telemetry
        self.console = console or Console()

    def display(self, recent: int = 5) -> None:
        stats = self.telemetry.load_stats()
        events = self.telemetry.recent_events(recent)
        c = self.console
        c.print()
        c.rule("[bold]🛡️  SENTINEL STATS[/bold]", style="cyan")
        c.print()
        self._overview(stats)
        self._distribution(stats)
        self._incidents(stats)
        self._recent(events)
        c.print("[dim]" + "─" * WIDTH + "[/dim]")
        c.print(footer_hint(stats))
        c.print("[dim]" + "─" * WIDTH + "[/dim]")

    def _section(self, title: str) -> None:
        self.console.print(f"[bold]{title}[/bold]")
        self.console.print("[dim]" + "─" * WIDTH + "[/dim]")

    def _overview(self, stats: TelemetryStats) -> None:
        self._section("📊 Overview")
        total = stats.total_commands
        self.console.print(f"  Commands evaluated:  [bold cyan]{total}[/bold cyan]")
        self.console.print(
            f"  Commands executed:   [bold green]{stats.executed_commands}[/bold green] "
            f"({pct(stats.executed_commands, total)}%)"
        )
        self.console.print(
            f"  Commands blocked:    [bold red]{stats.blocked_commands}[/bold red] "
            f"({pct(stats.blocked_commands, total)}%)"
        )
        self.console.print()

    def _distribution(self, stats: TelemetryStats) -> None:
        self._section("⚠️  Risk distribution")
        total = stats.total_commands or 1
        for level, (color, icon) in LEVEL_STYLE.items():
            n = stats.risk_distribution.get(level, 0)
            label = f"{level.capitalize()}:".ljust(9)
            self.console.print(f"[{color}]  {icon} {label} {bar(n, total)} {n} ({pct(n, total)}%)[/{color}]")
        self.console.print()

    def _incidents(self, stats: TelemetryStats) -> None:
        self._section("🚨 Incidents")
        if stats.last_incident:
            when = stats.last_incident.strftime("%Y-%m-%d %H:%M")
            self.console.print(f"  Last incident:       [yellow]{when}[/yellow]")
            self.console.print(f"  Days without one:    {days_message(stats.days_without_incident)}")
        else:
            self.console.print("[green]  🎉 No critical incident recorded![/green]")
            self.console.print("  Keep it up, you are doing well.")
        self.console.print()

    def _recent(self, events: List[TelemetryEvent]) -> None:
        if not events:
            return
        self._section("📜 Recent events")
        table = Table(show_header=False, box=None, padding=(0, 1))
        for e in events:
            color, icon = LEVEL_STYLE.get(e.risk_level, ("white", "?"))
            status = "[green]✓[/green]" if e.executed else "[red]✗[/red]"
            table.add_row(
                status,
                f"[{color}]{icon}[/{color}]",
                f"[dim]{e.timestamp.strftime('%b %d %H:%M')}[/dim]",
                f"[{color}]{e.risk_level.ljust(8)}[/{color}]",
                escape(truncate(e.command, 35)),
            )
        self.console.print(table)
        self.console.print()


def run_stats(recent: int = 5) -> None:
    StatsDisplay(Telemetry()).display(recent=recent)
