# sentinel/ui/watch.py
from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.widgets import Static

LEVEL_COLOR = {"safe": "green", "warning": "yellow", "critical": "red"}


def _tail_json_lines(path: str, limit: int = 20) -> List[Dict[str, Any]]:
    """Return up to `limit` valid JSON objects from the end of a jsonl file, newest last."""
    if not os.path.isfile(path):
        return []
    try:
        with open(path, "rb") as f:
            try:
                f.seek(-16384, os.SEEK_END)
            except OSError:
                f.seek(0)
            chunk = f.read().decode("utf-8", errors="ignore").splitlines()
    except OSError:
        return []
    out: List[Dict[str, Any]] = []
    for line in reversed(chunk):
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            out.append(json.loads(line))
        except json.JSONDecodeError:
            continue
        if len(out) >= limit:
            break
    return list(reversed(out))


def render_events(events: List[Dict[str, Any]]) -> str:
    if not events:
        return "[dim]No commands evaluated yet.[/dim]"
    lines: List[str] = []
    for evt in reversed(events):
        level = str(evt.get("riskLevel", "") or "")
        color = LEVEL_COLOR.get(level, "white")
        status = "[green]✓[/green]" if evt.get("executed") else "[red]✗[/red]"
        ts = str(evt.get("timestamp", "") or "")[:19].replace("T", " ")
        lines.append(
            f"{status} [dim]{ts}[/dim] [{color}]{level.ljust(8)} {evt.get('riskScore', '?'):>3}[/{color}] "
            f"[b]{escape(str(evt.get('command', '')))}[/b]  [dim]{evt.get('decision', '')}[/dim]"
        )
    return "\n".join(lines)


class SentinelWatch(App):
    """
    Read-only live view of the event log:
      • Title + status bar
      • Newest-first list of evaluated commands
    """

    CSS = """
    Screen { layout: vertical; }
    #title  { height: 1; content-align: center middle; }
    #status { height: 1; padding: 0 1; }
    #events { height: 1fr; padding: 0 1; overflow: auto; }
    """

    BINDINGS = [("q", "quit", "Quit")]

    def __init__(self, events_path: str, limit: int = 50):
        super().__init__()
        self.events_path = os.path.expanduser(events_path)
        self.limit = limit
        self._last_mtime: float = 0.0
        self.status: Optional[Static] = None
        self.events: Optional[Static] = None

    def compose(self) -> ComposeResult:
        self.status = Static(f"following: {self.events_path}", id="status")
        self.events = Static(render_events([]), id="events")
        yield Vertical(Static("🛡️  sentinel", id="title"), self.status, self.events)

    def on_mount(self) -> None:
        self.set_interval(0.5, self._tick)
        self._tick()

    def _tick(self) -> None:
        try:
            mtime = os.path.getmtime(self.events_path)
        except OSError:
            mtime = 0.0
        if mtime <= self._last_mtime:
            return
        self._last_mtime = mtime

        events = _tail_json_lines(self.events_path, self.limit)
        if self.status is not None:
            blocked = sum(1 for e in events if not e.get("executed"))
            self.status.update(f"following: {self.events_path}    |    shown: {len(events)}  blocked: {blocked}")
        if self.events is not None:
            self.events.update(render_events(events))


def run_watch(events_path: str, limit: int = 50) -> None:
    SentinelWatch(events_path=events_path, limit=limit).run()
