# sentinel/core/telemetry.py
"""
Event log and aggregate counters under $SENTINEL_HOME.

  events.jsonl  one TelemetryEvent per line, newest last, last MAX_EVENTS kept
  stats.json    TelemetryStats

Write failures are logged and swallowed: telemetry never blocks a command.
"""
from __future__ import annotations

import json
import logging
import pathlib
from typing import List, Optional

from pydantic import ValidationError

from ..utils.clock import days_since
from ..utils.env import sentinel_home
from ..utils.schema import TelemetryEvent, TelemetryStats
from .context import CommandContext
from .decision import CONFIRM, Decision
from .risk import Assessment

MAX_EVENTS = 1000


def outcome(decision: Decision) -> str:
    if not decision.executed:
        return "blocked"
    if decision.action == CONFIRM:
        return "confirmed"
    return "allowed"


def build_event(context: CommandContext, assessment: Assessment, decision: Decision) -> TelemetryEvent:
    return TelemetryEvent(
        timestamp=decision.timestamp,
        command=context.full_command,
        risk_score=assessment.score,
        risk_level=assessment.level,
        decision=outcome(decision),
        executed=decision.executed,
    )


class Telemetry:
    def __init__(self, home: Optional[pathlib.Path] = None, logger: Optional[logging.Logger] = None):
        self.home = pathlib.Path(home) if home else sentinel_home()
        self.events_path = self.home / "events.jsonl"
        self.stats_path = self.home / "stats.json"
        self.log = logger or logging.getLogger(__name__)

    def record(self, context: CommandContext, assessment: Assessment, decision: Decision) -> TelemetryEvent:
        event = build_event(context, assessment, decision)
        self.log.info(
            "command_evaluated %s",
            json.dumps({
                **event.model_dump(mode="json", by_alias=True),
                "branch": context.current_branch,
                "environment": context.environment,
                "reasons": list(assessment.reasons),
            }, ensure_ascii=False),
        )
        self.append_event(event)
        self.update_stats(event)
        return event

    # ---------- events ----------
    def append_event(self, event: TelemetryEvent) -> None:
        try:
            self.home.mkdir(parents=True, exist_ok=True)
            with self.events_path.open("a", encoding="utf-8") as f:
                f.write(event.model_dump_json(by_alias=True) + "\n")
            self._trim()
        except OSError as e:
            self.log.error("failed to append event: %s", e)

    def _trim(self) -> None:
        lines = self.events_path.read_text(encoding="utf-8", errors="ignore").splitlines()
        if len(lines) <= MAX_EVENTS:
            return
        self.events_path.write_text("\n".join(lines[-MAX_EVENTS:]) + "\n", encoding="utf-8")

    def load_events(self) -> List[TelemetryEvent]:
        try:
            lines = self.events_path.read_text(encoding="utf-8", errors="ignore").splitlines()
        except FileNotFoundError:
            return []
        except OSError as e:
            self.log.error("failed to load events: %s", e)
            return []
        events: List[TelemetryEvent] = []
        for line in lines:
            line = line.strip()
            if not line.startswith("{"):
                continue
            try:
                events.append(TelemetryEvent.model_validate_json(line))
            except ValidationError:
                continue
        return events

    def recent_events(self, limit: int = 10) -> List[TelemetryEvent]:
        """Most recent events, newest first."""
        if limit <= 0:
            return []
        return list(reversed(self.load_events()[-limit:]))

    # ---------- stats ----------
    def load_stats(self) -> TelemetryStats:
        try:
            return TelemetryStats.model_validate_json(self.stats_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return TelemetryStats()
        except (OSError, ValidationError) as e:
            self.log.error("failed to load stats: %s", e)
            return TelemetryStats()

    def update_stats(self, event: TelemetryEvent) -> TelemetryStats:
        stats = self.load_stats()
        stats.total_commands += 1
        if event.decision == "blocked":
            stats.blocked_commands += 1
        if event.executed:
            stats.executed_commands += 1
        stats.risk_distribution[event.risk_level] = stats.risk_distribution.get(event.risk_level, 0) + 1

        if event.risk_level == "critical" and event.executed:
            stats.last_incident = event.timestamp
            stats.days_without_incident = 0
        elif stats.last_incident:
            stats.days_without_incident = days_since(stats.last_incident, event.timestamp)

        self.save_stats(stats)
        return stats

    def save_stats(self, stats: TelemetryStats) -> None:
        try:
            self.home.mkdir(parents=True, exist_ok=True)
            self.stats_path.write_text(stats.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        except OSError as e:
            self.log.error("failed to save stats: %s", e)
