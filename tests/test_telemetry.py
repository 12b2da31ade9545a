import json
from datetime import datetime, timedelta, timezone

from sentinel.core import telemetry as telemetry_mod
from sentinel.core.decision import Decision
from sentinel.core.risk import Assessment
from sentinel.core.telemetry import Telemetry, build_event, outcome

from conftest import make_context

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def decision(action, executed, ts=T0):
    return Decision(action=action, executed=executed, timestamp=ts)


def test_outcome_mapping():
    assert outcome(decision("allow", True)) == "allowed"
    assert outcome(decision("confirm", True)) == "confirmed"
    assert outcome(decision("confirm", False)) == "blocked"
    assert outcome(decision("block", False)) == "blocked"


def test_build_event_fields():
    e = build_event(make_context("rm -rf /"), Assessment(score=90, level="critical"), decision("block", False))
    assert e.command == "rm -rf /"
    assert (e.risk_score, e.risk_level, e.decision, e.executed) == (90, "critical", "blocked", False)
    assert e.timestamp == T0


def test_record_appends_jsonl_with_camel_case(tmp_path):
    t = Telemetry(home=tmp_path)
    t.record(make_context("ls"), Assessment(score=0, level="safe"), decision("allow", True))
    line = (tmp_path / "events.jsonl").read_text().strip()
    data = json.loads(line)
    assert data["riskScore"] == 0
    assert data["riskLevel"] == "safe"
    assert data["decision"] == "allowed"
    assert t.load_events()[0].command == "ls"


def test_stats_accounting(tmp_path):
    t = Telemetry(home=tmp_path)
    t.record(make_context("ls"), Assessment(score=0, level="safe"), decision("allow", True))
    t.record(make_context("git push -f"), Assessment(score=55, level="warning"), decision("confirm", False))
    t.record(make_context("rm -rf /"), Assessment(score=95, level="critical"), decision("block", False))
    stats = t.load_stats()
    assert stats.total_commands == 3
    assert stats.executed_commands == 1
    assert stats.blocked_commands == 2
    assert stats.risk_distribution == {"safe": 1, "warning": 1, "critical": 1}
    assert stats.last_incident is None

    raw = json.loads((tmp_path / "stats.json").read_text())
    assert raw["totalCommands"] == 3
    assert raw["riskDistribution"]["critical"] == 1


def test_executed_critical_is_an_incident(tmp_path):
    t = Telemetry(home=tmp_path)
    t.record(make_context("rm -rf /"), Assessment(score=95, level="critical"), decision("confirm", True, T0))
    stats = t.load_stats()
    assert stats.last_incident == T0
    assert stats.days_without_incident == 0

    later = T0 + timedelta(days=3, hours=2)
    t.record(make_context("ls"), Assessment(score=0, level="safe"), decision("allow", True, later))
    assert t.load_stats().days_without_incident == 3


def test_recent_events_newest_first(tmp_path):
    t = Telemetry(home=tmp_path)
    for i in range(4):
        t.record(make_context(f"echo {i}"), Assessment(score=0, level="safe"), decision("allow", True))
    assert [e.command for e in t.recent_events(2)] == ["echo 3", "echo 2"]
    assert t.recent_events(0) == []


def test_event_log_is_trimmed(tmp_path, monkeypatch):
    monkeypatch.setattr(telemetry_mod, "MAX_EVENTS", 3)
    t = Telemetry(home=tmp_path)
    for i in range(5):
        t.record(make_context(f"echo {i}"), Assessment(score=0, level="safe"), decision("allow", True))
    assert [e.command for e in t.load_events()] == ["echo 2", "echo 3", "echo 4"]
    assert t.load_stats().total_commands == 5


def test_corrupt_files_do_not_break_loading(tmp_path):
    (tmp_path / "events.jsonl").write_text('not json\n{"command": "partial"}\n')
    (tmp_path / "stats.json").write_text("{broken")
    t = Telemetry(home=tmp_path)
    assert t.load_events() == []
    assert t.load_stats().total_commands == 0


def test_missing_files(tmp_path):
    t = Telemetry(home=tmp_path / "nowhere")
    assert t.load_events() == []
    assert t.recent_events() == []
    assert t.load_stats().total_commands == 0
