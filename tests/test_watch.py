import json

from sentinel.ui.watch import _tail_json_lines, render_events


def write_events(path, events, junk=()):
    with open(path, "w", encoding="utf-8") as f:
        for line in junk:
            f.write(line + "\n")
        for e in events:
            f.write(json.dumps(e) + "\n")


def test_tail_missing_file(tmp_path):
    assert _tail_json_lines(str(tmp_path / "nope.jsonl")) == []


def test_tail_skips_bad_lines_and_limits(tmp_path):
    p = tmp_path / "events.jsonl"
    events = [{"command": f"cmd {i}"} for i in range(5)]
    write_events(p, events, junk=["not json", "{broken"])
    tail = _tail_json_lines(str(p), limit=3)
    assert [e["command"] for e in tail] == ["cmd 2", "cmd 3", "cmd 4"]


def test_render_empty():
    assert "No commands evaluated yet" in render_events([])


def test_render_newest_first_and_escapes_markup():
    events = [
        {"command": "ls", "riskLevel": "safe", "riskScore": 0, "executed": True, "decision": "allowed",
         "timestamp": "2024-05-15T12:00:00+00:00"},
        {"command": "echo [red]x", "riskLevel": "critical", "riskScore": 90, "executed": False,
         "decision": "blocked", "timestamp": "2024-05-15T12:01:00+00:00"},
    ]
    lines = render_events(events).splitlines()
    assert "echo \\[red]x" in lines[0]
    assert "critical" in lines[0] and "2024-05-15 12:01:00" in lines[0]
    assert "[b]ls[/b]" in lines[1]
