import io
from datetime import datetime

import pytest
from rich.console import Console

from sentinel.core.decision import ConsolePrompter, DecisionEngine
from sentinel.core.risk import Assessment
from sentinel.errors import PromptCancelled

from conftest import ScriptedPrompter, make_context

FIXED = datetime(2024, 5, 15, 12, 0).astimezone()

SAFE = Assessment(score=10, level="safe")
WARN = Assessment(score=55, level="warning", reasons=("Force flag detected",))
CRIT = Assessment(score=95, level="critical", reasons=("Destructive command detected",))


def engine(answers, console):
    prompter = ScriptedPrompter(answers)
    return DecisionEngine(prompter=prompter, console=console, now=lambda: FIXED), prompter


def test_safe_allows_without_prompting(quiet_console):
    eng, prompter = engine([], quiet_console)
    d = eng.decide(make_context("ls -la"), SAFE)
    assert (d.action, d.executed, d.user_confirmed) == ("allow", True, None)
    assert d.timestamp == FIXED
    assert prompter.asked == []


@pytest.mark.parametrize("answer", [True, False])
def test_warning_single_question(quiet_console, answer):
    eng, prompter = engine([answer], quiet_console)
    d = eng.decide(make_context("git push --force"), WARN)
    assert d.action == "confirm"
    assert d.executed is answer
    assert d.user_confirmed is answer
    assert len(prompter.asked) == 1


def test_warning_cancelled_prompt_declines(quiet_console):
    eng, _ = engine([PromptCancelled("eof")], quiet_console)
    d = eng.decide(make_context("git push --force"), WARN)
    assert (d.action, d.executed, d.user_confirmed) == ("confirm", False, False)


def test_warning_shows_command_score_and_reasons(quiet_console):
    eng, _ = engine([False], quiet_console)
    eng.decide(make_context("git push --force"), WARN)
    out = quiet_console.file.getvalue()
    assert "git push --force" in out
    assert "55/100" in out
    assert "Force flag detected" in out


def test_critical_declined_understanding_blocks_immediately(quiet_console):
    eng, prompter = engine([False], quiet_console)
    d = eng.decide(make_context("rm -rf /"), CRIT)
    assert (d.action, d.executed) == ("block", False)
    assert len(prompter.asked) == 1


def test_critical_retype_mismatch_blocks(quiet_console):
    eng, prompter = engine([True, "rm -rf /home"], quiet_console)
    d = eng.decide(make_context("rm -rf /"), CRIT)
    assert (d.action, d.executed) == ("block", False)
    assert len(prompter.asked) == 2


def test_critical_exact_retype_confirms(quiet_console):
    eng, _ = engine([True, "  rm -rf /  "], quiet_console)
    d = eng.decide(make_context("rm -rf /"), CRIT)
    assert (d.action, d.executed, d.user_confirmed) == ("confirm", True, True)


def test_critical_retype_is_case_sensitive(quiet_console):
    eng, _ = engine([True, "RM -RF /"], quiet_console)
    assert eng.decide(make_context("rm -rf /"), CRIT).executed is False


def test_critical_cancelled_retype_blocks(quiet_console):
    eng, _ = engine([True, PromptCancelled("interrupted")], quiet_console)
    d = eng.decide(make_context("rm -rf /"), CRIT)
    assert (d.action, d.executed) == ("block", False)


def test_critical_shows_branch_and_known_environment(quiet_console):
    eng, _ = engine([False], quiet_console)
    eng.decide(make_context("terraform destroy", branch="main", environment="production"), CRIT)
    out = quiet_console.file.getvalue()
    assert "Branch: main" in out
    assert "Environment: production" in out
    assert "Destructive command detected" in out


def test_critical_hides_unknown_environment(quiet_console):
    eng, _ = engine([False], quiet_console)
    eng.decide(make_context("terraform destroy"), CRIT)
    out = quiet_console.file.getvalue()
    assert "Branch:" not in out
    assert "Environment:" not in out


@pytest.mark.parametrize("assessment", [WARN, CRIT])
def test_auto_approve_bypasses_prompts(quiet_console, assessment, caplog):
    eng, prompter = engine([], quiet_console)
    d = eng.decide(make_context("rm -rf /"), assessment, auto_approve=True)
    assert (d.action, d.executed) == ("allow", True)
    assert prompter.asked == []
    assert "auto-approve bypassed" in caplog.text


def test_console_prompter_confirm_reads_rich_prompt():
    console = Console(file=io.StringIO())
    prompter = ConsolePrompter(console=console)
    console.input = lambda *a, **kw: "y"
    assert prompter.confirm("Proceed anyway?") is True


def test_console_prompter_eof_is_cancelled():
    console = Console(file=io.StringIO())

    def eof(*a, **kw):
        raise EOFError

    console.input = eof
    prompter = ConsolePrompter(console=console)
    with pytest.raises(PromptCancelled):
        prompter.confirm("Proceed anyway?")
    with pytest.raises(PromptCancelled):
        prompter.ask("Type the command")


def test_console_prompter_timeout_expires(monkeypatch):
    import sentinel.core.decision as decision

    monkeypatch.setattr(decision.select, "select", lambda r, w, x, t: ([], [], []))
    prompter = ConsolePrompter(console=Console(file=io.StringIO()), timeout=0.5, stream=io.StringIO("y\n"))
    with pytest.raises(PromptCancelled):
        prompter.confirm("Proceed anyway?")


@pytest.mark.parametrize("line,expected", [("y\n", True), ("yes\n", True), ("n\n", False), ("\n", False), ("maybe\n", False)])
def test_console_prompter_timed_answers(monkeypatch, line, expected):
    import sentinel.core.decision as decision

    monkeypatch.setattr(decision.select, "select", lambda r, w, x, t: (r, [], []))
    prompter = ConsolePrompter(console=Console(file=io.StringIO()), timeout=5, stream=io.StringIO(line))
    assert prompter.confirm("Proceed anyway?") is expected


def test_console_prompter_timed_ask_and_eof(monkeypatch):
    import sentinel.core.decision as decision

    monkeypatch.setattr(decision.select, "select", lambda r, w, x, t: (r, [], []))
    prompter = ConsolePrompter(console=Console(file=io.StringIO()), timeout=5, stream=io.StringIO("rm -rf /\n"))
    assert prompter.ask("Type the command") == "rm -rf /"
    with pytest.raises(PromptCancelled):
        prompter.ask("again")
