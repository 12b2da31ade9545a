import dataclasses

import pytest

from sentinel.core.context import build_context, detect_environment


def test_single_word_is_taken_verbatim():
    ctx = build_context(["  git push --force origin main "], cwd="/repo", environ={}, detect_branch=False)
    assert ctx.full_command == "git push --force origin main"
    assert ctx.binary == "git"
    assert ctx.args == ("push", "--force", "origin", "main")
    assert ctx.current_branch is None
    assert ctx.current_directory == "/repo"


def test_several_words_are_requoted():
    ctx = build_context(["git", "commit", "-m", "fix the thing"], cwd="/repo", environ={}, detect_branch=False)
    assert ctx.full_command == "git commit -m 'fix the thing'"
    assert ctx.args == ("commit", "-m", "fix the thing")


def test_unbalanced_quotes_fall_back_to_whitespace_split():
    ctx = build_context(["echo 'oops"], cwd="/repo", environ={}, detect_branch=False)
    assert ctx.binary == "echo"
    assert ctx.args == ("'oops",)


def test_explicit_branch_wins():
    ctx = build_context(["ls"], cwd="/repo", environ={}, branch="main")
    assert ctx.current_branch == "main"


def test_branch_outside_git_is_none(tmp_path):
    ctx = build_context(["ls"], cwd=str(tmp_path), environ={})
    assert ctx.current_branch is None


def test_context_is_immutable():
    ctx = build_context(["ls"], cwd="/repo", environ={}, detect_branch=False)
    with pytest.raises(dataclasses.FrozenInstanceError):
        ctx.full_command = "rm -rf /"


@pytest.mark.parametrize(
    "environ,cwd,expected",
    [
        ({"SENTINEL_ENV": "prod"}, "/x", "production"),
        ({"NODE_ENV": "Production"}, "/x", "production"),
        ({"ENVIRONMENT": "staging"}, "/x", "staging"),
        ({"NODE_ENV": "development"}, "/srv/prod-app", "development"),
        ({"SENTINEL_ENV": "dev", "NODE_ENV": "production"}, "/x", "development"),
        ({}, "/srv/prod-app", "production"),
        ({}, "/srv/staging", "staging"),
        ({}, "/home/me/code", "unknown"),
        ({"NODE_ENV": "test"}, "/home/me/code", "unknown"),
    ],
)
def test_detect_environment(environ, cwd, expected):
    assert detect_environment(environ, cwd) == expected
