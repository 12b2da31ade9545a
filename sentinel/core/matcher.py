# sentinel/core/matcher.py
"""
Glob patterns and rule conditions.

Patterns are matched case-insensitively anywhere in the full command string:
`*` is any run of characters, `?` exactly one, everything else is literal.
Nothing in this module raises; a broken pattern simply never matches.
"""
from __future__ import annotations

import functools
import re
from typing import Callable, Optional

from ..utils.schema import RuleConditions
from .context import CommandContext

Predicate = Callable[[str], bool]


def _never(_: str) -> bool:
    return False


def glob_to_regex(pattern: str) -> str:
    return "".join(
        ".*" if ch == "*" else "." if ch == "?" else re.escape(ch)
        for ch in pattern
    )


@functools.lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> Predicate:
    if not isinstance(pattern, str):
        return _never
    try:
        rx = re.compile(glob_to_regex(pattern), re.IGNORECASE | re.DOTALL)
    except re.error:
        return _never
    return lambda command: rx.search(command) is not None


def matches_pattern(command: str, pattern: str) -> bool:
    try:
        return compile_pattern(pattern)(command or "")
    except TypeError:
        # unhashable pattern from a hand-built rule
        return False


def _split_negation(value: str):
    if value.startswith("!"):
        return True, value[1:]
    return False, value


def _condition_holds(actual: Optional[str], expected: str) -> bool:
    negated, target = _split_negation(expected)
    same = actual == target
    return not same if negated else same


def conditions_satisfied(context: CommandContext, conditions: Optional[RuleConditions]) -> bool:
    """All present conditions must hold. A context without a branch never fails a branch condition."""
    if conditions is None:
        return True
    if conditions.branch and context.current_branch:
        if not _condition_holds(context.current_branch, conditions.branch):
            return False
    if conditions.env:
        if not _condition_holds(context.environment or "unknown", conditions.env):
            return False
    return True
