# sentinel/core/risk.py
"""
Risk assessment: configured rules plus built-in heuristics.

    score = sum(rule base scores) + sum(heuristic deltas)
    score = clamp(score, 0, 100)
    level = classify(score)

Heuristics read the clock at evaluation time, so assessing the same context
twice can differ across real-world time. Pass `now` to pin it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from ..utils.clock import Clock, is_late_night, is_weekend
from ..utils.schema import Rule, SentinelConfig
from .context import CommandContext
from .matcher import conditions_satisfied, matches_pattern

SAFE, WARNING, CRITICAL = "safe", "warning", "critical"

CRITICAL_THRESHOLD = 70
WARNING_THRESHOLD = 40

RULE_SCORES = {SAFE: 0, WARNING: 40, CRITICAL: 80}

DESTRUCTIVE_KEYWORDS = ("delete", "drop", "remove", "reset", "destroy", "purge", "truncate")
MAIN_BRANCHES = ("main", "master")

GLOBAL_INTERCEPT_SCORE = 40
GLOBAL_INTERCEPT_REASON = "Global monitoring active: command intercepted for review."


def clamp_score(score: int) -> int:
    return max(0, min(100, int(score)))


def classify(score: int) -> str:
    if score >= CRITICAL_THRESHOLD:
        return CRITICAL
    if score >= WARNING_THRESHOLD:
        return WARNING
    return SAFE


@dataclass(frozen=True)
class Assessment:
    score: int
    level: str
    matched_rules: Tuple[Rule, ...] = ()
    reasons: Tuple[str, ...] = ()


@dataclass
class RuleEvaluation:
    score: int = 0
    matched: List[Rule] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)


class RuleEvaluator:
    def __init__(self, rules: Sequence[Rule]):
        self.rules = tuple(rules)

    def evaluate(self, context: CommandContext) -> RuleEvaluation:
        out = RuleEvaluation()
        for rule in self.rules:
            if not matches_pattern(context.full_command, rule.pattern):
                continue
            if not conditions_satisfied(context, rule.conditions):
                continue
            out.matched.append(rule)
            out.reasons.append(rule.message)
            out.score += RULE_SCORES.get(rule.level, 0)
        return out


class HeuristicScorer:
    """Fixed, ordered checks; every one is evaluated, none excludes another."""

    def __init__(self, now: Optional[Clock] = None):
        self.now = now or datetime.now

    def score(self, context: CommandContext) -> Tuple[int, List[str]]:
        total = 0
        reasons: List[str] = []
        command = context.full_command.lower()
        now = self.now()

        def hit(delta: int, reason: str) -> None:
            nonlocal total
            total += delta
            reasons.append(reason)

        if context.current_branch in MAIN_BRANCHES:
            hit(20, "Operation on the main branch detected")
        if context.environment == "production":
            hit(25, "Production environment detected")
        if any("--force" in a or "-f" in a for a in context.args):
            hit(30, "Force flag detected")
        if any(k in command for k in DESTRUCTIVE_KEYWORDS):
            hit(25, "Destructive command detected")
        if is_late_night(now):
            hit(15, "Nothing good happens after 10pm")
        if is_weekend(now) and "deploy" in command:
            hit(20, "Deploying on the weekend? Your plans deserve better.")
        if "migrate" in command:
            hit(15, "Database migration detected")
        return total, reasons


class RiskAssessor:
    def __init__(self, config: SentinelConfig, now: Optional[Clock] = None):
        self.config = config
        self.rules = RuleEvaluator(config.rules)
        self.heuristics = HeuristicScorer(now)

    def assess(self, context: CommandContext) -> Assessment:
        by_rules = self.rules.evaluate(context)
        delta, heuristic_reasons = self.heuristics.score(context)
        reasons = by_rules.reasons + heuristic_reasons

        score = clamp_score(by_rules.score + delta)
        level = classify(score)
        if self.config.global_intercept and level == SAFE:
            score, level = GLOBAL_INTERCEPT_SCORE, WARNING
            reasons.append(GLOBAL_INTERCEPT_REASON)

        return Assessment(
            score=score,
            level=level,
            matched_rules=tuple(by_rules.matched),
            reasons=tuple(reasons),
        )
