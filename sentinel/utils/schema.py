from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

LEVEL_PATTERN = "^(safe|warning|critical)$"


class RuleConditions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    branch: Optional[str] = None
    env: Optional[str] = None


class Rule(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    pattern: str
    level: str = Field(pattern=LEVEL_PATTERN)
    message: str = ""
    conditions: Optional[RuleConditions] = None


class SentinelConfig(BaseModel):
    # camelCase keys as written in sentinel.yml; snake_case accepted too
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    rules: List[Rule] = []
    global_intercept: bool = Field(default=False, alias="globalIntercept")
    plugins: List[str] = []
    telemetry_enabled: bool = Field(default=True, alias="telemetryEnabled")
    strict_mode: bool = Field(default=False, alias="strictMode")
    log_level: str = Field(default="info", alias="logLevel", pattern="^(debug|info|warning|error)$")
    prompt_timeout: Optional[float] = Field(default=None, alias="promptTimeout", gt=0)


class TelemetryEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    timestamp: datetime
    command: str
    risk_score: int = Field(alias="riskScore", ge=0, le=100)
    risk_level: str = Field(alias="riskLevel", pattern=LEVEL_PATTERN)
    decision: str = Field(pattern="^(allowed|blocked|confirmed)$")
    executed: bool


def _empty_distribution() -> Dict[str, int]:
    return {"safe": 0, "warning": 0, "critical": 0}


class TelemetryStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_commands: int = Field(default=0, alias="totalCommands")
    blocked_commands: int = Field(default=0, alias="blockedCommands")
    executed_commands: int = Field(default=0, alias="executedCommands")
    risk_distribution: Dict[str, int] = Field(default_factory=_empty_distribution, alias="riskDistribution")
    last_incident: Optional[datetime] = Field(default=None, alias="lastIncident")
    days_without_incident: int = Field(default=0, alias="daysWithoutIncident")
