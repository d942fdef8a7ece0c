"""Risk aggregation: fold findings into per-category and total scores.

Scoring Model:
    finding score = w_severity * w_category * w_confidence
    category score = min(100, sum of finding scores in that category)
    total = clamp(round(sum(w_total[c] * category score[c])), 0, 100)

Category scores saturate at 100 rather than being rescaled, so ordering is
preserved while one noisy category cannot dominate the total beyond its
weight. The total weights sum to 1.0, which keeps the total in [0, 100].
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable

from skillscreen.core.scanner.models import (
    BREAKDOWN_FIELDS,
    CATEGORY_FIELDS,
    Confidence,
    Finding,
    FindingCategory,
    RiskBreakdown,
    Severity,
)
from skillscreen.exceptions import ConfigurationError

CATEGORY_SCORE_CAP = 100.0
WEIGHT_SUM_EPSILON = 1e-9


def _default_severity_weights() -> dict[Severity, float]:
    return {
        Severity.LOW: 5.0,
        Severity.MEDIUM: 15.0,
        Severity.HIGH: 30.0,
        Severity.CRITICAL: 50.0,
    }


def _default_category_weights() -> dict[FindingCategory, float]:
    return {
        FindingCategory.JAILBREAK: 2.0,
        FindingCategory.AI_DEFENCE: 2.0,
        FindingCategory.PRIVILEGE_ESCALATION: 1.9,
        FindingCategory.PROMPT_LEAKING: 1.8,
        FindingCategory.DATA_EXFILTRATION: 1.7,
        FindingCategory.SOCIAL_ENGINEERING: 1.5,
        FindingCategory.SUSPICIOUS_PATTERN: 1.3,
        FindingCategory.SENSITIVE_PATH: 1.2,
        FindingCategory.URL: 0.8,
    }


def _default_confidence_weights() -> dict[Confidence, float]:
    return {
        Confidence.HIGH: 1.0,
        Confidence.MEDIUM: 0.7,
        Confidence.LOW: 0.3,
    }


def _default_total_weights() -> dict[str, float]:
    return {
        "jailbreak": 0.22,
        "social_engineering": 0.12,
        "prompt_leaking": 0.12,
        "data_exfiltration": 0.10,
        "privilege_escalation": 0.11,
        "suspicious_code": 0.08,
        "sensitive_paths": 0.05,
        "external_urls": 0.05,
        "ai_defence": 0.15,
    }


@dataclass
class RiskWeights:
    """Weight tables for risk scoring.

    The severity and category multipliers are calibration constants. They
    can be replaced (for example from a YAML config file) as long as the
    ordering rules checked by ``validate()`` still hold.

    Attributes:
        severity: Multiplier per severity. Must increase LOW -> CRITICAL.
        category: Multiplier per finding category, proportional to how
            dangerous the category is.
        confidence: Multiplier per confidence. Must not decrease LOW -> HIGH.
        total: Weight of each breakdown field in the total. Must sum to 1.0.
    """

    severity: dict[Severity, float] = field(default_factory=_default_severity_weights)
    category: dict[FindingCategory, float] = field(default_factory=_default_category_weights)
    confidence: dict[Confidence, float] = field(default_factory=_default_confidence_weights)
    total: dict[str, float] = field(default_factory=_default_total_weights)

    def validate(self) -> None:
        """Raise ConfigurationError if the weight tables are inconsistent.

        Validation rules:
        1. Every table covers its full key set and every weight is a
           non-negative number.
        2. Severity weights strictly increase with severity.
        3. Confidence weights never decrease with confidence.
        4. Total weights sum to 1.0 (within 1e-9).

        Raises:
            ConfigurationError: On the first rule violated.
        """
        tables = (
            ("severity", self.severity, list(Severity)),
            ("category", self.category, list(FindingCategory)),
            ("confidence", self.confidence, list(Confidence)),
            ("total", self.total, list(BREAKDOWN_FIELDS)),
        )
        for table_name, table, keys in tables:
            missing = [k for k in keys if k not in table]
            if missing:
                names = ", ".join(getattr(k, "name", str(k)) for k in missing)
                raise ConfigurationError(f"{table_name} weights missing: {names}")
            for key in keys:
                value = table[key]
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise ConfigurationError(
                        f"{table_name} weight for {key!s} must be numeric, "
                        f"got {type(value).__name__}"
                    )
                if value < 0:
                    raise ConfigurationError(
                        f"{table_name} weight for {key!s} must be non-negative, got {value}"
                    )

        ordered = [self.severity[s] for s in sorted(Severity)]
        if any(a >= b for a, b in zip(ordered, ordered[1:])):
            raise ConfigurationError(
                f"severity weights must strictly increase LOW -> CRITICAL, got {ordered}"
            )

        conf = [self.confidence[c] for c in sorted(Confidence)]
        if any(a > b for a, b in zip(conf, conf[1:])):
            raise ConfigurationError(
                f"confidence weights must not decrease LOW -> HIGH, got {conf}"
            )

        total = sum(self.total[name] for name in BREAKDOWN_FIELDS)
        if abs(total - 1.0) > WEIGHT_SUM_EPSILON:
            raise ConfigurationError(
                f"total weights must sum to 1.0, got sum={total}"
            )

    def finding_score(self, finding: Finding) -> float:
        """Return the contribution of a single finding to its category."""
        return (
            self.severity[finding.severity]
            * self.category.get(finding.category, 1.0)
            * self.confidence[finding.confidence]
        )


DEFAULT_WEIGHTS = RiskWeights()


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_risk_score(
    findings: Iterable[Finding],
    weights: RiskWeights | None = None,
) -> tuple[int, RiskBreakdown]:
    """Fold findings into a total risk score and per-category breakdown.

    Args:
        findings: Findings from one scan. They are read, never modified.
        weights: Weight tables. Defaults to ``DEFAULT_WEIGHTS``.

    Returns:
        A ``(total, breakdown)`` pair. ``total`` is an integer in [0, 100]
        and every breakdown field is in [0, 100].
    """
    weights = weights or DEFAULT_WEIGHTS
    sums = dict.fromkeys(BREAKDOWN_FIELDS, 0.0)

    for finding in findings:
        sums[CATEGORY_FIELDS[finding.category]] += weights.finding_score(finding)

    clamped = {
        name: min(CATEGORY_SCORE_CAP, max(0.0, value))
        for name, value in sums.items()
    }
    breakdown = RiskBreakdown(**clamped)

    weighted = sum(weights.total[name] * clamped[name] for name in BREAKDOWN_FIELDS)
    total = min(100, max(0, _round_half_up(weighted)))
    return total, breakdown
