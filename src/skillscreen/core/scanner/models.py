"""Data models for the content risk scanner.

These are the core data types produced and consumed by the scanning
pipeline. They are intentionally decoupled from the scanning engine so that
downstream modules (formatters, batch triage, CLI) can import them without
pulling in the pattern catalogs or detector logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Iterable

from skillscreen.exceptions import ConfigurationError

if TYPE_CHECKING:
    import re

    from skillscreen.core.scanner.risk import RiskWeights


# ---------------------------------------------------------------------------
# Severity and confidence: ordered levels
# ---------------------------------------------------------------------------


class Severity(IntEnum):
    """Four-level severity scale for scan findings.

    The integer encoding enables direct comparison: LOW < MEDIUM < HIGH < CRITICAL.
    """

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    def lowered(self) -> Severity:
        """Return the severity one notch below this one, bottoming out at LOW."""
        return Severity(max(Severity.LOW, self - 1))


class Confidence(IntEnum):
    """How likely a finding is to be a live instruction rather than an example.

    Findings inside documentation context (code fences, tables, indented
    code) carry LOW confidence.
    """

    LOW = 1
    MEDIUM = 2
    HIGH = 3


class FindingCategory(str, Enum):
    """The closed set of finding categories, one per detector."""

    URL = "url"
    SENSITIVE_PATH = "sensitive_path"
    JAILBREAK = "jailbreak"
    SUSPICIOUS_PATTERN = "suspicious_pattern"
    SOCIAL_ENGINEERING = "social_engineering"
    PROMPT_LEAKING = "prompt_leaking"
    DATA_EXFILTRATION = "data_exfiltration"
    PRIVILEGE_ESCALATION = "privilege_escalation"
    AI_DEFENCE = "ai_defence"


# ---------------------------------------------------------------------------
# Finding: a single detected issue
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Finding:
    """A single security finding produced by a category detector.

    Findings are immutable (frozen): the risk aggregator folds them into
    scores but never rewrites them.

    Attributes:
        category: Which detector produced the finding.
        severity: Threat severity (LOW through CRITICAL).
        message: Human-readable description of the finding.
        location: The matched text or line, truncated to 100 characters.
            None for whole-document findings.
        line_number: 1-based line of the match. None for whole-document
            findings such as the oversized-content notice.
        confidence: LOW when the match sits in documentation context.
        in_documentation_context: True when the matched line is inside a
            code fence, table row, or indented code block.
    """

    category: FindingCategory
    severity: Severity
    message: str
    location: str | None = None
    line_number: int | None = None
    confidence: Confidence = Confidence.HIGH
    in_documentation_context: bool = False


# ---------------------------------------------------------------------------
# RiskBreakdown: per-category scores
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RiskBreakdown:
    """Per-category risk scores, each clamped to [0, 100]."""

    jailbreak: float = 0.0
    social_engineering: float = 0.0
    prompt_leaking: float = 0.0
    data_exfiltration: float = 0.0
    privilege_escalation: float = 0.0
    suspicious_code: float = 0.0
    sensitive_paths: float = 0.0
    external_urls: float = 0.0
    ai_defence: float = 0.0

    def as_dict(self) -> dict[str, float]:
        """Return the breakdown as an ordered name -> score mapping."""
        return {name: getattr(self, name) for name in BREAKDOWN_FIELDS}


# Breakdown field fed by each finding category.
CATEGORY_FIELDS: dict[FindingCategory, str] = {
    FindingCategory.JAILBREAK: "jailbreak",
    FindingCategory.SOCIAL_ENGINEERING: "social_engineering",
    FindingCategory.PROMPT_LEAKING: "prompt_leaking",
    FindingCategory.DATA_EXFILTRATION: "data_exfiltration",
    FindingCategory.PRIVILEGE_ESCALATION: "privilege_escalation",
    FindingCategory.SUSPICIOUS_PATTERN: "suspicious_code",
    FindingCategory.SENSITIVE_PATH: "sensitive_paths",
    FindingCategory.URL: "external_urls",
    FindingCategory.AI_DEFENCE: "ai_defence",
}

BREAKDOWN_FIELDS: tuple[str, ...] = (
    "jailbreak",
    "social_engineering",
    "prompt_leaking",
    "data_exfiltration",
    "privilege_escalation",
    "suspicious_code",
    "sensitive_paths",
    "external_urls",
    "ai_defence",
)


# ---------------------------------------------------------------------------
# ScanReport: complete output of one scan
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScanReport:
    """The result of scanning one skill document.

    Attributes:
        skill_id: Opaque identifier supplied by the caller.
        passed: True only when there is no CRITICAL or HIGH finding and the
            risk score is below the configured threshold.
        findings: Findings in scan order (urls, sensitive paths, jailbreak,
            suspicious, social engineering, prompt leaking, data
            exfiltration, privilege escalation, AI defence).
        scanned_at: When the scan started (UTC).
        scan_duration_ms: Wall-clock duration of the scan.
        risk_score: Weighted total in [0, 100].
        risk_breakdown: Per-category scores.
    """

    skill_id: str
    passed: bool
    findings: tuple[Finding, ...]
    scanned_at: datetime
    scan_duration_ms: float
    risk_score: int
    risk_breakdown: RiskBreakdown

    @property
    def max_severity(self) -> Severity | None:
        """Return the highest severity among all findings, or None if clean."""
        if not self.findings:
            return None
        return max(f.severity for f in self.findings)

    def findings_for(self, category: FindingCategory) -> list[Finding]:
        """Return the findings produced by one category detector."""
        return [f for f in self.findings if f.category == category]


# ---------------------------------------------------------------------------
# ScannerOptions: construction-time configuration
# ---------------------------------------------------------------------------


DEFAULT_MAX_CONTENT_LENGTH = 1_000_000
DEFAULT_RISK_THRESHOLD = 40


@dataclass
class ScannerOptions:
    """Configuration for a ``SecurityScanner``.

    Attributes:
        allowed_domains: Hostnames whose URLs (and subdomains) are trusted.
            None selects the built-in default allow-list.
        blocked_patterns: Extra patterns (strings or compiled) that the
            suspicious-pattern detector reports at HIGH severity.
        max_content_length: Size in UTF-8 bytes above which a LOW finding
            is emitted. Oversized content is still scanned.
        risk_threshold: Total risk score at or above which a scan fails.
        risk_weights: Scoring weight tables. None selects the defaults.
    """

    allowed_domains: Iterable[str] | None = None
    blocked_patterns: list[str | re.Pattern[str]] = field(default_factory=list)
    max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH
    risk_threshold: float = DEFAULT_RISK_THRESHOLD
    risk_weights: RiskWeights | None = None

    def __post_init__(self) -> None:
        if self.max_content_length <= 0:
            raise ConfigurationError(
                f"max_content_length must be positive, got {self.max_content_length}"
            )
        if not 0 <= self.risk_threshold <= 100:
            raise ConfigurationError(
                f"risk_threshold must be in [0, 100], got {self.risk_threshold}"
            )
