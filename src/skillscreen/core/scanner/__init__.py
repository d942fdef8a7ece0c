"""Content risk scanner for agent skill Markdown.

This package implements the screening engine of SkillScreen. Given the raw
Markdown of a skill, the ``SecurityScanner`` classifies every line's
structural context, runs nine category detectors over it, and folds the
findings into a risk score and a pass/fail verdict.

Pipeline
--------

**Context classification:**
    One linear pass labels each line as fenced code, table row, indented
    code, or prose. Matches in documentation context lose one severity
    notch and get LOW confidence.

**Category detection:**
    URLs outside the allow-list, sensitive paths, jailbreaks, suspicious
    code, social engineering, prompt leaking, data exfiltration, privilege
    escalation, and CVE-class injection techniques. Every pattern check goes
    through the ``BoundedMatcher``, whose cost is linear in the text length.

**Aggregation:**
    Findings fold into per-category scores capped at 100 and a weighted
    total. Any CRITICAL or HIGH finding fails the scan outright.

Submodules
----------
- ``models``: Data types (Severity, Confidence, Finding, ScanReport, ...).
- ``patterns``: Compiled regex catalogs and the default allow-list.
- ``matcher``: The bounded matcher.
- ``context``: The Markdown line-context classifier.
- ``detectors``: The nine category detectors.
- ``risk``: Risk aggregation and weight tables.
- ``engine``: The SecurityScanner class.
- ``formatters``: JSON, summary, SARIF and GitHub annotation output.

All public names are re-exported here::

    from skillscreen.core.scanner import SecurityScanner, ScanReport, Severity
"""

from skillscreen.core.scanner.models import (
    Confidence,
    Finding,
    FindingCategory,
    RiskBreakdown,
    ScannerOptions,
    ScanReport,
    Severity,
)
from skillscreen.core.scanner.context import LineContext, classify
from skillscreen.core.scanner.matcher import BoundedMatcher
from skillscreen.core.scanner.risk import RiskWeights, calculate_risk_score
from skillscreen.core.scanner.engine import SecurityScanner

__all__ = [
    "BoundedMatcher",
    "Confidence",
    "Finding",
    "FindingCategory",
    "LineContext",
    "RiskBreakdown",
    "RiskWeights",
    "ScanReport",
    "ScannerOptions",
    "SecurityScanner",
    "Severity",
    "calculate_risk_score",
    "classify",
]
