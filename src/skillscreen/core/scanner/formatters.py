"""Report renderers for scan results.

Pure functions over ``ScanReport``. Collaborators pick the shape they need:

- ``to_dict`` -- full JSON-serializable report (CLI ``--format json``).
- ``to_minimal_refs`` -- compact finding references for audit logs.
- ``to_summary`` -- short human-readable text block.
- ``to_sarif`` -- SARIF 2.1.0 log for code-scanning dashboards.
- ``to_github_annotations`` -- GitHub Actions workflow commands.

References:
    SARIF 2.1.0 (OASIS Standard, 2020):
    https://docs.oasis-open.org/sarif/sarif/v2.1.0/sarif-v2.1.0.html
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from skillscreen import __version__, _PRODUCT_ID
from skillscreen.core.scanner.models import Finding, FindingCategory, ScanReport, Severity

SARIF_SCHEMA = "https://json.schemastore.org/sarif-2.1.0.json"
SARIF_VERSION = "2.1.0"

_SARIF_LEVELS: dict[Severity, str] = {
    Severity.CRITICAL: "error",
    Severity.HIGH: "error",
    Severity.MEDIUM: "warning",
    Severity.LOW: "note",
}

_CATEGORY_DESCRIPTIONS: dict[FindingCategory, str] = {
    FindingCategory.URL: "External URL outside the domain allow-list",
    FindingCategory.SENSITIVE_PATH: "Reference to a sensitive file path",
    FindingCategory.JAILBREAK: "Jailbreak attempt",
    FindingCategory.SUSPICIOUS_PATTERN: "Suspicious code or blocked pattern",
    FindingCategory.SOCIAL_ENGINEERING: "Social engineering attempt",
    FindingCategory.PROMPT_LEAKING: "Prompt leaking attempt",
    FindingCategory.DATA_EXFILTRATION: "Data exfiltration pattern",
    FindingCategory.PRIVILEGE_ESCALATION: "Privilege escalation pattern",
    FindingCategory.AI_DEFENCE: "CVE-class prompt injection technique",
}


def rule_id(category: FindingCategory) -> str:
    return f"{_PRODUCT_ID}/{category.value}"


def group_by_severity(findings: Iterable[Finding]) -> dict[Severity, list[Finding]]:
    """Group findings by severity, most severe first, keeping scan order within a group."""
    groups: dict[Severity, list[Finding]] = {s: [] for s in sorted(Severity, reverse=True)}
    for finding in findings:
        groups[finding.severity].append(finding)
    return groups


def finding_to_dict(finding: Finding) -> dict[str, Any]:
    return {
        "category": finding.category.value,
        "severity": finding.severity.name.lower(),
        "confidence": finding.confidence.name.lower(),
        "message": finding.message,
        "location": finding.location,
        "line_number": finding.line_number,
        "in_documentation_context": finding.in_documentation_context,
    }


def to_dict(report: ScanReport) -> dict[str, Any]:
    """Convert a report to a JSON-serializable dictionary."""
    return {
        "skill_id": report.skill_id,
        "passed": report.passed,
        "risk_score": report.risk_score,
        "risk_breakdown": report.risk_breakdown.as_dict(),
        "scanned_at": report.scanned_at.isoformat(),
        "scan_duration_ms": round(report.scan_duration_ms, 3),
        "findings_count": len(report.findings),
        "findings": [finding_to_dict(f) for f in report.findings],
    }


def to_minimal_refs(report: ScanReport) -> list[dict[str, Any]]:
    """Return ``{category, severity, line}`` references for each finding."""
    return [
        {
            "category": f.category.value,
            "severity": f.severity.name.lower(),
            "line": f.line_number,
        }
        for f in report.findings
    ]


def severity_counts(findings: Iterable[Finding]) -> dict[str, int]:
    return {
        severity.name.lower(): len(group)
        for severity, group in group_by_severity(findings).items()
    }


def to_summary(report: ScanReport, max_findings: int = 5) -> str:
    """Render a short plain-text summary of a report.

    Args:
        report: The report to summarize.
        max_findings: How many of the most severe findings to list.
    """
    verdict = "PASSED" if report.passed else "FAILED"
    counts = severity_counts(report.findings)
    lines = [
        f"Skill {report.skill_id}: {verdict} (risk score {report.risk_score}/100)",
        "Findings: " + ", ".join(f"{counts[name]} {name}" for name in counts),
    ]
    ranked = [f for group in group_by_severity(report.findings).values() for f in group]
    for finding in ranked[:max_findings]:
        where = f" (line {finding.line_number})" if finding.line_number else ""
        lines.append(f"  [{finding.severity.name}] {finding.message}{where}")
    if len(ranked) > max_findings:
        lines.append(f"  ... and {len(ranked) - max_findings} more")
    return "\n".join(lines)


def to_sarif(
    reports: Sequence[ScanReport],
    artifact_uris: Sequence[str | None] | None = None,
) -> dict[str, Any]:
    """Build a SARIF 2.1.0 log with one run covering all reports.

    Args:
        reports: Reports to include.
        artifact_uris: Optional file URI per report, in the same order.
            Two reports may share a skill id, so URIs are positional.
            A missing or None entry falls back to the skill id.
    """
    uris = list(artifact_uris or [])
    uris += [None] * (len(reports) - len(uris))
    rules = [
        {
            "id": rule_id(category),
            "name": category.value,
            "shortDescription": {"text": _CATEGORY_DESCRIPTIONS[category]},
        }
        for category in FindingCategory
    ]
    rule_index = {rule["id"]: i for i, rule in enumerate(rules)}

    results: list[dict[str, Any]] = []
    for report, artifact_uri in zip(reports, uris):
        uri = artifact_uri or report.skill_id
        for finding in report.findings:
            location: dict[str, Any] = {"artifactLocation": {"uri": uri}}
            if finding.line_number is not None:
                location["region"] = {"startLine": finding.line_number}
            rid = rule_id(finding.category)
            results.append({
                "ruleId": rid,
                "ruleIndex": rule_index[rid],
                "level": _SARIF_LEVELS[finding.severity],
                "message": {"text": finding.message},
                "locations": [{"physicalLocation": location}],
                "properties": {
                    "severity": finding.severity.name.lower(),
                    "confidence": finding.confidence.name.lower(),
                    "inDocumentationContext": finding.in_documentation_context,
                    "riskScore": report.risk_score,
                },
            })

    return {
        "$schema": SARIF_SCHEMA,
        "version": SARIF_VERSION,
        "runs": [{
            "tool": {
                "driver": {
                    "name": _PRODUCT_ID,
                    "version": __version__,
                    "rules": rules,
                },
            },
            "results": results,
        }],
    }


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(value: str) -> str:
    return _escape_data(value).replace(":", "%3A").replace(",", "%2C")


def to_github_annotations(report: ScanReport, path: str | None = None) -> list[str]:
    """Render findings as GitHub Actions ``::error``/``::warning``/``::notice`` commands.

    Args:
        report: The report to render.
        path: File path the annotations point at. Defaults to the skill id.
    """
    commands = {
        Severity.CRITICAL: "error",
        Severity.HIGH: "error",
        Severity.MEDIUM: "warning",
        Severity.LOW: "notice",
    }
    target = _escape_property(path or report.skill_id)
    annotations: list[str] = []
    for finding in report.findings:
        props = [f"file={target}"]
        if finding.line_number is not None:
            props.append(f"line={finding.line_number}")
        props.append(f"title={_escape_property(rule_id(finding.category))}")
        annotations.append(
            f"::{commands[finding.severity]} {','.join(props)}::"
            f"{_escape_data(finding.message)}"
        )
    return annotations
