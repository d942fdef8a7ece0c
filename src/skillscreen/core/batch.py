"""Batch scanning and quarantine triage for imported skills.

Registry imports arrive as a JSON manifest of skill records. Each record is
scanned with a shared ``SecurityScanner``; skills whose report fails are
quarantined and the rest are approved. The batch result carries summary
statistics and can be written out as three JSON files:

- ``security-report.json`` -- every result plus summary statistics.
- ``quarantine-skills.json`` -- failed skills, riskiest first.
- ``safe-skills.json`` -- passed skills, least risky first.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from skillscreen.core.scanner import ScanReport, SecurityScanner
from skillscreen.core.scanner.formatters import to_dict
from skillscreen.exceptions import ParseError

logger = logging.getLogger(__name__)

CLEAN_CATEGORY = "CLEAN"
SEVERITY_CATEGORIES = ("CRITICAL", "HIGH", "MEDIUM", "LOW", CLEAN_CATEGORY)
PROGRESS_INTERVAL = 100

REPORT_FILENAME = "security-report.json"
QUARANTINE_FILENAME = "quarantine-skills.json"
SAFE_FILENAME = "safe-skills.json"


@dataclass(frozen=True)
class ImportedSkill:
    """One skill record from an import manifest."""

    skill_id: str
    name: str
    content: str = ""
    description: str = ""
    author: str = "unknown"
    source: str = "unknown"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ImportedSkill:
        """Build a record from a manifest entry.

        Raises:
            ParseError: If the entry is not an object or has no id.
        """
        if not isinstance(data, dict):
            raise ParseError(f"Skill entry must be an object, got {type(data).__name__}")
        skill_id = data.get("id") or data.get("skill_id")
        if not skill_id:
            raise ParseError(f"Skill entry has no id: {str(data)[:80]}")
        return cls(
            skill_id=str(skill_id),
            name=str(data.get("name") or skill_id),
            content=str(data.get("content") or ""),
            description=str(data.get("description") or ""),
            author=str(data.get("author") or "unknown"),
            source=str(data.get("source") or "unknown"),
        )


def load_imported_skills(path: Path | str) -> list[ImportedSkill]:
    """Read an import manifest.

    The manifest is either a JSON list of skill objects or an object with a
    ``skills`` list.

    Raises:
        ParseError: If the file is missing, not JSON, or malformed.
    """
    manifest = Path(path)
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise ParseError(f"Cannot read import manifest {manifest}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ParseError(f"Import manifest {manifest} is not valid JSON: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("skills")
    if not isinstance(data, list):
        raise ParseError(f"Import manifest {manifest} must contain a list of skills")
    return [ImportedSkill.from_dict(entry) for entry in data]


def extract_scannable_content(skill: ImportedSkill) -> str:
    """Join the parts of a record that reach the consuming agent."""
    parts = [skill.name, skill.description, skill.content]
    return "\n\n".join(p for p in parts if p)


def severity_category(report: ScanReport) -> str:
    """Return the highest finding severity name, or ``CLEAN``."""
    top = report.max_severity
    return top.name if top is not None else CLEAN_CATEGORY


@dataclass(frozen=True)
class SkillScanResult:
    """Scan outcome for one imported skill."""

    skill: ImportedSkill
    report: ScanReport
    severity_category: str
    is_quarantined: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "skill_id": self.skill.skill_id,
            "skill_name": self.skill.name,
            "author": self.skill.author,
            "source": self.skill.source,
            "severity_category": self.severity_category,
            "is_quarantined": self.is_quarantined,
            "scan_report": to_dict(self.report),
        }


def scan_skill(skill: ImportedSkill, scanner: SecurityScanner) -> SkillScanResult:
    """Scan one record and decide whether to quarantine it."""
    report = scanner.scan(skill.skill_id, extract_scannable_content(skill))
    return SkillScanResult(
        skill=skill,
        report=report,
        severity_category=severity_category(report),
        is_quarantined=not report.passed,
    )


@dataclass
class BatchResult:
    """Results of scanning a batch of imported skills."""

    results: list[SkillScanResult] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def quarantined(self) -> list[SkillScanResult]:
        """Quarantined skills, highest risk score first."""
        flagged = [r for r in self.results if r.is_quarantined]
        return sorted(flagged, key=lambda r: r.report.risk_score, reverse=True)

    @property
    def safe(self) -> list[SkillScanResult]:
        """Approved skills, lowest risk score first."""
        approved = [r for r in self.results if not r.is_quarantined]
        return sorted(approved, key=lambda r: r.report.risk_score)

    def summary(self) -> dict[str, Any]:
        """Return summary statistics for the batch."""
        scores = [r.report.risk_score for r in self.results]
        by_severity = dict.fromkeys(SEVERITY_CATEGORIES, 0)
        for r in self.results:
            by_severity[r.severity_category] += 1
        quarantined = sum(1 for r in self.results if r.is_quarantined)
        per_second = (
            self.total / (self.duration_ms / 1000.0) if self.duration_ms > 0 else 0.0
        )
        return {
            "total_scanned": self.total,
            "passed": self.total - quarantined,
            "quarantined": quarantined,
            "by_severity": by_severity,
            "average_risk_score": round(sum(scores) / len(scores), 2) if scores else 0.0,
            "max_risk_score": max(scores) if scores else 0,
            "duration_ms": round(self.duration_ms),
            "skills_per_second": round(per_second, 1),
        }


def scan_batch(
    skills: Iterable[ImportedSkill],
    scanner: SecurityScanner | None = None,
) -> BatchResult:
    """Scan every record with one shared scanner.

    Args:
        skills: Records to scan.
        scanner: Scanner to use. Defaults to ``SecurityScanner()``.
    """
    scanner = scanner or SecurityScanner()
    batch = BatchResult()
    start = time.perf_counter()
    for count, skill in enumerate(skills, start=1):
        batch.results.append(scan_skill(skill, scanner))
        if count % PROGRESS_INTERVAL == 0:
            logger.info("Scanned %d skills", count)
    batch.duration_ms = (time.perf_counter() - start) * 1000.0
    logger.info(
        "Batch complete: %d scanned, %d quarantined",
        batch.total, len(batch.quarantined),
    )
    return batch


def _write_json(path: Path, data: Any) -> None:
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def write_batch_outputs(batch: BatchResult, output_dir: Path | str) -> dict[str, Path]:
    """Write the report, quarantine and safe lists into ``output_dir``.

    Returns:
        Mapping of output kind (``report``, ``quarantine``, ``safe``) to
        the file written.
    """
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    generated_at = datetime.now(timezone.utc).isoformat()

    quarantined = batch.quarantined
    safe = batch.safe
    paths = {
        "report": out / REPORT_FILENAME,
        "quarantine": out / QUARANTINE_FILENAME,
        "safe": out / SAFE_FILENAME,
    }

    _write_json(paths["report"], {
        "generated_at": generated_at,
        "summary": batch.summary(),
        "results": [r.to_dict() for r in batch.results],
    })
    _write_json(paths["quarantine"], {
        "generated_at": generated_at,
        "count": len(quarantined),
        "skills": [
            {
                "skill_id": r.skill.skill_id,
                "risk_score": r.report.risk_score,
                "severity": r.severity_category,
                "top_finding": (
                    f"{r.report.findings[0].category.value}: {r.report.findings[0].message}"
                    if r.report.findings else "N/A"
                ),
            }
            for r in quarantined
        ],
    })
    _write_json(paths["safe"], {
        "generated_at": generated_at,
        "count": len(safe),
        "skills": [
            {"skill_id": r.skill.skill_id, "risk_score": r.report.risk_score}
            for r in safe
        ],
    })
    return paths
