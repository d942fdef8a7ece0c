"""Security scanner façade.

This module implements the ``SecurityScanner`` class which orchestrates a
scan of one skill document:

1. **Size check** -- content over ``max_content_length`` UTF-8 bytes gets a
   LOW finding. The content is still scanned in full.
2. **Context classification** -- the Markdown context of every line is
   computed once and shared by all detectors.
3. **Category detection** -- the nine detectors run in fixed order.
4. **Aggregation** -- findings fold into a risk score and breakdown.
5. **Verdict** -- a scan passes only with no CRITICAL or HIGH finding and
   a risk score below the threshold.

The scanner holds no per-scan state. Its only mutable state is the
allow-list and block-list, which are guarded by a lock; each scan works on
a snapshot taken at its start, so concurrent scans need no further locking.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from datetime import datetime, timezone
from typing import Iterable

from skillscreen.core.scanner.detectors import Document, build_detectors
from skillscreen.core.scanner.matcher import BoundedMatcher, fold_line
from skillscreen.core.scanner.models import (
    Confidence,
    Finding,
    FindingCategory,
    ScannerOptions,
    ScanReport,
    Severity,
)
from skillscreen.core.scanner.patterns import DEFAULT_ALLOWED_DOMAINS, JAILBREAK_PATTERNS
from skillscreen.core.scanner.risk import RiskWeights, calculate_risk_score
from skillscreen.exceptions import PatternError

logger = logging.getLogger(__name__)


def compile_block_pattern(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    """Validate and compile a caller-supplied block pattern.

    Args:
        pattern: A regex source string or an already compiled pattern.

    Returns:
        The compiled pattern.

    Raises:
        PatternError: If the pattern does not compile, is empty, or
            matches the empty string (it would flag every line).
    """
    if isinstance(pattern, re.Pattern):
        compiled = pattern
    elif isinstance(pattern, str):
        try:
            compiled = re.compile(pattern, re.IGNORECASE)
        except re.error as exc:
            raise PatternError(f"Invalid block pattern {pattern!r}: {exc}") from exc
    else:
        raise PatternError(
            f"Block pattern must be a string or compiled regex, got {type(pattern).__name__}"
        )
    if not isinstance(compiled.pattern, str):
        raise PatternError("Block pattern must be a text pattern, not bytes")
    if not compiled.pattern:
        raise PatternError("Block pattern must not be empty")
    if compiled.search("") is not None:
        raise PatternError(f"Block pattern {compiled.pattern!r} matches the empty string")
    return compiled


class SecurityScanner:
    """Deterministic, pattern-based risk scanner for skill Markdown.

    Usage::

        scanner = SecurityScanner()
        report = scanner.scan("my-skill", content)
        if not report.passed:
            for finding in report.findings:
                print(f"[{finding.severity.name}] {finding.message}")

    Args:
        options: Scanner configuration. Defaults to ``ScannerOptions()``.
        matcher: Bounded matcher used for every pattern check.

    Raises:
        PatternError: If any of ``options.blocked_patterns`` is malformed.
        ConfigurationError: If ``options.risk_weights`` fails validation.
    """

    def __init__(
        self,
        options: ScannerOptions | None = None,
        matcher: BoundedMatcher | None = None,
    ) -> None:
        options = options or ScannerOptions()
        self._lock = threading.Lock()
        domains = (
            DEFAULT_ALLOWED_DOMAINS
            if options.allowed_domains is None
            else options.allowed_domains
        )
        self._allowed_domains: set[str] = {d.lower() for d in domains}
        self._blocked_patterns: list[re.Pattern[str]] = [
            compile_block_pattern(p) for p in options.blocked_patterns
        ]
        self.max_content_length = options.max_content_length
        self.risk_threshold = options.risk_threshold
        self.weights = options.risk_weights or RiskWeights()
        self.weights.validate()
        self.matcher = matcher or BoundedMatcher()

    # -- Configuration --

    @property
    def allowed_domains(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._allowed_domains)

    @property
    def blocked_patterns(self) -> tuple[re.Pattern[str], ...]:
        with self._lock:
            return tuple(self._blocked_patterns)

    def add_allowed_domain(self, domain: str) -> None:
        """Trust URLs on ``domain`` and its subdomains in later scans."""
        normalized = domain.strip().lower().rstrip(".")
        if not normalized:
            raise PatternError("Allowed domain must not be empty")
        with self._lock:
            self._allowed_domains.add(normalized)

    def add_blocked_pattern(self, pattern: str | re.Pattern[str]) -> None:
        """Report lines matching ``pattern`` at HIGH severity in later scans.

        Raises:
            PatternError: If the pattern is malformed.
        """
        compiled = compile_block_pattern(pattern)
        with self._lock:
            self._blocked_patterns.append(compiled)

    def extend_allowed_domains(self, domains: Iterable[str]) -> None:
        for domain in domains:
            self.add_allowed_domain(domain)

    # -- Scanning --

    def scan(self, skill_id: str, content: str) -> ScanReport:
        """Scan one skill document and return its report.

        Never raises on content: hostile or malformed input only produces
        findings.

        Args:
            skill_id: Opaque identifier used to label the report.
            content: Raw skill Markdown.

        Returns:
            A ``ScanReport`` owned by the caller.
        """
        scanned_at = datetime.now(timezone.utc)
        start = time.perf_counter()
        findings: list[Finding] = []

        with self._lock:
            allowed_domains = frozenset(self._allowed_domains)
            blocked_patterns = tuple(self._blocked_patterns)

        if len(content.encode("utf-8", errors="replace")) > self.max_content_length:
            findings.append(Finding(
                category=FindingCategory.SUSPICIOUS_PATTERN,
                severity=Severity.LOW,
                message=f"Content exceeds maximum length ({self.max_content_length} bytes)",
                confidence=Confidence.HIGH,
            ))

        document = Document.from_content(content)
        for detector in build_detectors(self.matcher, allowed_domains, blocked_patterns):
            findings.extend(detector.detect(document))

        risk_score, risk_breakdown = calculate_risk_score(findings, self.weights)

        has_critical = any(f.severity == Severity.CRITICAL for f in findings)
        has_high = any(f.severity == Severity.HIGH for f in findings)
        exceeds_threshold = risk_score >= self.risk_threshold
        passed = not has_critical and not has_high and not exceeds_threshold

        duration_ms = (time.perf_counter() - start) * 1000.0
        logger.debug(
            "Scanned %s: %d findings, risk %d, passed=%s (%.1f ms)",
            skill_id, len(findings), risk_score, passed, duration_ms,
        )

        return ScanReport(
            skill_id=skill_id,
            passed=passed,
            findings=tuple(findings),
            scanned_at=scanned_at,
            scan_duration_ms=duration_ms,
            risk_score=risk_score,
            risk_breakdown=risk_breakdown,
        )

    def quick_check(self, content: str) -> bool:
        """Return False as soon as any jailbreak pattern matches, else True.

        A fast pre-filter for hot paths. It does no line or context
        bookkeeping, so jailbreak text quoted in documentation also fails.
        """
        folded = fold_line(content)
        for pattern in JAILBREAK_PATTERNS:
            if self.matcher.exists(pattern.regex, folded):
                return False
        return True
