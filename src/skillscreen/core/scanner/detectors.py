"""Category detectors: one per finding category.

Eight detectors share one algorithm, ``CatalogDetector``, parameterized by
a pattern catalog, a base severity and a message template:

1. **Multi-line patterns** run once over the whole document. The line of
   the first match is derived from the match offset and marked as already
   flagged so the line pass does not report it twice.
2. **Single-line patterns** run line by line. The first pattern to match a
   line wins, so each line yields at most one finding per category.
3. Matches on lines in documentation context (code fences, tables, indented
   code) keep their finding but lose one severity notch and get LOW
   confidence.

The URL detector is the exception. It extracts every URL, resolves its
hostname, and flags hosts outside the allow-list regardless of Markdown
context.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Protocol
from urllib.parse import urlsplit

from skillscreen.core.scanner.context import LineContext, classify, is_documentation_line
from skillscreen.core.scanner.matcher import BoundedMatcher, FoldedText, fold_line, fold_text
from skillscreen.core.scanner.models import Confidence, Finding, FindingCategory, Severity
from skillscreen.core.scanner.patterns import CATALOGS, URL_PATTERN, CatalogPattern

logger = logging.getLogger(__name__)

LOCATION_LIMIT = 100
AI_DEFENCE_EXCERPT_LIMIT = 50

# Severity of a match outside documentation context.
BASE_SEVERITIES: dict[FindingCategory, Severity] = {
    FindingCategory.URL: Severity.MEDIUM,
    FindingCategory.SENSITIVE_PATH: Severity.HIGH,
    FindingCategory.JAILBREAK: Severity.CRITICAL,
    FindingCategory.SUSPICIOUS_PATTERN: Severity.MEDIUM,
    FindingCategory.SOCIAL_ENGINEERING: Severity.HIGH,
    FindingCategory.PROMPT_LEAKING: Severity.CRITICAL,
    FindingCategory.DATA_EXFILTRATION: Severity.HIGH,
    FindingCategory.PRIVILEGE_ESCALATION: Severity.CRITICAL,
    FindingCategory.AI_DEFENCE: Severity.CRITICAL,
}

BLOCKED_PATTERN_SEVERITY = Severity.HIGH

# Placeholders: {match} is the matched text, {pattern} the pattern source.
MESSAGE_TEMPLATES: dict[FindingCategory, str] = {
    FindingCategory.SENSITIVE_PATH: "Reference to potentially sensitive path: {pattern}",
    FindingCategory.JAILBREAK: 'Potential jailbreak pattern detected: "{match}"',
    FindingCategory.SUSPICIOUS_PATTERN: 'Suspicious pattern detected: "{match}"',
    FindingCategory.SOCIAL_ENGINEERING: 'Social engineering attempt detected: "{match}"',
    FindingCategory.PROMPT_LEAKING: 'Prompt leaking attempt detected: "{match}"',
    FindingCategory.DATA_EXFILTRATION: 'Potential data exfiltration pattern: "{match}"',
    FindingCategory.PRIVILEGE_ESCALATION: 'Privilege escalation pattern detected: "{match}"',
    FindingCategory.AI_DEFENCE: 'AI injection pattern detected: "{match}"',
}

BLOCKED_PATTERN_MESSAGE = 'Blocked pattern detected: "{match}"'


# ---------------------------------------------------------------------------
# Document: content prepared once per scan
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Document:
    """Skill content split into lines with their Markdown context.

    Built once per scan and shared read-only by every detector. Patterns run
    over the whitespace-folded ``scan_lines`` and ``folded``; Markdown
    context and URLs come from the original ``lines``.
    """

    content: str
    lines: tuple[str, ...]
    contexts: tuple[LineContext, ...]
    scan_lines: tuple[str, ...]
    folded: FoldedText

    @classmethod
    def from_content(cls, content: str) -> Document:
        lines = content.split("\n")
        return cls(
            content=content,
            lines=tuple(lines),
            contexts=tuple(classify(content)),
            scan_lines=tuple(fold_line(line) for line in lines),
            folded=fold_text(content),
        )

    def line_index_at(self, offset: int) -> int:
        """Return the 0-based line containing character ``offset``."""
        return self.content.count("\n", 0, offset)

    def line_index_at_folded(self, offset: int) -> int:
        """Return the 0-based line of a non-blank character of ``folded.text``."""
        return self.line_index_at(self.folded.original_offset(offset))


class Detector(Protocol):
    category: FindingCategory

    def detect(self, document: Document) -> list[Finding]:
        ...


def make_finding(
    category: FindingCategory,
    severity: Severity,
    message: str,
    location: str,
    line_number: int,
    in_doc_context: bool,
) -> Finding:
    """Build a finding, applying the documentation-context downgrade."""
    if in_doc_context:
        severity = severity.lowered()
    return Finding(
        category=category,
        severity=severity,
        message=message,
        location=location[:LOCATION_LIMIT],
        line_number=line_number,
        confidence=Confidence.LOW if in_doc_context else Confidence.HIGH,
        in_documentation_context=in_doc_context,
    )


# ---------------------------------------------------------------------------
# Catalog-driven detectors
# ---------------------------------------------------------------------------


class CatalogDetector:
    """Detector driven by one pattern catalog.

    Args:
        category: The category tag for every finding produced.
        catalog: Patterns to check, in priority order.
        matcher: The bounded matcher used for every match attempt.
    """

    def __init__(
        self,
        category: FindingCategory,
        catalog: Iterable[CatalogPattern],
        matcher: BoundedMatcher,
    ) -> None:
        self.category = category
        self.matcher = matcher
        self.base_severity = BASE_SEVERITIES[category]
        self.message_template = MESSAGE_TEMPLATES[category]
        patterns = tuple(catalog)
        self._multiline = tuple(p for p in patterns if p.multiline)
        self._single_line = tuple(p for p in patterns if not p.multiline)

    def detect(self, document: Document) -> list[Finding]:
        findings: list[Finding] = []
        flagged: set[int] = set()

        for pattern in self._multiline:
            match = self.matcher.test(pattern.regex, document.folded.text)
            if match is None:
                continue
            text = match.group(0)
            # Leading whitespace may include the newline before the hit.
            lead = len(text) - len(text.lstrip())
            index = document.line_index_at_folded(
                match.start() + lead if lead < len(text) else match.start()
            )
            if index in flagged:
                continue
            findings.append(make_finding(
                self.category,
                self.base_severity,
                self._message(self.message_template, match, pattern.source),
                text.strip(),
                index + 1,
                is_documentation_line(document.contexts, index),
            ))
            flagged.add(index)

        for index, line in enumerate(document.scan_lines):
            if index in flagged:
                continue
            hit = self._match_line(line)
            if hit is None:
                continue
            match, severity, template, source = hit
            findings.append(make_finding(
                self.category,
                severity,
                self._message(template, match, source),
                line.strip(),
                index + 1,
                document.contexts[index].is_documentation_context,
            ))

        return findings

    def _match_line(
        self, line: str
    ) -> tuple[re.Match[str], Severity, str, str] | None:
        """Return the first single-line catalog match on ``line``."""
        for pattern in self._single_line:
            match = self.matcher.test(pattern.regex, line)
            if match is not None:
                return match, self.base_severity, self.message_template, pattern.source
        return None

    def _message(self, template: str, match: re.Match[str], source: str) -> str:
        return template.format(match=match.group(0), pattern=source)


class AIDefenceDetector(CatalogDetector):
    """CVE-class injection detector. Matched text is excerpted in messages."""

    def __init__(self, matcher: BoundedMatcher) -> None:
        super().__init__(
            FindingCategory.AI_DEFENCE, CATALOGS[FindingCategory.AI_DEFENCE], matcher,
        )

    def _message(self, template: str, match: re.Match[str], source: str) -> str:
        text = match.group(0)
        excerpt = text[:AI_DEFENCE_EXCERPT_LIMIT]
        if len(text) > AI_DEFENCE_EXCERPT_LIMIT:
            excerpt += "..."
        return template.format(match=excerpt, pattern=source)


class SuspiciousPatternDetector(CatalogDetector):
    """Suspicious-code detector that also checks caller-supplied block patterns.

    Block patterns are consulted only when no built-in pattern matched the
    line, and report at HIGH severity.
    """

    def __init__(
        self,
        matcher: BoundedMatcher,
        blocked_patterns: Iterable[re.Pattern[str]] = (),
    ) -> None:
        super().__init__(
            FindingCategory.SUSPICIOUS_PATTERN,
            CATALOGS[FindingCategory.SUSPICIOUS_PATTERN],
            matcher,
        )
        self.blocked_patterns = tuple(blocked_patterns)

    def _match_line(
        self, line: str
    ) -> tuple[re.Match[str], Severity, str, str] | None:
        hit = super()._match_line(line)
        if hit is not None:
            return hit
        for pattern in self.blocked_patterns:
            match = self.matcher.test(pattern, line)
            if match is not None:
                return match, BLOCKED_PATTERN_SEVERITY, BLOCKED_PATTERN_MESSAGE, pattern.pattern
        return None


# ---------------------------------------------------------------------------
# URL allow-list detector
# ---------------------------------------------------------------------------


def extract_urls(document: Document) -> list[tuple[str, int]]:
    """Return every ``(url, line_number)`` pair in the document."""
    results: list[tuple[str, int]] = []
    for index, line in enumerate(document.lines):
        if "://" not in line:
            continue
        for match in URL_PATTERN.finditer(line):
            results.append((match.group(0), index + 1))
    return results


def is_allowed_domain(url: str, allowed_domains: Iterable[str]) -> bool:
    """Check whether a URL's host is an allow-listed domain or a subdomain of one.

    Backslashes are read as path separators, as browsers do for http(s), so
    ``https://evil.example\\@github.com/`` is judged by ``evil.example``.
    URLs that cannot be parsed, or that have no hostname, are not allowed.
    """
    try:
        hostname = urlsplit(url.replace("\\", "/")).hostname
    except ValueError:
        logger.warning("Unparsable URL treated as not allowed: %s", url[:LOCATION_LIMIT])
        return False
    if not hostname:
        return False
    hostname = hostname.lower().rstrip(".")
    return any(
        hostname == domain or hostname.endswith("." + domain)
        for domain in allowed_domains
    )


class UrlDetector:
    """Flags URLs whose host is not on the allow-list."""

    category = FindingCategory.URL

    def __init__(self, allowed_domains: Iterable[str]) -> None:
        self.allowed_domains = frozenset(d.lower() for d in allowed_domains)

    def detect(self, document: Document) -> list[Finding]:
        findings: list[Finding] = []
        for url, line_number in extract_urls(document):
            if is_allowed_domain(url, self.allowed_domains):
                continue
            findings.append(Finding(
                category=FindingCategory.URL,
                severity=BASE_SEVERITIES[FindingCategory.URL],
                message=f"External URL not in allowlist: {url}",
                location=url[:LOCATION_LIMIT],
                line_number=line_number,
            ))
        return findings


# ---------------------------------------------------------------------------
# Assembly in scan order
# ---------------------------------------------------------------------------


def build_detectors(
    matcher: BoundedMatcher,
    allowed_domains: Iterable[str],
    blocked_patterns: Iterable[re.Pattern[str]] = (),
) -> list[Detector]:
    """Return the nine detectors in the order their findings are reported."""
    return [
        UrlDetector(allowed_domains),
        CatalogDetector(
            FindingCategory.SENSITIVE_PATH, CATALOGS[FindingCategory.SENSITIVE_PATH], matcher,
        ),
        CatalogDetector(
            FindingCategory.JAILBREAK, CATALOGS[FindingCategory.JAILBREAK], matcher,
        ),
        SuspiciousPatternDetector(matcher, blocked_patterns),
        CatalogDetector(
            FindingCategory.SOCIAL_ENGINEERING,
            CATALOGS[FindingCategory.SOCIAL_ENGINEERING],
            matcher,
        ),
        CatalogDetector(
            FindingCategory.PROMPT_LEAKING, CATALOGS[FindingCategory.PROMPT_LEAKING], matcher,
        ),
        CatalogDetector(
            FindingCategory.DATA_EXFILTRATION,
            CATALOGS[FindingCategory.DATA_EXFILTRATION],
            matcher,
        ),
        CatalogDetector(
            FindingCategory.PRIVILEGE_ESCALATION,
            CATALOGS[FindingCategory.PRIVILEGE_ESCALATION],
            matcher,
        ),
        AIDefenceDetector(matcher),
    ]
