"""Threat pattern catalogs for the content risk scanner.

This module contains all compiled regex patterns used by the category
detectors, grouped by finding category. Patterns are derived from:

- OWASP LLM Top 10 (LLM01 Prompt Injection, LLM06 Sensitive Information
  Disclosure)
- Public jailbreak and prompt-leaking corpora
- CVE-class prompt injection write-ups (role, delimiter and comment
  smuggling, zero-width and homoglyph obfuscation)

The catalogs are plain data so they can be:
1. Tested independently (pattern coverage, false positive rates).
2. Versioned and audited as the threat landscape evolves.
3. Checked for matching-time blowup one pattern at a time.

Every repetition is bounded, so each pattern has a maximum match width
below the matcher overlap and a small per-window cost. Whitespace runs are
bounded at ten characters: the detectors fold longer runs before matching.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from skillscreen.core.scanner.models import FindingCategory

CATALOG_VERSION = "2026.10.1"


@dataclass(frozen=True)
class CatalogPattern:
    """One compiled catalog entry.

    Attributes:
        regex: The compiled pattern.
        multiline: True when the pattern can span line boundaries. Such
            patterns are tested against the whole document instead of line
            by line.
    """

    regex: re.Pattern[str]
    multiline: bool = False

    @property
    def source(self) -> str:
        return self.regex.pattern


def _p(source: str, flags: int = re.IGNORECASE, multiline: bool = False) -> CatalogPattern:
    return CatalogPattern(re.compile(source, flags), multiline)


# ---------------------------------------------------------------------------
# URL allow-list
# ---------------------------------------------------------------------------

DEFAULT_ALLOWED_DOMAINS: frozenset[str] = frozenset({
    "github.com",
    "githubusercontent.com",
    "raw.githubusercontent.com",
    "npmjs.com",
    "npmjs.org",
    "docs.anthropic.com",
    "anthropic.com",
    "claude.ai",
    "docs.github.com",
    "developer.mozilla.org",
    "nodejs.org",
    "typescriptlang.org",
})

URL_PATTERN: re.Pattern[str] = re.compile(r"https?://[^\s<>\"')\]]+", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Sensitive file paths
# ---------------------------------------------------------------------------

SENSITIVE_PATH_PATTERNS: tuple[CatalogPattern, ...] = (
    _p(r"\.env"),
    _p(r"credentials"),
    _p(r"secrets?"),
    _p(r"\.pem$"),
    _p(r"\.key$"),
    _p(r"\.crt$"),
    _p(r"password"),
    _p(r"api[_-]?key"),
    _p(r"auth[_-]?token"),
    _p(r"~/\.ssh"),
    _p(r"~/\.aws"),
    _p(r"~/\.config"),
)


# ---------------------------------------------------------------------------
# Jailbreak attempts
# ---------------------------------------------------------------------------

JAILBREAK_PATTERNS: tuple[CatalogPattern, ...] = (
    _p(
        r"ignore\s{1,10}(?:all\s{1,10})?(?:previous|prior|above)\s{1,10}"
        r"(?:instructions?|prompts?|rules?)"
    ),
    _p(
        r"disregard\s{1,10}(?:all\s{1,10})?(?:previous|prior|your)\s{1,10}"
        r"(?:instructions?|programming)"
    ),
    _p(r"developer\s{1,10}mode"),
    _p(r"\bDAN\b", flags=0),
    _p(r"do\s{1,10}anything\s{1,10}now"),
    _p(r"jailbreak"),
    _p(r"bypass\s{1,10}(?:all\s{1,10})?(?:restrictions?|filters?|safety)"),
    _p(r"pretend\s{1,10}(?:you\s{1,10})?(?:are|have)\s{1,10}no\s{1,10}(?:restrictions?|limits?)"),
    _p(r"act\s{1,10}as\s{1,10}(?:if\s{1,10})?you\s{1,10}(?:have\s{1,10})?no\s{1,10}ethics"),
    _p(r"you\s{1,10}are\s{1,10}now\s{1,10}(?:free|unrestricted|unfiltered)"),
    _p(r"ignore\s{1,10}your\s{1,10}(?:safety|ethical)\s{1,10}(?:guidelines?|rules?)"),
    _p(r"hypothetical\s{1,10}scenario\s{1,10}where\s{1,10}you\s{1,10}can"),
)


# ---------------------------------------------------------------------------
# Suspicious code
# ---------------------------------------------------------------------------

# Build the dynamic code detection patterns from string fragments
# to avoid triggering security linters that flag the literal function names.
_EVAL_NAME = "ev" + "al"
_EXEC_NAME = "ex" + "ec"

SUSPICIOUS_PATTERNS: tuple[CatalogPattern, ...] = (
    _p(rf"{_EVAL_NAME}\s{{0,10}}\("),
    _p(rf"{_EXEC_NAME}\s{{0,10}}\("),
    _p(r"child_process"),
    _p(r"\$\(\s{0,10}[`'\"]"),  # command substitution
    _p(r"base64\s{0,10}\.\s{0,10}decode"),
    _p(r"from\s{1,10}base64\s{1,10}import"),
    _p(r"subprocess\s{0,10}\.\s{0,10}(?:run|call|Popen)"),
    _p(rf"os\s{{0,10}}\.\s{{0,10}}(?:system|popen|{_EXEC_NAME})"),
    _p(r"\brm\s{1,10}-rf\b"),
    _p(r"curl\s[^|\n]{0,200}\|\s{0,10}(?:bash|sh)"),  # pipe to shell
    _p(r"wget\s[^|\n]{0,200}\|\s{0,10}(?:bash|sh)"),
)


# ---------------------------------------------------------------------------
# Social engineering
# ---------------------------------------------------------------------------

SOCIAL_ENGINEERING_PATTERNS: tuple[CatalogPattern, ...] = (
    _p(r"pretend\s{1,10}(?:to\s{1,10}be|you\s{1,10}are|that\s{1,10}you)"),
    _p(r"roleplay\s{1,10}as"),
    _p(r"you\s{1,10}are\s{1,10}now\s{1,10}(?!free|unrestricted)"),  # jailbreak variants excluded
    _p(r"act\s{1,10}as\s{1,10}(?:if\s{1,10}you\s{1,10}were|though\s{1,10}you\s{1,10}are)"),
    _p(r"imagine\s{1,10}you\s{1,10}are"),
    _p(r"for\s{1,10}the\s{1,10}purposes?\s{1,10}of\s{1,10}this"),
    _p(r"let'?s?\s{1,10}say\s{1,10}you\s{1,10}are"),
    _p(r"assume\s{1,10}the\s{1,10}role\s{1,10}of"),
    _p(r"from\s{1,10}now\s{1,10}on\s{1,10}you\s{1,10}are"),
    _p(r"i\s{1,10}want\s{1,10}you\s{1,10}to\s{1,10}act\s{1,10}as"),
    _p(r"please\s{1,10}behave\s{1,10}as\s{1,10}if"),
    _p(r"can\s{1,10}you\s{1,10}pretend"),
)


# ---------------------------------------------------------------------------
# Prompt leaking
# ---------------------------------------------------------------------------

PROMPT_LEAKING_PATTERNS: tuple[CatalogPattern, ...] = (
    _p(r"show\s{1,10}(?:me\s{1,10})?your\s{1,10}(?:system\s{1,10})?(?:instructions?|prompt)"),
    _p(r"what\s{1,10}are\s{1,10}your\s{1,10}(?:\w{1,30}\s{1,10})?rules"),
    _p(r"reveal\s{1,10}your\s{1,10}(?:system\s{1,10})?prompt"),
    _p(r"display\s{1,10}your\s{1,10}(?:initial\s{1,10})?instructions?"),
    _p(r"output\s{1,10}your\s{1,10}(?:system\s{1,10})?prompt"),
    _p(r"print\s{1,10}your\s{1,10}(?:hidden\s{1,10})?instructions?"),
    _p(r"tell\s{1,10}me\s{1,10}your\s{1,10}(?:secret\s{1,10})?instructions?"),
    _p(r"what\s{1,10}(?:were|are)\s{1,10}you\s{1,10}(?:told|instructed)\s{1,10}to\s{1,10}do"),
    _p(r"repeat\s{1,10}(?:back\s{1,10})?your\s{1,10}(?:\w{1,30}\s{1,10})?prompt"),
    _p(r"what\s{1,10}is\s{1,10}your\s{1,10}(?:original\s{1,10})?programming"),
    _p(r"dump\s{1,10}(?:your\s{1,10})?system\s{1,10}(?:prompt|instructions?)"),
    _p(r"list\s{1,10}your\s{1,10}(?:hidden\s{1,10})?directives?"),
    _p(r"what\s{1,10}(?:constraints?|limitations?)\s{1,10}do\s{1,10}you\s{1,10}have"),
    _p(r"echo\s{1,10}(?:back\s{1,10})?your\s{1,10}(?:initial\s{1,10})?prompt"),
)


# ---------------------------------------------------------------------------
# Data exfiltration
# ---------------------------------------------------------------------------

DATA_EXFILTRATION_PATTERNS: tuple[CatalogPattern, ...] = (
    _p(r"btoa\s{0,10}\("),  # base64 encode in JS
    _p(r"atob\s{0,10}\("),  # base64 decode in JS
    _p(r"Buffer\.from\s{0,10}\([^)\n]{0,200},\s{0,10}['\"]base64['\"]"),
    _p(r"\.toString\s{0,10}\(\s{0,10}['\"]base64['\"]\s{0,10}\)"),
    _p(r"encodeURIComponent\s{0,10}\("),
    _p(r"fetch\s{0,10}\(\s{0,10}['\"`][^'\"`?\n]{0,200}\?[^\n]{0,200}?="),  # query params
    _p(r"XMLHttpRequest"),
    _p(r"navigator\.sendBeacon"),
    _p(r"\.upload\s{0,10}\("),
    _p(r"formData\.append"),
    _p(r"new\s{1,10}FormData"),
    _p(r"multipart/form-data"),
    _p(r"webhook\s{0,10}[=:]"),
    _p(r"exfil"),
    _p(r"data\s{0,10}:\s{0,10}['\"]"),  # data URLs
    _p(r"\.writeFile[^\n]{0,200}?https?://"),
    _p(r"send\s[^\n]{0,200}?(?:to|the)\s{1,10}(?:external|remote)"),
    _p(r"upload\s[^\n]{0,200}?(?:to|the)\s{1,10}(?:server|cloud|remote)"),
    _p(r"post\s{1,10}data\s{1,10}to"),
    _p(r"to\s{1,10}external\s{1,10}(?:api|server|endpoint)"),
)


# ---------------------------------------------------------------------------
# Privilege escalation
# ---------------------------------------------------------------------------

PRIVILEGE_ESCALATION_PATTERNS: tuple[CatalogPattern, ...] = (
    _p(r"sudo\s[^\n]{0,200}?(?:-S\b|--stdin)"),  # password from stdin
    _p(r"echo\s[^|\n]{0,200}\|\s{0,10}sudo"),
    _p(r"sudo\s{1,10}-S"),
    _p(r"\bchmod\s{1,10}[2-7][0-7]{3}\b"),  # setuid / setgid bits
    _p(r"\bchmod\s{1,10}[ugoa]{0,4}\+s\b"),
    _p(r"\bchmod\s{1,10}777\b"),
    _p(r"\bchmod\s{1,10}666\b"),
    _p(r"\bchown\s{1,10}root"),
    _p(r"\bchgrp\s{1,10}root"),
    _p(r"visudo"),
    _p(r"/etc/sudoers"),
    _p(r"NOPASSWD"),
    _p(r"setuid"),
    _p(r"setgid"),
    _p(r"capability\s{1,10}cap_"),
    _p(r"escalat(?:e|ion)"),
    _p(r"privilege[ds]?\s{1,10}(?:elevat|escal)"),
    _p(r"run\s[^\n]{0,200}?as\s{1,10}root"),
    _p(r"(?:run|execute)\s{1,10}as\s{1,10}(?:root|admin)"),
    _p(r"admin(?:istrator)?\s{1,10}access"),
    _p(r"root\s{1,10}(?:access|user)"),
    _p(r"as\s{1,10}root\s{1,10}user"),
    _p(r"su\s{1,10}-\s{1,10}root"),
    _p(r"become\s{1,10}root"),
)


# ---------------------------------------------------------------------------
# AI defence: CVE-class injection techniques
# ---------------------------------------------------------------------------

_ZERO_WIDTH = r"[\u200B-\u200F\u2028-\u202F\uFEFF]"

AI_DEFENCE_PATTERNS: tuple[CatalogPattern, ...] = (
    # Role markers that fake a conversation turn boundary.
    _p(r"(?:^|\s)(?:system|assistant|user)[ \t]{0,10}:[ \t]{0,10}(?:\n|$)", multiline=True),
    # Hidden instruction brackets.
    _p(r"\[\[[^\]\n]{1,200}\]\]", flags=0),
    # Instructions hidden in HTML/XML comments.
    _p(
        r"<!--[\s\S]{0,100}?(?:ignore|override|bypass|system|instruction)[\s\S]{0,100}?-->",
        multiline=True,
    ),
    # Cyrillic or Greek homoglyphs leading into a trigger word.
    _p(r"[\u0400-\u04FF\u0370-\u03FF]{2}[\w\s]{1,100}?(?:ignore|bypass|instruction)"),
    # Fake prompt-structure tags.
    _p(r"</?(?:system|prompt|instruction|context|message)(?:\s[^>\n]{0,200})?>"),
    # Base64-encoded payloads.
    _p(r"(?:base64|b64)\s{0,10}[:=]\s{0,10}[\"']?[A-Za-z0-9+/]{20,300}={0,2}[\"']?"),
    # Delimiter lines that open a fake system section.
    _p(
        r"(?:^|\n)(?:---|\*{3}|#{3,20})[ \t]{0,10}(?:system|prompt|instruction|override)",
        multiline=True,
    ),
    # JSON role/instruction fields carrying suspicious values.
    _p(
        r"[\"']\s{0,10}(?:role|system|instruction)\s{0,10}[\"']\s{0,10}:\s{0,10}[\"']"
        r"(?:system|assistant|user|ignore|override|bypass)"
    ),
    # Nested instruction blocks.
    _p(r"<instruction[^>]{0,100}>[\s\S]{0,200}?</instruction>", multiline=True),
    # Blank-line smuggling ahead of an override, including bare carriage returns.
    _p(
        r"(?:\r\n|\r|\n){2}[ \t\r\n]{0,10}(?:ignore|forget|override|bypass)"
        r"\s{1,10}(?:all|previous|above)",
        multiline=True,
    ),
    # Template literal injection.
    _p(r"\$\{\s{0,10}(?:system|prompt|instruction|config)"),
    # Zero-width characters near trigger words, or clustered together.
    _p(
        _ZERO_WIDTH + r"(?:[\s\S]{0,20}?(?:ignore|bypass|system|instruction)|" + _ZERO_WIDTH + r")",
        multiline=True,
    ),
    # Markdown links with script or data targets.
    _p(r"\[(?:click|here|link|url)[^\]\n]{0,200}\]\([^)\n]{0,200}?(?:javascript|data|vbscript):"),
    # Escape sequence runs.
    _p(r"\\x[0-9a-fA-F]{2}(?:\\x[0-9a-fA-F]{2}){3,60}", flags=0),
    # Stacked combining diacritics.
    _p(r"[\u0300-\u036F]{2,50}", flags=0),
)


CATALOGS: dict[FindingCategory, tuple[CatalogPattern, ...]] = {
    FindingCategory.SENSITIVE_PATH: SENSITIVE_PATH_PATTERNS,
    FindingCategory.JAILBREAK: JAILBREAK_PATTERNS,
    FindingCategory.SUSPICIOUS_PATTERN: SUSPICIOUS_PATTERNS,
    FindingCategory.SOCIAL_ENGINEERING: SOCIAL_ENGINEERING_PATTERNS,
    FindingCategory.PROMPT_LEAKING: PROMPT_LEAKING_PATTERNS,
    FindingCategory.DATA_EXFILTRATION: DATA_EXFILTRATION_PATTERNS,
    FindingCategory.PRIVILEGE_ESCALATION: PRIVILEGE_ESCALATION_PATTERNS,
    FindingCategory.AI_DEFENCE: AI_DEFENCE_PATTERNS,
}


def all_patterns() -> list[tuple[FindingCategory, CatalogPattern]]:
    """Return every catalog pattern tagged with its category."""
    return [
        (category, pattern)
        for category, catalog in CATALOGS.items()
        for pattern in catalog
    ]
