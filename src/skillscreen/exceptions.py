"""SkillScreen exception hierarchy.

All public exceptions inherit from SkillScreenError, giving callers a single
base class to catch when they want to handle any SkillScreen-specific failure
without swallowing unrelated errors.

Scanning itself never raises on hostile or malformed content: bad input is
data, and the worst it can do is produce more findings.
"""


class SkillScreenError(Exception):
    """Base exception for all SkillScreen errors."""


class ParseError(SkillScreenError):
    """Raised when a skill file cannot be read.

    Covers missing files, permission problems and encoding issues
    encountered while loading skill documents from disk or from an
    import manifest.
    """


class ConfigurationError(SkillScreenError, ValueError):
    """Raised for invalid scanner options or configuration files.

    Covers out-of-range thresholds, non-positive content limits, weight
    tables that violate their ordering or normalization rules, and YAML
    configuration files with unknown keys or wrong value types.
    """


class PatternError(SkillScreenError, ValueError):
    """Raised when a caller-supplied block pattern is malformed.

    Block patterns are validated when they are added, never silently
    dropped: a pattern that does not compile, is empty, or matches the
    empty string is rejected.
    """
