"""YAML configuration file support.

A config file overrides ``ScannerOptions`` defaults. Example::

    allowed_domains:
      - docs.internal.example
    replace_default_domains: false
    blocked_patterns:
      - "internal-only"
    max_content_length: 500000
    risk_threshold: 30
    weights:
      severity: {low: 5, medium: 15, high: 30, critical: 50}
      category: {url: 0.5}

Weight tables are merged over the defaults, so a file only needs the
entries it changes. The merged tables must still pass
``RiskWeights.validate()``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from skillscreen.core.scanner.models import (
    BREAKDOWN_FIELDS,
    DEFAULT_MAX_CONTENT_LENGTH,
    DEFAULT_RISK_THRESHOLD,
    Confidence,
    FindingCategory,
    ScannerOptions,
    Severity,
)
from skillscreen.core.scanner.patterns import DEFAULT_ALLOWED_DOMAINS
from skillscreen.core.scanner.risk import RiskWeights
from skillscreen.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_KNOWN_KEYS = frozenset({
    "allowed_domains",
    "replace_default_domains",
    "blocked_patterns",
    "max_content_length",
    "risk_threshold",
    "weights",
})
_WEIGHT_TABLES = ("severity", "category", "confidence", "total")


def _string_list(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(f"'{key}' must be a list of strings")
    return value


def _integer(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"'{key}' must be an integer, got {value!r}")
    return value


def _table_key(table: str, name: str) -> Any:
    """Map a YAML key in a weight table to the key ``RiskWeights`` uses."""
    lowered = name.lower()
    try:
        if table == "severity":
            return Severity[lowered.upper()]
        if table == "confidence":
            return Confidence[lowered.upper()]
        if table == "category":
            return FindingCategory(lowered)
    except (KeyError, ValueError) as exc:
        raise ConfigurationError(f"Unknown {table} weight key: {name!r}") from exc
    if lowered not in BREAKDOWN_FIELDS:
        raise ConfigurationError(f"Unknown total weight key: {name!r}")
    return lowered


def _parse_weights(raw: Any) -> RiskWeights:
    if not isinstance(raw, dict):
        raise ConfigurationError("'weights' must be a mapping")
    unknown = set(raw) - set(_WEIGHT_TABLES)
    if unknown:
        raise ConfigurationError(f"Unknown weight tables: {', '.join(sorted(map(str, unknown)))}")

    weights = RiskWeights()
    for table in _WEIGHT_TABLES:
        entries = raw.get(table)
        if entries is None:
            continue
        if not isinstance(entries, dict):
            raise ConfigurationError(f"'weights.{table}' must be a mapping")
        target = getattr(weights, table)
        for name, value in entries.items():
            target[_table_key(table, str(name))] = value
    weights.validate()
    return weights


def parse_config(data: Any) -> ScannerOptions:
    """Turn a parsed YAML document into ``ScannerOptions``.

    Raises:
        ConfigurationError: On unknown keys, wrong types, or invalid values.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError("Config file must contain a mapping at the top level")
    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        raise ConfigurationError(f"Unknown config keys: {', '.join(sorted(map(str, unknown)))}")

    replace = data.get("replace_default_domains", False)
    if not isinstance(replace, bool):
        raise ConfigurationError("'replace_default_domains' must be true or false")
    extra_domains = _string_list(data, "allowed_domains")
    domains = set() if replace else set(DEFAULT_ALLOWED_DOMAINS)
    domains.update(d.strip().lower() for d in extra_domains if d.strip())

    weights = _parse_weights(data["weights"]) if "weights" in data else None

    return ScannerOptions(
        allowed_domains=domains,
        blocked_patterns=_string_list(data, "blocked_patterns"),
        max_content_length=_integer(data, "max_content_length", DEFAULT_MAX_CONTENT_LENGTH),
        risk_threshold=_integer(data, "risk_threshold", DEFAULT_RISK_THRESHOLD),
        risk_weights=weights,
    )


def load_config(path: Path | str) -> ScannerOptions:
    """Load scanner options from a YAML file.

    Raises:
        ConfigurationError: If the file is missing, unreadable, not valid
            YAML, or has invalid contents.
    """
    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Cannot read config file {config_path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Config file {config_path} is not valid YAML: {exc}") from exc

    options = parse_config(data)
    logger.debug("Loaded config from %s", config_path)
    return options
