"""Loader for skill Markdown documents (SKILL.md and .claude/skills/*.md).

Skills are Markdown files that may open with YAML frontmatter delimited by
``---`` lines, providing structured metadata such as ``name`` and
``description``. The scanner only needs the raw text and an identifier, so
this loader keeps the document intact and pulls just enough metadata to
label the report.

Skill Id Resolution
-------------------
1. Frontmatter ``name`` if present and a non-empty string.
2. For a file named ``SKILL.md``, the name of its parent directory.
3. Otherwise the file stem.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import yaml

from skillscreen.exceptions import ParseError

logger = logging.getLogger(__name__)

# Match YAML frontmatter: ---\n...\n---
_FRONTMATTER_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n|$)", re.DOTALL)

SKILL_FILENAME = "SKILL.md"


@dataclass(frozen=True)
class SkillDocument:
    """A skill document ready for scanning.

    Attributes:
        skill_id: Identifier used to label the scan report.
        name: Display name (frontmatter name or derived id).
        description: Frontmatter description, empty if absent.
        path: Source file.
        content: The full raw Markdown, frontmatter included.
    """

    skill_id: str
    name: str
    description: str
    path: Path
    content: str


def _parse_frontmatter(content: str) -> dict:
    """Return the frontmatter mapping, or an empty dict if absent or malformed."""
    match = _FRONTMATTER_PATTERN.match(content)
    if not match:
        return {}
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError:
        return {}
    return data if isinstance(data, dict) else {}


def load_skill(path: Path | str) -> SkillDocument:
    """Read one skill Markdown file.

    Args:
        path: Path to the Markdown file.

    Returns:
        The loaded ``SkillDocument``.

    Raises:
        ParseError: If the file cannot be read or is not valid UTF-8.
    """
    file_path = Path(path)
    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ParseError(f"Cannot read skill file {file_path}: {exc}") from exc

    if file_path.name == SKILL_FILENAME and file_path.parent.name:
        default_id = file_path.parent.name
    else:
        default_id = file_path.stem

    meta = _parse_frontmatter(content)
    name = meta.get("name")
    if not isinstance(name, str) or not name.strip():
        name = default_id
    description = meta.get("description", "")
    if not isinstance(description, str):
        description = str(description)

    return SkillDocument(
        skill_id=name.strip(),
        name=name.strip(),
        description=description,
        path=file_path,
        content=content,
    )


def discover_skill_files(root: Path | str) -> list[Path]:
    """Find skill Markdown files under a directory.

    Collects every ``SKILL.md`` (recursively) and every ``*.md`` directly
    inside a ``.claude/skills/`` directory.

    Returns:
        Sorted, de-duplicated list of file paths.
    """
    base = Path(root)
    found: set[Path] = set(base.rglob(SKILL_FILENAME))
    for skills_dir in base.rglob("skills"):
        if skills_dir.is_dir() and skills_dir.parent.name == ".claude":
            found.update(p for p in skills_dir.glob("*.md") if p.is_file())
    return sorted(found)


def discover_skills(root: Path | str) -> list[SkillDocument]:
    """Load every skill found under ``root``.

    Files that cannot be read are logged and skipped.
    """
    skills: list[SkillDocument] = []
    for path in discover_skill_files(root):
        try:
            skills.append(load_skill(path))
        except ParseError:
            logger.warning("Skipping unreadable skill file: %s", path, exc_info=True)
    return skills
