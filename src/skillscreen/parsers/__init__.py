"""Skill document loading and discovery."""

from skillscreen.parsers.skill_md import (
    SkillDocument,
    discover_skill_files,
    discover_skills,
    load_skill,
)

__all__ = [
    "SkillDocument",
    "discover_skill_files",
    "discover_skills",
    "load_skill",
]
