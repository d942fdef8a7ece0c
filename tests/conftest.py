"""Shared fixtures for skillscreen tests."""

from __future__ import annotations

import pathlib

import pytest

from skillscreen.core.scanner import SecurityScanner


@pytest.fixture
def scanner() -> SecurityScanner:
    """A scanner with default options."""
    return SecurityScanner()


@pytest.fixture
def sample_skill_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Create a temporary directory simulating a skill project."""
    skill_dir = tmp_path / "sample-skill"
    skill_dir.mkdir()
    return skill_dir


@pytest.fixture
def clean_skill_md(sample_skill_dir: pathlib.Path) -> pathlib.Path:
    """Write a benign SKILL.md with frontmatter."""
    skill_file = sample_skill_dir / "SKILL.md"
    skill_file.write_text(
        "---\n"
        "name: formatter\n"
        "description: Formats Markdown tables\n"
        "---\n\n"
        "# Formatter\n\n"
        "Align the columns of every table in the document.\n"
        "See https://github.com/example/formatter for usage notes.\n",
        encoding="utf-8",
    )
    return skill_file
