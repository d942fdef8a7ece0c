"""``skillscreen check <path>`` -- Fast jailbreak pre-filter.

Runs only the jailbreak catalog over the raw file text, with no context
analysis or scoring.

Exit Codes:
    0 -- No jailbreak pattern found.
    1 -- A jailbreak pattern matched.
    2 -- The file could not be read.
"""

from __future__ import annotations

import sys

import click

from skillscreen.core.scanner import SecurityScanner
from skillscreen.exceptions import ParseError
from skillscreen.parsers import load_skill


@click.command("check")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def check_command(path: str) -> None:
    """Quickly check the file at PATH for jailbreak patterns."""
    try:
        skill = load_skill(path)
    except ParseError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if SecurityScanner().quick_check(skill.content):
        click.echo(f"{skill.skill_id}: OK")
        sys.exit(0)
    click.echo(f"{skill.skill_id}: jailbreak pattern detected")
    sys.exit(1)
