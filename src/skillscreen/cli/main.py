"""skillscreen CLI -- Risk scanning for agent skill Markdown.

Entry point for the ``skillscreen`` command-line tool.

Commands:
    scan   -- Scan a skill file or every skill under a directory.
    check  -- Fast jailbreak-only check of one file.
    batch  -- Scan an import manifest and write quarantine reports.

Usage::

    skillscreen scan ./skills/deploy/SKILL.md
    skillscreen scan ./my-agent-project --format sarif > results.sarif
    skillscreen scan . --config skillscreen.yaml --allow-domain example.com
    skillscreen check ./skills/deploy/SKILL.md
    skillscreen batch imported-skills.json --output-dir reports/
"""

from __future__ import annotations

import logging

import click

from skillscreen import __version__, _PRODUCT_ID
from skillscreen.cli.batch_cmd import batch_command
from skillscreen.cli.check import check_command
from skillscreen.cli.scan import scan_command


@click.group()
@click.version_option(version=__version__, prog_name=_PRODUCT_ID)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """skillscreen: Scan agent skill Markdown for prompt injection risks.

    Detects jailbreaks, data exfiltration, privilege escalation and other
    hostile instructions, and produces a 0-100 risk score per skill.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )


cli.add_command(scan_command)
cli.add_command(check_command)
cli.add_command(batch_command)
