"""``skillscreen batch <input.json>`` -- Scan an import manifest and triage it.

Writes ``security-report.json``, ``quarantine-skills.json`` and
``safe-skills.json`` into the output directory.

Exit Codes:
    0 -- No skill was quarantined.
    1 -- One or more skills were quarantined.
    2 -- The manifest or config could not be loaded.
"""

from __future__ import annotations

import json
import sys

import click

from skillscreen.config import load_config
from skillscreen.core.batch import load_imported_skills, scan_batch, write_batch_outputs
from skillscreen.core.scanner import SecurityScanner
from skillscreen.exceptions import SkillScreenError


@click.command("batch")
@click.argument("input_json", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False),
    default=".",
    help="Directory for the JSON reports (default: current directory).",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML config file with scanner options.",
)
def batch_command(
    input_json: str,
    output_dir: str,
    output_format: str,
    config_path: str | None,
) -> None:
    """Scan every skill in INPUT_JSON and quarantine the ones that fail."""
    try:
        scanner = SecurityScanner(load_config(config_path)) if config_path else SecurityScanner()
        skills = load_imported_skills(input_json)
    except SkillScreenError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    batch = scan_batch(skills, scanner)
    written = write_batch_outputs(batch, output_dir)

    if output_format == "json":
        click.echo(json.dumps({
            "summary": batch.summary(),
            "outputs": {kind: str(p) for kind, p in written.items()},
        }, indent=2))
    else:
        from skillscreen.cli.output import print_batch_summary
        print_batch_summary(batch, written)

    sys.exit(1 if batch.quarantined else 0)
