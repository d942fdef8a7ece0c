"""``skillscreen scan <path>`` -- Scan skill Markdown for risky content.

PATH may be a single Markdown file or a directory. Directories are searched
for ``SKILL.md`` files and ``.claude/skills/*.md`` files.

Exit Codes:
    0 -- Every scanned skill passed.
    1 -- One or more skills failed.
    2 -- No skills found, or the configuration was invalid.
"""

from __future__ import annotations

import json
import sys
from dataclasses import replace
from pathlib import Path

import click

from skillscreen.config import load_config
from skillscreen.core.scanner import ScannerOptions, ScanReport, SecurityScanner
from skillscreen.core.scanner.formatters import to_dict, to_github_annotations, to_sarif
from skillscreen.exceptions import SkillScreenError
from skillscreen.parsers import SkillDocument, discover_skills, load_skill


def _build_options(
    config_path: str | None,
    risk_threshold: int | None,
    allow_domains: tuple[str, ...],
    block_patterns: tuple[str, ...],
) -> ScannerOptions:
    """Merge the config file (if any) with command-line flags. Flags win."""
    options = load_config(config_path) if config_path else ScannerOptions()
    if risk_threshold is not None:
        options = replace(options, risk_threshold=risk_threshold)
    if block_patterns:
        options = replace(options, blocked_patterns=[*options.blocked_patterns, *block_patterns])
    return options


def _load_targets(path: Path) -> list[SkillDocument]:
    if path.is_file():
        return [load_skill(path)]
    return discover_skills(path)


def _output_reports(
    reports: list[ScanReport],
    skills: list[SkillDocument],
    output_format: str,
) -> None:
    if output_format == "json":
        payload = [to_dict(r) for r in reports]
        click.echo(json.dumps(payload[0] if len(payload) == 1 else payload, indent=2))
    elif output_format == "sarif":
        uris = [s.path.as_posix() for s in skills]
        click.echo(json.dumps(to_sarif(reports, artifact_uris=uris), indent=2))
    elif output_format == "github":
        for report, skill in zip(reports, skills):
            for line in to_github_annotations(report, path=skill.path.as_posix()):
                click.echo(line)
    else:
        from skillscreen.cli.output import print_report_detail, print_scan_results
        if len(reports) == 1:
            print_report_detail(reports[0])
        else:
            print_scan_results(reports)


def _fail(message: str, output_format: str) -> None:
    if output_format == "json":
        click.echo(json.dumps({"error": message}))
    else:
        click.echo(f"Error: {message}", err=True)
    sys.exit(2)


@click.command("scan")
@click.argument("path", type=click.Path(exists=True))
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json", "sarif", "github"]),
    default="text",
    help="Output format: text (default), json, sarif, or github.",
)
@click.option(
    "--risk-threshold",
    type=click.IntRange(0, 100),
    default=None,
    help="Fail skills whose risk score reaches this value (default: 40).",
)
@click.option(
    "--allow-domain", "allow_domains",
    multiple=True,
    help="Additional trusted URL domain. May be repeated.",
)
@click.option(
    "--block-pattern", "block_patterns",
    multiple=True,
    help="Regular expression to report at HIGH severity. May be repeated.",
)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML config file with scanner options.",
)
def scan_command(
    path: str,
    output_format: str,
    risk_threshold: int | None,
    allow_domains: tuple[str, ...],
    block_patterns: tuple[str, ...],
    config_path: str | None,
) -> None:
    """Scan skill Markdown at PATH for prompt injection and other risks.

    Exit code 0 if all skills pass, 1 if any fail, 2 on invalid input.
    """
    try:
        options = _build_options(config_path, risk_threshold, allow_domains, block_patterns)
        scanner = SecurityScanner(options)
        scanner.extend_allowed_domains(allow_domains)
        skills = _load_targets(Path(path))
    except SkillScreenError as exc:
        _fail(str(exc), output_format)
        return

    if not skills:
        if output_format == "json":
            click.echo(json.dumps({"skills": [], "summary": "No skills found"}))
        else:
            click.echo("No skills found in the target path.")
        sys.exit(2)

    reports = [scanner.scan(skill.skill_id, skill.content) for skill in skills]
    _output_reports(reports, skills, output_format)
    sys.exit(0 if all(r.passed for r in reports) else 1)
