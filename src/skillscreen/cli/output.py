"""Rich output formatting helpers for the skillscreen CLI.

Severity Color Mapping:
    CRITICAL = bold red, HIGH = yellow, MEDIUM = cyan, LOW = green
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from skillscreen.core.batch import BatchResult
from skillscreen.core.scanner import ScanReport, Severity
from skillscreen.core.scanner.formatters import group_by_severity

_SEVERITY_STYLES: dict[Severity, str] = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "yellow",
    Severity.MEDIUM: "cyan",
    Severity.LOW: "green",
}

console = Console()


def severity_style(severity: Severity) -> str:
    """Return the Rich style string for a given severity level."""
    return _SEVERITY_STYLES.get(severity, "white")


def _verdict(passed: bool) -> Text:
    return Text("PASSED", style="bold green") if passed else Text("FAILED", style="bold red")


def print_scan_results(reports: list[ScanReport]) -> None:
    """Print a summary table for several scanned skills."""
    if not reports:
        console.print("[dim]No skills found to scan.[/dim]")
        return

    table = Table(title="skillscreen Scan Results", show_header=True, header_style="bold")
    table.add_column("Skill", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Risk", justify="right")
    table.add_column("Findings", justify="right")
    table.add_column("Max Severity", justify="center")

    for report in reports:
        top = report.max_severity
        max_sev = Text(top.name, style=severity_style(top)) if top else Text("-", style="dim")
        table.add_row(
            report.skill_id, _verdict(report.passed),
            str(report.risk_score), str(len(report.findings)), max_sev,
        )

    console.print(table)
    passed = sum(1 for r in reports if r.passed)
    failed = len(reports) - passed
    parts = [f"[bold]{len(reports)}[/bold] skills scanned"]
    if passed:
        parts.append(f"[green]{passed} passed[/green]")
    if failed:
        parts.append(f"[red]{failed} failed[/red]")
    parts.append(f"{sum(len(r.findings) for r in reports)} total findings")
    console.print(" | ".join(parts))


def print_report_detail(report: ScanReport) -> None:
    """Print one report with its findings grouped by severity."""
    header = Text.assemble(
        ("Skill: ", "bold"), (report.skill_id, ""),
        ("  Status: ", "bold"), _verdict(report.passed),
        ("  Risk: ", "bold"), (f"{report.risk_score}/100", ""),
    )
    console.print(Panel(header, title="Scan Result"))

    if not report.findings:
        console.print("[green]No findings.[/green]")
        return

    for severity, findings in group_by_severity(report.findings).items():
        if not findings:
            continue
        style = severity_style(severity)
        table = Table(title=Text(f"{severity.name} ({len(findings)})", style=style))
        table.add_column("Line", justify="right", style="dim")
        table.add_column("Category")
        table.add_column("Message")
        table.add_column("Confidence", justify="center", style="dim")
        for f in findings:
            line = str(f.line_number) if f.line_number is not None else "-"
            table.add_row(line, f.category.value, f.message, f.confidence.name)
        console.print(table)

    breakdown = {k: v for k, v in report.risk_breakdown.as_dict().items() if v > 0}
    if breakdown:
        risk_table = Table(title="Risk Breakdown", show_header=True)
        risk_table.add_column("Category", style="bold")
        risk_table.add_column("Score", justify="right")
        for name, value in breakdown.items():
            risk_table.add_row(name, f"{value:.1f}")
        console.print(risk_table)


def print_batch_summary(batch: BatchResult, written: dict[str, Any] | None = None) -> None:
    """Print batch statistics and the riskiest quarantined skills."""
    summary = batch.summary()
    console.print(Panel("[bold]Imported Skill Security Scan[/bold]", title="Batch Summary"))
    console.print(f"  Total scanned:  [bold]{summary['total_scanned']}[/bold]")
    console.print(f"  Passed:         [green]{summary['passed']}[/green]")
    console.print(f"  Quarantined:    [red]{summary['quarantined']}[/red]")
    console.print(f"  Avg risk score: {summary['average_risk_score']}")
    console.print(f"  Max risk score: {summary['max_risk_score']}")
    console.print(
        f"  Duration:       {summary['duration_ms']} ms "
        f"({summary['skills_per_second']} skills/sec)"
    )

    sev_table = Table(title="By Severity", show_header=True)
    sev_table.add_column("Severity", style="bold")
    sev_table.add_column("Count", justify="right")
    for name, count in summary["by_severity"].items():
        style = severity_style(Severity[name]) if name in Severity.__members__ else "green"
        sev_table.add_row(Text(name, style=style), str(count))
    console.print(sev_table)

    top = batch.quarantined[:10]
    if top:
        q_table = Table(title="Top Quarantined Skills", show_header=True)
        q_table.add_column("Skill", style="bold")
        q_table.add_column("Risk", justify="right")
        q_table.add_column("Severity", justify="center")
        for r in top:
            sev = r.report.max_severity
            q_table.add_row(
                r.skill.skill_id, str(r.report.risk_score),
                Text(r.severity_category, style=severity_style(sev) if sev else "green"),
            )
        console.print(q_table)

    if written:
        for kind, path in written.items():
            console.print(f"  [dim]{kind}:[/dim] {path}")
