#!/usr/bin/env python3
"""
Configmend FORMATTER
--------------------
Renders reports with rich: per-file panel, issues table, suggestion
snippets, the staged audit trail (verbose) and the batch summary table.
"""

from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from configmend.models import HealReport, Status, Suggestion

FILE_ERRORS = ("ENGINE_ERROR", "FILE_NOT_FOUND", "SECURITY_ERROR", "EMPTY_FILE")

STATUS_COLORS = {
    Status.VALID: "green",
    Status.FIXED: "cyan",
    Status.FIXABLE: "yellow",
    Status.SUGGESTED: "yellow",
    Status.MANUAL_REVIEW: "red",
    Status.REFUSED: "red",
    "IGNORED": "dim",
}

CONFIDENCE_COLORS = {"high": "green", "medium": "yellow", "low": "red"}


class ConfigmendFormatter:
    """
    Renders results produced by MendEngine.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    # -------------------------------------------------------------------------
    # Single Result Display
    # -------------------------------------------------------------------------

    def display_report(self, result: Dict[str, Any], verbose: bool = False) -> None:
        """
        Renders the details for a single file or stream.

        Args:
            result: Result dict from MendEngine.audit_and_heal_file() / audit_stream()
            verbose: If True, shows the full 'Stage X' audit trail.
        """
        status = result.get("status", "UNKNOWN")
        file_path = result.get("file_path", "Unknown")

        if status in FILE_ERRORS:
            self.display_error(file_path, result.get("error", "Unknown error"), status)
            return

        report: Optional[HealReport] = result.get("report")
        color = STATUS_COLORS.get(status, "white")

        body = f"[bold]Status:[/bold] [{color}]{status}[/{color}]"
        if report is not None:
            body += (
                f"\n[bold]Format:[/bold] {report.format}"
                f"\n[bold]Auto-fix:[/bold] {'yes' if report.can_auto_fix else 'no'}"
                f"\n[bold]Explanation:[/bold] {report.explanation}"
            )
        if result.get("backup_created"):
            body += f"\n[bold]Backup:[/bold] [dim]{result['backup_created']}[/dim]"

        self.console.print(Panel(body, title=f"[bold {color}]{file_path}[/bold {color}]",
                                 border_style=color, expand=True))

        if report is None:
            return

        self._render_issues(report)
        for suggestion in report.suggestions:
            self.display_suggestion(suggestion)
        for change in report.changes:
            self.console.print(f"  [cyan]+[/cyan] line {change.line}: {change.description}")

        if verbose and report.logic_logs:
            self._render_staged_logs(report.logic_logs, file_path)

    def _render_issues(self, report: HealReport) -> None:
        if not report.issues:
            return

        table = Table(title="[bold red]ISSUES FOUND[/bold red]", show_header=True,
                      header_style="bold white", expand=True, box=None)
        table.add_column("Severity", width=10)
        table.add_column("Type", width=10)
        table.add_column("Doc", width=4, justify="right")
        table.add_column("Line", width=5, justify="right")
        table.add_column("Message")

        for issue in report.issues:
            style = "bold red" if issue.severity == "error" else "bold yellow"
            table.add_row(
                f"[{style}]{issue.severity.upper()}[/{style}]",
                f"[cyan]{issue.type}[/cyan]",
                str(issue.document) if issue.document else "-",
                str(issue.line) if issue.line else "-",
                issue.message,
            )

        self.console.print(table)

    def display_suggestion(self, suggestion: Suggestion) -> None:
        """Shows a suggestion snippet with its replacement range; nothing is applied."""
        color = CONFIDENCE_COLORS.get(suggestion.confidence.value, "white")
        where = f"lines {suggestion.start_line}-{suggestion.end_line}"
        if suggestion.document:
            where = f"document {suggestion.document}, {where}"

        self.console.print(Panel(
            Syntax(suggestion.snippet, "yaml", theme="monokai", line_numbers=True,
                   start_line=suggestion.start_line),
            title=f"SUGGESTION [{color}]{suggestion.confidence.value}[/{color}]: {suggestion.description}",
            subtitle=f"[dim]replace {where}[/dim]",
            border_style=color,
            expand=False,
        ))

    def _render_staged_logs(self, logs: List[str], file_path: Optional[str] = None) -> None:
        """Groups logs by 'Stage X:' prefixes."""
        tree = Tree(f"[bold cyan]Audit Trail{f': {file_path}' if file_path else ''}[/bold cyan]")
        current_branch = None

        for log in logs:
            if log.startswith("Stage ") or log.startswith("==="):
                current_branch = tree.add(f"[bold magenta]{log}[/bold magenta]")
            else:
                target = current_branch if current_branch else tree
                target.add(f"[dim]{log}[/dim]")

        self.console.print(tree)

    # -------------------------------------------------------------------------
    # Batch Summary
    # -------------------------------------------------------------------------

    def print_final_table(self, results: List[Dict[str, Any]]) -> None:
        if not results:
            self.console.print("[dim yellow]No files processed.[/dim yellow]")
            return

        table = Table(
            title="\n[bold magenta]Configmend Summary[/bold magenta]",
            show_header=True,
            header_style="bold white on magenta",
            show_lines=True,
            padding=(0, 1),
        )
        table.add_column("File", style="cyan", no_wrap=False)
        table.add_column("Status", justify="center", width=14)
        table.add_column("Issues", justify="right", width=7)
        table.add_column("Suggestions", justify="right", width=12)
        table.add_column("Written", justify="center", width=8)

        counts: Dict[str, int] = {}
        for r in results:
            status = r.get("status", "UNKNOWN")
            counts[status] = counts.get(status, 0) + 1
            report = r.get("report")
            color = STATUS_COLORS.get(status, "red" if status in FILE_ERRORS else "white")

            table.add_row(
                r.get("full_path", r.get("file_path", "Unknown")),
                f"[{color}]{status}[/{color}]",
                str(len(report.issues)) if report else "-",
                str(len(report.suggestions)) if report else "-",
                "yes" if r.get("written") else "no",
            )

        self.console.print(table)

        ok = sum(1 for r in results if r.get("success"))
        breakdown = " | ".join(f"{status}: {count}" for status, count in sorted(counts.items()))
        self.console.print(f"\n[bold]Total:[/bold] {len(results)} | [green]ok {ok}[/green] | {breakdown}\n")

    def display_error(self, file_path: str, error_msg: str, status: str = "ERROR") -> None:
        self.console.print(Panel(
            f"[red]{error_msg}[/red]",
            title=f"[bold red]{status}: {file_path}[/bold red]",
            border_style="red",
            padding=(1, 2),
        ))
