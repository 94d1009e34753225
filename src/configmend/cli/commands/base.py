"""
CLI SHARED UTILITIES
--------------------
Common logic used across multiple CLI commands.
"""

import json
import os
import platform
import sys
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from configmend import __version__
from configmend.core.engine import MendEngine

# Global UI Controller
console = Console()

DEFAULT_EXTENSIONS = ".yaml,.yml,.json"


def get_console() -> Console:
    return console


def add_standard_flags(sub) -> None:
    """Injects target arguments, search filters and shared options into a sub-parser."""
    sub.add_argument("path", nargs="*", metavar="TARGET", help="File(s) or directory(s) to process, '-' for stdin")
    sub.add_argument("--max-depth", type=int, default=10)
    sub.add_argument("--ext", default=DEFAULT_EXTENSIONS)
    sub.add_argument("--output", choices=["text", "json"], default="text", help="Output format")
    sub.add_argument("--schema", choices=["kubernetes", "helm"], default=None,
                     help="Enable minimal schema checks")
    sub.add_argument("--use-ai", action="store_true", dest="use_ai",
                     help="Consult the external suggester when no local suggestion is found")
    sub.add_argument("-h", "--help", action="store_true")
    sub.add_argument("--verbose", action="store_true", help="Show the full audit trail")


def normalize_paths(raw_paths: Optional[List[str]]) -> List[str]:
    """
    Flattens a list of paths that might contain split commas.
    Example: ["f1,f2", "f3"] -> ["f1", "f2", "f3"]
    """
    if not raw_paths:
        return []

    normalized = []
    for p in raw_paths:
        for sub in p.split(","):
            clean = sub.strip()
            if clean:
                normalized.append(clean)
    return normalized


def parse_extensions(raw: str) -> List[str]:
    return [e.strip() for e in raw.split(",") if e.strip()]


def validate_required_arg(value, arg_name: str, context: str, examples: List[str]) -> bool:
    """
    Validates that a required argument is present.
    If missing, prints an error panel and returns False.
    """
    if value:
        return True

    error_msg = f"[bold red]Missing Required Argument: {arg_name}[/bold red]\n\n"
    error_msg += f"The [bold]{context}[/bold] command requires a target.\n"
    if examples:
        error_msg += "\n[dim italic]Try:[/dim italic]\n"
        for ex in examples:
            error_msg += f"  [cyan]{ex}[/cyan]\n"

    console.print(Panel(error_msg, border_style="red", title="[bold yellow]Input Error[/bold yellow]",
                        padding=(0, 2), expand=False))
    return False


def collect_results(args, engine: MendEngine, check_only: bool, dry_run: bool = True) -> List[Dict[str, Any]]:
    """Runs the engine over every target: '-' reads stdin, directories are crawled."""
    extensions = parse_extensions(args.ext)
    use_ai = True if args.use_ai else None
    results = []

    for target in args.path:
        if target == "-":
            content = sys.stdin.read()
            results.append(engine.audit_stream(content, source_name="<stdin>", schema=args.schema,
                                               use_ai=use_ai, check_only=check_only))
        elif os.path.isfile(target):
            results.append(engine.audit_and_heal_file(target, dry_run=dry_run, schema=args.schema,
                                                      use_ai=use_ai, check_only=check_only))
        elif os.path.isdir(target):
            results.extend(engine.batch_heal(target, extensions, max_depth=args.max_depth, dry_run=dry_run,
                                             schema=args.schema, use_ai=use_ai, check_only=check_only))
        else:
            # Placeholder result so the exit code reflects the missing target
            results.append({"success": False, "file_path": target, "full_path": target, "status": "FILE_NOT_FOUND",
                            "error": "Path does not exist", "report": None, "written": False})

    return results


def results_to_json(results: List[Dict[str, Any]], mode: str) -> str:
    output = {
        "summary": {
            "total_files": len(results),
            "successful": sum(1 for r in results if r.get("success")),
            "written": sum(1 for r in results if r.get("written")),
            "mode": mode,
        },
        "results": [],
    }

    for r in results:
        report = r.get("report")
        output["results"].append({
            "file": r.get("full_path", r.get("file_path")),
            "status": r.get("status"),
            "success": r.get("success", False),
            "written": r.get("written", False),
            "backup": r.get("backup_created"),
            "error": r.get("error"),
            "report": report.to_dict() if report is not None else None,
        })

    return json.dumps(output, indent=2)


def print_version() -> None:
    """Displays system information panel."""
    info_table = Table(box=None, show_header=False, padding=(0, 1))
    info_table.add_column(width=18, justify="left")
    info_table.add_column(justify="left")

    info_table.add_row("Client Version:", f"[bold white]{__version__}[/bold white]")
    info_table.add_row("Platform:", f"{platform.system()} {platform.release()} ({platform.machine()})")
    info_table.add_row("Runtime:", f"Python {platform.python_version()}")

    console.print(Panel.fit(info_table, title="[bold]configmend[/bold]", border_style="cyan", padding=(0, 2)))
