#!/usr/bin/env python3
"""
Configmend CLI
--------------
Structural auto-repair for YAML/JSON configuration files.

Commands:
  check    Validate files and report issues (read-only)
  fix      Repair files (diff preview, backups, atomic writes)
  fmt      Run the external IaC formatter over a directory
  version  Display version information
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.table import Table

from configmend.cli.commands.base import (
    add_standard_flags,
    get_console,
    normalize_paths,
    print_version,
    validate_required_arg,
)
from configmend.cli.commands.check import handle_check_command
from configmend.cli.commands.fix import handle_fix_command
from configmend.cli.commands.fmt import handle_fmt_command
from configmend.core.config import ConfigManager
from configmend.core.engine import MendEngine
from configmend.integrations.ai import ExternalSuggester, SuggesterConfig
from configmend.ui.formatter import ConfigmendFormatter

logger = logging.getLogger("configmend.cli")


def print_help() -> None:
    console = get_console()
    console.print("\n[bold cyan]COMMANDS[/bold cyan]")
    cmd_table = Table(show_header=False, box=None, padding=(0, 2, 0, 0))
    cmd_table.add_column(style="bold green", width=12)
    cmd_table.add_column(style="white")
    cmd_table.add_row("check", "Validate YAML/JSON files and report issues (read-only)")
    cmd_table.add_row("fix", "Repair indentation and syntax issues")
    cmd_table.add_row("fmt", "Run the external IaC formatter over a directory")
    cmd_table.add_row("version", "Display version info")
    console.print(cmd_table)

    console.print("\n[bold cyan]OPTIONS[/bold cyan]")
    opt_table = Table(show_header=False, box=None, padding=(0, 2, 0, 0))
    opt_table.add_column(style="yellow", width=24)
    opt_table.add_column(style="dim white")
    opt_table.add_row("-h, --help", "Display usage information")
    opt_table.add_row("--output text|json", "Report format (Default: text)")
    opt_table.add_row("--schema NAME", "Minimal schema checks: kubernetes, helm")
    opt_table.add_row("--use-ai", "Ask the external suggester when no local fix is found")
    opt_table.add_row("--ext LIST", "Extensions to process (Default: .yaml,.yml,.json)")
    opt_table.add_row("--max-depth N", "Limit directory recursion depth (Default: 10)")
    opt_table.add_row("--dry-run", "fix: preview changes without writing")
    opt_table.add_row("-y, --yes", "fix: apply without confirmation")
    opt_table.add_row("--side-by-side", "fix: two-column diff preview")
    console.print(opt_table)
    console.print("\n   Use [cyan bold]-[/cyan bold] as target to read from stdin.\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="configmend", add_help=False)
    parser.add_argument("-h", "--help", action="store_true")
    parser.add_argument("-v", "--version", action="store_true")

    subparsers = parser.add_subparsers(dest="command")

    # CHECK
    check_parser = subparsers.add_parser("check", add_help=False)
    add_standard_flags(check_parser)

    # FIX
    fix_parser = subparsers.add_parser("fix", add_help=False)
    add_standard_flags(fix_parser)
    fix_parser.add_argument("--dry-run", action="store_true")
    fix_parser.add_argument("-y", "--yes", action="store_true", help="Auto-confirm")
    fix_parser.add_argument("--side-by-side", action="store_true", dest="side_by_side")

    # FMT
    fmt_parser = subparsers.add_parser("fmt", add_help=False)
    fmt_parser.add_argument("directory", nargs="?", default=".")
    fmt_parser.add_argument("--binary", default="terraform")
    fmt_parser.add_argument("--output", choices=["text", "json"], default="text")
    fmt_parser.add_argument("-h", "--help", action="store_true")

    # UTILS
    subparsers.add_parser("version", add_help=False)
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """
    Primary orchestration logic for the CLI.
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    console = get_console()

    # 0. Setup Logging (Default: WARNING, Verbose: INFO)
    log_level = logging.INFO if "--verbose" in argv else logging.WARNING
    logging.basicConfig(level=log_level, format="%(message)s")

    # 1. Parse Args
    parser = build_parser()
    args, unknown = parser.parse_known_args(argv)

    if unknown:
        console.print(f"[red]Error: Unrecognized arguments: {unknown}[/red]")
        print_help()
        sys.exit(1)

    if getattr(args, "output", "text") == "json":
        # Keep stdout clean for JSON consumers
        logging.getLogger().setLevel(logging.ERROR)

    if hasattr(args, "path"):
        args.path = normalize_paths(args.path)

    if args.version or args.command == "version":
        print_version()
        sys.exit(0)

    if args.help or not args.command:
        print_help()
        sys.exit(0)

    # 2. Dispatch
    if args.command == "fmt":
        sys.exit(handle_fmt_command(args))

    if not validate_required_arg(args.path, "path", args.command,
                                 [f"configmend {args.command} .", f"configmend {args.command} <file-or-dir>"]):
        sys.exit(1)

    try:
        config = ConfigManager(Path("."))
        suggester = None
        if args.use_ai or config.use_ai:
            suggester = ExternalSuggester(SuggesterConfig.from_env())

        engine = MendEngine(workspace_path=".", config=config, suggester=suggester)
        formatter = ConfigmendFormatter(console)

        if args.command == "check":
            sys.exit(handle_check_command(args, engine, formatter))
        sys.exit(handle_fix_command(args, engine, formatter))

    except Exception as e:
        console.print(f"[bold red]Fatal Error:[/bold red] {e}")
        logger.debug("Fatal error", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
