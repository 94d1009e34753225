"""
FMT COMMAND
-----------
Runs the external infrastructure-as-code formatter over a directory.
"""

import json

from rich.panel import Panel

from configmend.cli.commands.base import get_console
from configmend.integrations.formatter import format_directory


def handle_fmt_command(args) -> int:
    console = get_console()
    output, success = format_directory(args.directory, binary=args.binary)

    if args.output == "json":
        print(json.dumps({"directory": args.directory, "success": success, "output": output}, indent=2))
    else:
        color = "green" if success else "red"
        console.print(Panel(output.strip() or "[dim]no files changed[/dim]",
                            title=f"[bold {color}]{args.binary} fmt: {args.directory}[/bold {color}]",
                            border_style=color, expand=False))

    return 0 if success else 1
