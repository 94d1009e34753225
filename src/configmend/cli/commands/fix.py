"""
FIX COMMAND
-----------
Repairs configuration files, previewing the diff before anything is written.
"""

import os

from configmend.cli.commands.base import collect_results, get_console, results_to_json
from configmend.ui.diff import DiffEngine


def _has_changes(result) -> bool:
    return bool(result.get("healed_content")) and result.get("raw_content") != result.get("healed_content")


def handle_fix_command(args, engine, formatter) -> int:
    """
    Handles 'fix' subcommand execution.

    Flow: dry pass over every target, diff preview, then (with --yes or an
    interactive confirmation) a second pass that writes. --dry-run stops
    after the preview.
    """
    console = get_console()
    is_json = args.output == "json"
    is_dry = args.dry_run
    auto_yes = args.yes
    is_stream = args.path == ["-"]

    # JSON output cannot be interactive
    if is_json and not (is_dry or auto_yes or is_stream):
        console.print("[bold red]Error: JSON output requires non-interactive mode. Please use --yes or --dry-run.[/bold red]")
        return 1

    # STDIN: mended content goes to stdout, nothing is written
    if is_stream:
        result = collect_results(args, engine, check_only=False)[0]
        if is_json:
            print(results_to_json([result], mode="stdin"))
        elif result.get("success"):
            report = result["report"]
            print(report.fixed_content, end="")
        else:
            formatter.display_report(result, verbose=args.verbose)
        return 0 if result.get("success") else 1

    # 1. Dry Run Pass
    dry_results = collect_results(args, engine, check_only=False, dry_run=True)
    changed = [r for r in dry_results if _has_changes(r)]

    if not is_json:
        diff = DiffEngine(console)
        for result in changed:
            diff.render_diff(result["raw_content"], result["healed_content"], result.get("full_path", "Unknown"),
                             side_by_side=args.side_by_side)
        for result in dry_results:
            if not result.get("success"):
                formatter.display_report(result, verbose=args.verbose)

    final_results = dry_results
    if not changed:
        if not is_json and all(r.get("success") for r in dry_results):
            console.print("[green]No changes required.[/green]")
    elif is_dry:
        if not is_json:
            console.print(f"[dim yellow]Dry-run: {len(changed)} file(s) would change. No changes written.[/dim yellow]")
    else:
        if not auto_yes:
            console.print(f"\n[bold yellow]About to modify {len(changed)} file(s). "
                          f"Backups will be created in .configmend/backups/[/bold yellow]")
            confirm = console.input("[bold yellow]Apply changes? (y/n) [n]: [/bold yellow]")
            if confirm.strip().lower() != "y":
                console.print("[red]Aborted.[/red]")
                return 0

        # 2. Apply Pass (only the files that changed)
        final_results = []
        changed_paths = {r.get("full_path") for r in changed}
        for result in dry_results:
            path = result.get("full_path")
            if path in changed_paths and os.path.isfile(os.path.join(str(engine.workspace), path)):
                final_results.append(engine.audit_and_heal_file(
                    path, dry_run=False, schema=args.schema, use_ai=True if args.use_ai else None
                ))
            else:
                final_results.append(result)

    if is_json:
        print(results_to_json(final_results, mode="dry-run" if is_dry else "live"))
    elif len(final_results) > 1 or not is_dry:
        formatter.print_final_table(final_results)

    return 0 if all(r.get("success") for r in final_results) else 1
