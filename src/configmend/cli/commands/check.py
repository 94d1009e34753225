"""
CHECK COMMAND
-------------
Validates configuration files (read-only).
"""

from configmend.cli.commands.base import collect_results, get_console, results_to_json


def handle_check_command(args, engine, formatter) -> int:
    """
    Handles 'check' subcommand execution.
    Exit code is 1 when any input is invalid or missing.
    """
    console = get_console()
    is_json = args.output == "json"

    results = collect_results(args, engine, check_only=True)

    if is_json:
        print(results_to_json(results, mode="check"))
    elif len(results) == 1:
        formatter.display_report(results[0], verbose=args.verbose)
    else:
        formatter.print_final_table(results)
        for result in results:
            if not result.get("success"):
                formatter.display_report(result, verbose=args.verbose)

    failing = [r for r in results if not r.get("success")]
    if failing and not is_json:
        fixable = [r for r in failing if r.get("status") == "FIXABLE"]
        if fixable:
            console.print(f"\n[bold]Tip:[/bold] Run [cyan]configmend fix[/cyan] to repair "
                          f"{len(fixable)} fixable input(s).\n")
    return 1 if failing else 0
