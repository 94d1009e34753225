"""
Configmend DIFF ENGINE
----------------------
Colorful diffs for the CLI:
- Side-by-side comparison (batch review)
- Inline unified diff (classic git style)
"""

import difflib
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text


class DiffEngine:
    """Renders diffs between original and mended content."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def render_diff(self, original: str, mended: str, file_path: str, side_by_side: bool = False) -> None:
        if original == mended:
            self.console.print(f"[dim]No changes for {file_path}[/dim]")
            return

        title = f"Proposed Changes for [bold cyan]{file_path}[/bold cyan]"
        if side_by_side:
            self._render_side_by_side(original, mended, title)
        else:
            self._render_inline(original, mended, title)

    def _render_side_by_side(self, original: str, mended: str, title: str) -> None:
        """Two columns; long unchanged runs collapse to their first and last two lines."""
        orig_lines = original.splitlines()
        new_lines = mended.splitlines()
        matcher = difflib.SequenceMatcher(None, orig_lines, new_lines)

        table = Table(title=title, show_header=True, header_style="bold magenta", expand=True, box=None)
        table.add_column("Original (Current)", ratio=1)
        table.add_column("Mended (Proposed)", ratio=1)

        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == "equal":
                if i2 - i1 <= 6:
                    table.add_row(
                        Syntax("\n".join(orig_lines[i1:i2]), "yaml", theme="monokai", start_line=i1 + 1),
                        Syntax("\n".join(new_lines[j1:j2]), "yaml", theme="monokai", start_line=j1 + 1),
                    )
                    continue

                table.add_row(
                    Syntax("\n".join(orig_lines[i1:i1 + 2]), "yaml", theme="monokai", start_line=i1 + 1),
                    Syntax("\n".join(new_lines[j1:j1 + 2]), "yaml", theme="monokai", start_line=j1 + 1),
                )
                table.add_row("[dim]... (unchanged) ...[/dim]", "[dim]... (unchanged) ...[/dim]")
                table.add_row(
                    Syntax("\n".join(orig_lines[i2 - 2:i2]), "yaml", theme="monokai", start_line=i2 - 1),
                    Syntax("\n".join(new_lines[j2 - 2:j2]), "yaml", theme="monokai", start_line=j2 - 1),
                )
            else:
                left = "\n".join(orig_lines[i1:i2]) if tag != "insert" else ""
                right = "\n".join(new_lines[j1:j2]) if tag != "delete" else ""
                table.add_row(
                    Syntax(left, "yaml", theme="monokai", background_color="#3b0e0e") if left else "",
                    Syntax(right, "yaml", theme="monokai", background_color="#0e3b0e") if right else "",
                )

        self.console.print(table)

    def _render_inline(self, original: str, mended: str, title: str) -> None:
        """Standard unified diff with colors."""
        diff_lines = difflib.unified_diff(
            original.splitlines(keepends=True),
            mended.splitlines(keepends=True),
            fromfile="Original",
            tofile="Mended",
            n=3,
        )

        diff_text = Text()
        for line in diff_lines:
            if not line.endswith("\n"):
                line += "\n"
            if line.startswith("---") or line.startswith("+++"):
                diff_text.append(line, style="bold magenta")
            elif line.startswith("@@"):
                diff_text.append(line, style="cyan")
            elif line.startswith("-"):
                diff_text.append(line, style="red")
            elif line.startswith("+"):
                diff_text.append(line, style="green")
            else:
                diff_text.append(line, style="dim white")

        self.console.print(Panel(diff_text, title=title, expand=False, border_style="blue"))
