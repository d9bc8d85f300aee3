"""Shared utility functions for frb-plugin-tool.

Provides external-tool execution, plugin-name input, JSON output, tool
discovery, and Rich-based progress reporting.
"""

from __future__ import annotations

import asyncio
import json
import os
import shlex
import shutil
from collections.abc import Awaitable, Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from rich.rule import Rule
from rich.table import Table

console = Console()

# Signature shared by ``run_command`` and the fakes used in tests.
CommandRunner = Callable[..., Awaitable[tuple[int, str, str]]]

# ---------------------------------------------------------------------------
# External tools
# ---------------------------------------------------------------------------


async def run_command(
    argv: Sequence[str],
    cwd: str | Path | None = None,
    timeout: float | None = None,
    env: Mapping[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run an external tool and wait for it to exit.

    *argv* is executed directly, never through a shell, so a plugin name is
    handed to flutter and cargo exactly as typed.

    Args:
        argv: Executable followed by its arguments.
        cwd: Directory the tool runs in; defaults to ours.
        timeout: Seconds to wait before killing the tool.  ``None`` waits
            for as long as it takes.
        env: Variables layered over the current environment.

    Returns:
        ``(returncode, stdout, stderr)`` with both streams decoded and
        stripped.  A tool killed on timeout reports ``-1``.

    Raises:
        OSError: If the executable cannot be launched (typically
            ``FileNotFoundError`` when it is not installed).
    """
    child_env = {**os.environ, **env} if env else None

    process = await asyncio.create_subprocess_exec(
        *argv,
        cwd=None if cwd is None else os.fspath(cwd),
        env=child_env,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        out, err = await asyncio.wait_for(process.communicate(), timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return -1, "", f"{format_command(argv)} timed out after {timeout}s"

    return process.returncode or 0, _decode(out), _decode(err)


def _decode(stream: bytes | None) -> str:
    return (stream or b"").decode("utf-8", errors="replace").strip()


def format_command(argv: Sequence[str]) -> str:
    """Render *argv* the way it would be typed into a shell."""
    return shlex.join(argv)


def find_missing_tools(executables: dict[str, str]) -> list[str]:
    """Return the names of tools whose executable is not on ``PATH``."""
    return [name for name, exe in executables.items() if shutil.which(exe) is None]


# ---------------------------------------------------------------------------
# Plugin name input
# ---------------------------------------------------------------------------


def normalize_plugin_name(raw: str) -> str:
    """Trim surrounding whitespace and reject empty names.

    No other validation is applied: the name is used verbatim as a directory
    name and as a template value.

    Raises:
        ValueError: If nothing is left after trimming.
    """
    name = raw.strip()
    if not name:
        raise ValueError("Plugin name must not be empty.")
    return name


def read_plugin_name() -> str:
    """Prompt for the plugin name on standard input."""
    raw = Prompt.ask(
        "[bold cyan]Enter a valid Dart plugin name[/bold cyan] "
        "[dim](e.g. hello_dart, hi_ldd_plugin)[/dim]",
        console=console,
    )
    return normalize_plugin_name(raw)


# ---------------------------------------------------------------------------
# JSON output
# ---------------------------------------------------------------------------


async def save_json(data: Any, path: str | Path) -> Path:
    """Write *data* as indented JSON, creating missing parent directories.

    Values JSON cannot represent (paths, datetimes) are written as strings.
    """
    target = Path(path)
    text = json.dumps(data, indent=2, default=str) + "\n"

    def _write() -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")

    await asyncio.to_thread(_write)
    return target


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """``0.4s`` below a minute, ``2m 05s`` above."""
    seconds = max(seconds, 0.0)
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs:02d}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


STAGE_NAMES: dict[int, str] = {
    1: "BOOTSTRAP",
    2: "VCS",
    3: "SCAFFOLD",
    4: "SAMPLE MODULE",
}

STAGE_COLORS: dict[int, str] = {
    1: "bright_cyan",
    2: "bright_green",
    3: "bright_yellow",
    4: "bright_magenta",
}


def print_stage_header(stage: int, name: str) -> None:
    """Print a full-width rule announcing a pipeline stage."""
    color = STAGE_COLORS.get(stage, "white")
    console.print()
    console.print(
        Rule(
            f"[bold {color}] Stage {stage}: {name.upper()} [/bold {color}]",
            style=color,
        )
    )
    console.print()


def print_summary_table(rows: list[tuple[str, ...]], columns: list[str], title: str = "Summary") -> None:
    """Print one row per step under *columns*; the first column is the key."""
    table = Table(title=title, title_justify="left", header_style="bold", show_edge=False)
    table.add_column(columns[0], style="cyan", no_wrap=True)
    for column in columns[1:]:
        table.add_column(column)

    for row in rows:
        table.add_row(*(str(cell) for cell in row))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    console.print(f"[green]{escape(message)}[/green]")


def print_error(message: str) -> None:
    console.print(f"[red]{escape(message)}[/red]", highlight=False)


def print_warning(message: str) -> None:
    console.print(f"[yellow]{escape(message)}[/yellow]")


def print_info(message: str) -> None:
    console.print(f"  {escape(message)}")
