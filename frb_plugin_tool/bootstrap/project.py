"""Creates the base plugin tree with ``flutter create``."""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape

from frb_plugin_tool.config import DEFAULT_PLATFORMS
from frb_plugin_tool.utils import (
    CommandRunner,
    console,
    format_command,
    print_error,
    run_command,
)

FLUTTER_TEMPLATE = "plugin_ffi"


class ProjectBootstrapper:
    """Runs the Flutter project-creation tool in the working directory.

    Everything else in the run writes into the directory this creates, so a
    failure here ends the run.
    """

    def __init__(
        self,
        workdir: str | Path,
        flutter: str = "flutter",
        platforms: list[str] | None = None,
        timeout: int | None = None,
        runner: CommandRunner = run_command,
    ) -> None:
        self.workdir = Path(workdir)
        self.flutter = flutter
        self.platforms = platforms or list(DEFAULT_PLATFORMS)
        self.timeout = timeout
        self.runner = runner

    def command(self, plugin_name: str) -> list[str]:
        """The ``flutter create`` invocation for *plugin_name*."""
        return [
            self.flutter,
            "create",
            f"--template={FLUTTER_TEMPLATE}",
            plugin_name,
            "--platforms",
            ",".join(self.platforms),
        ]

    async def bootstrap(self, plugin_name: str) -> bool:
        """Create ``<workdir>/<plugin_name>``.

        Returns:
            ``True`` if the tool exited successfully, ``False`` if it failed
            or could not be launched.
        """
        cmd = self.command(plugin_name)
        console.print(f"  Creating plugin project [bold]{escape(plugin_name)}[/bold]...")

        try:
            returncode, _, stderr = await self.runner(cmd, cwd=self.workdir, timeout=self.timeout)
        except OSError as exc:
            print_error(f"  Could not launch {self.flutter}: {exc}")
            return False

        if returncode != 0:
            print_error(f"  {format_command(cmd)} failed (exit {returncode})")
            if stderr:
                console.print(f"[dim]{escape(stderr)}[/dim]")
            return False

        console.print(f"  [green]+[/green] Created {escape(str(self.workdir / plugin_name))}")
        return True
