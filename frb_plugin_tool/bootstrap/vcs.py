"""Git initialisation of the freshly created plugin project.

Commits the bootstrapped skeleton and merges the shared cargokit build
support in as a squashed subtree.  Must finish before any generated file is
written, since the commit and the subtree merge expect a pristine tree.
"""

from __future__ import annotations

from rich.markup import escape

from frb_plugin_tool.config import VcsConfig
from frb_plugin_tool.scaffolder.step import ProjectRoot
from frb_plugin_tool.utils import (
    CommandRunner,
    console,
    format_command,
    print_info,
    print_success,
    run_command,
)


class VcsError(Exception):
    """Raised when a git command fails or cannot be launched."""

    def __init__(self, message: str, command: str = "", stderr: str = ""):
        self.command = command
        self.stderr = stderr
        super().__init__(message)


class VcsInitializer:
    """Runs ``git init``, ``add``, ``commit`` and ``subtree add`` in sequence."""

    def __init__(
        self,
        git: str = "git",
        vcs: VcsConfig | None = None,
        timeout: int | None = None,
        runner: CommandRunner = run_command,
    ) -> None:
        self.git = git
        self.vcs = vcs or VcsConfig()
        self.timeout = timeout
        self.runner = runner

    def commands(self) -> list[list[str]]:
        """The git invocations, in execution order."""
        return [
            [self.git, "init"],
            [self.git, "add", "--all"],
            [self.git, "commit", "-m", self.vcs.commit_message],
            [
                self.git,
                "subtree",
                "add",
                "--prefix",
                self.vcs.subtree_prefix,
                self.vcs.subtree_repo,
                self.vcs.subtree_branch,
                "--squash",
            ],
        ]

    async def init_vcs(self, root: ProjectRoot) -> None:
        """Initialise the repository inside *root*.

        Raises:
            VcsError: On the first command that fails; later commands do not run.
        """
        console.print(f"  Initialising git in [bold]{escape(str(root.path))}[/bold]...")
        init, add, commit, subtree = self.commands()

        await self._run_git(init, root)
        await self._run_git(add, root)
        await self._run_git(commit, root)

        print_info(f"Adding {self.vcs.subtree_prefix} subtree from {self.vcs.subtree_repo}...")
        await self._run_git(subtree, root)

        print_success("  Git repository initialised")

    async def _run_git(self, cmd: list[str], root: ProjectRoot) -> str:
        cmd_str = format_command(cmd)
        try:
            returncode, stdout, stderr = await self.runner(
                cmd, cwd=root.path, timeout=self.timeout
            )
        except OSError as exc:
            raise VcsError(f"Could not launch git: {exc}", command=cmd_str) from exc

        if returncode != 0:
            raise VcsError(
                f"Git command failed (exit {returncode}): {cmd_str}\n{stderr}",
                command=cmd_str,
                stderr=stderr,
            )
        return stdout
