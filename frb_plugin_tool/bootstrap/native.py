"""The Rust library sub-project and its sample ``api`` module."""

from __future__ import annotations

from pathlib import Path

from frb_plugin_tool.scaffolder.catalog import (
    API_DIR,
    HELLO_RS,
    HELLO_RS_PATH,
    LIB_RS,
    LIB_RS_PATH,
    MOD_RS,
    MOD_RS_PATH,
    RUST_DIR,
    cargo_manifest_task,
)
from frb_plugin_tool.scaffolder.materializer import FileMaterializer, WriteMode
from frb_plugin_tool.scaffolder.step import ProjectRoot, ScaffoldStep
from frb_plugin_tool.utils import (
    CommandRunner,
    console,
    format_command,
    print_success,
    run_command,
)


class NativeProjectError(Exception):
    """Raised when ``cargo new`` fails or cannot be launched."""

    def __init__(self, message: str, command: str = "", stderr: str = ""):
        self.command = command
        self.stderr = stderr
        super().__init__(message)


class NativeProjectInitializer:
    """Creates ``<root>/rust`` with cargo, then renders its ``Cargo.toml``."""

    def __init__(
        self,
        step: ScaffoldStep,
        cargo: str = "cargo",
        timeout: int | None = None,
        runner: CommandRunner = run_command,
    ) -> None:
        self.step = step
        self.cargo = cargo
        self.timeout = timeout
        self.runner = runner

    def command(self, plugin_name: str) -> list[str]:
        return [self.cargo, "new", RUST_DIR, "--lib", "--name", plugin_name]

    async def init_native(self, root: ProjectRoot) -> Path:
        """Create the Rust library sub-project.

        Returns:
            Path of the rendered ``Cargo.toml``.

        Raises:
            NativeProjectError: If cargo fails.
            StepError: If the manifest cannot be fetched, rendered or written.
        """
        cmd = self.command(root.plugin_name)
        cmd_str = format_command(cmd)
        console.print("  Creating Rust library project...")

        try:
            returncode, _, stderr = await self.runner(cmd, cwd=root.path, timeout=self.timeout)
        except OSError as exc:
            raise NativeProjectError(f"Could not launch cargo: {exc}", command=cmd_str) from exc

        if returncode != 0:
            raise NativeProjectError(
                f"Cargo command failed (exit {returncode}): {cmd_str}\n{stderr}",
                command=cmd_str,
                stderr=stderr,
            )

        manifest = await self.step.run(cargo_manifest_task(), root)
        print_success("  Rust library project created")
        return manifest


class SampleModuleWriter:
    """Adds ``rust/src/api`` with a ``hello`` function and wires it into ``lib.rs``.

    Writes into directories that only exist once ``cargo new`` has run.
    """

    def __init__(self, materializer: FileMaterializer) -> None:
        self.materializer = materializer

    async def write(self, root: ProjectRoot) -> list[Path]:
        """Write the sample module.

        Raises:
            FilesystemError: If ``rust/src`` is missing or any write fails.
        """
        await self.materializer.make_dir(root.resolve(API_DIR))
        written = [
            await self.materializer.write(root.resolve(MOD_RS_PATH), MOD_RS, WriteMode.CREATE),
            await self.materializer.write(root.resolve(HELLO_RS_PATH), HELLO_RS, WriteMode.CREATE),
            await self.materializer.write(root.resolve(LIB_RS_PATH), LIB_RS, WriteMode.TRUNCATE),
        ]
        print_success("  Sample Rust api module written")
        return written
