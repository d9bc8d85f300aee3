"""frb-plugin-tool pipeline orchestrator.

Scaffolds a Flutter FFI plugin backed by a Rust library:

Stage 1: BOOTSTRAP     -- ``flutter create`` lays down the plugin tree.
Stage 2: VCS           -- git init, initial commit, cargokit subtree.
Stage 3: SCAFFOLD      -- in parallel: ``cargo new`` + Cargo.toml, and every
                          platform/config file rendered from remote templates.
Stage 4: SAMPLE MODULE -- sample ``rust/src/api`` module, once the Rust
                          sub-project exists.

A bootstrap or VCS failure aborts the run.  Failures inside stage 3 do not
cancel sibling steps; they are collected into the final ``ScaffoldReport``.

Usage::

    python -m frb_plugin_tool.pipeline
    python -m frb_plugin_tool.pipeline --name hello_dart --workdir ~/code
"""

from __future__ import annotations

import asyncio
import sys
import time
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError
from rich.markup import escape
from rich.panel import Panel

from frb_plugin_tool.bootstrap import (
    NativeProjectError,
    NativeProjectInitializer,
    ProjectBootstrapper,
    SampleModuleWriter,
    VcsError,
    VcsInitializer,
)
from frb_plugin_tool.config import Config
from frb_plugin_tool.scaffolder import (
    FileMaterializer,
    FilesystemError,
    ProjectRoot,
    ScaffoldStep,
    ScaffoldTask,
    StepError,
    StepResult,
    StepStage,
    TemplateFetcher,
    TemplateRef,
    TemplateRenderer,
    cargo_manifest_task,
    platform_tasks,
)
from frb_plugin_tool.scaffolder.catalog import API_DIR, RUST_DIR
from frb_plugin_tool.utils import (
    STAGE_NAMES,
    CommandRunner,
    console,
    find_missing_tools,
    format_duration,
    normalize_plugin_name,
    print_error,
    print_stage_header,
    print_success,
    print_summary_table,
    print_warning,
    read_plugin_name,
    run_command,
    save_json,
)

NATIVE_STEP_NAME = "rust library project"
SAMPLE_STEP_NAME = "rust sample api module"

# ---------------------------------------------------------------------------
# State and report
# ---------------------------------------------------------------------------


class PipelineState(str, Enum):
    """Where the run is; ``SUCCEEDED`` and ``ABORTED`` are terminal."""

    INIT = "init"
    BOOTSTRAPPING = "bootstrapping"
    VCS_INIT = "vcs_init"
    PARALLEL_STEPS = "parallel_steps"
    SAMPLE_MODULE = "sample_module"
    SUCCEEDED = "succeeded"
    ABORTED = "aborted"


class ScaffoldReport(BaseModel):
    """Aggregated outcome of a scaffolding run."""

    plugin_name: str
    project_root: str
    state: PipelineState = Field(default=PipelineState.INIT)
    steps: list[StepResult] = Field(default_factory=list)
    error: str | None = Field(default=None, description="Why the run aborted, if it did")
    started_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    finished_at: str | None = Field(default=None)
    total_duration: str | None = Field(default=None)

    @property
    def success(self) -> bool:
        return self.state is PipelineState.SUCCEEDED

    @property
    def failed_steps(self) -> list[StepResult]:
        return [s for s in self.steps if not s.success]

    def step(self, name: str) -> StepResult | None:
        """Look up a step result by name."""
        for result in self.steps:
            if result.name == name:
                return result
        return None


class PipelineError(Exception):
    """Raised when a stage fails in a way that ends the run."""

    def __init__(self, stage: int, message: str) -> None:
        self.stage = stage
        super().__init__(f"Stage {stage} ({STAGE_NAMES.get(stage, '?')}): {message}")


# ---------------------------------------------------------------------------
# Pipeline Orchestrator
# ---------------------------------------------------------------------------


class Pipeline:
    """Runs the four scaffolding stages for one plugin.

    Collaborators can be injected for testing; by default they are built
    from *config*.

    Attributes:
        config: Run configuration.
        step: Shared fetch/render/write step used by every template.
        bootstrapper: ``flutter create`` wrapper.
        vcs: git initialisation.
        native: ``cargo new`` plus manifest.
        sample: Sample ``api`` module writer.
    """

    def __init__(
        self,
        config: Config,
        fetcher: TemplateFetcher | None = None,
        renderer: TemplateRenderer | None = None,
        materializer: FileMaterializer | None = None,
        runner: CommandRunner = run_command,
    ) -> None:
        self.config = config
        self.materializer = materializer or FileMaterializer()
        self.step = ScaffoldStep(
            fetcher or TemplateFetcher(config.template_origin, timeout=config.fetch_timeout),
            renderer or TemplateRenderer(),
            self.materializer,
        )
        self.bootstrapper = ProjectBootstrapper(
            config.workdir,
            flutter=config.tools.flutter,
            platforms=config.platforms,
            timeout=config.command_timeout,
            runner=runner,
        )
        self.vcs = VcsInitializer(
            git=config.tools.git,
            vcs=config.vcs,
            timeout=config.command_timeout,
            runner=runner,
        )
        self.native = NativeProjectInitializer(
            self.step,
            cargo=config.tools.cargo,
            timeout=config.command_timeout,
            runner=runner,
        )
        self.sample = SampleModuleWriter(self.materializer)

    # ------------------------------------------------------------------
    # Pre-flight checks
    # ------------------------------------------------------------------

    def _preflight(self) -> None:
        """Warn about external tools that are not on ``PATH``."""
        missing = find_missing_tools(self.config.tools.as_dict())
        if missing:
            print_warning(
                f"  Not found on PATH: {', '.join(missing)}. "
                "The stages that need them will fail."
            )
        else:
            console.print("  [green]+[/green] flutter, git and cargo found")

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self, plugin_name: str) -> ScaffoldReport:
        """Scaffold *plugin_name* under ``config.workdir``.

        Returns:
            The final report; ``report.success`` tells whether every step
            succeeded.
        """
        plugin_name = normalize_plugin_name(plugin_name)
        root = ProjectRoot(self.config.workdir, plugin_name)
        report = ScaffoldReport(plugin_name=plugin_name, project_root=str(root.path))
        run_start = time.monotonic()

        console.print(
            Panel(
                f"[bold bright_cyan]frb plugin scaffolder[/bold bright_cyan]\n"
                f"Plugin    : {escape(plugin_name)}\n"
                f"Directory : {escape(str(root.path.resolve()))}\n"
                f"Templates : {escape(self.config.template_origin)}",
                title="[bold]Start[/bold]",
                border_style="bright_cyan",
            )
        )
        self._preflight()

        try:
            report.state = PipelineState.BOOTSTRAPPING
            print_stage_header(1, STAGE_NAMES[1])
            if not await self.bootstrapper.bootstrap(plugin_name):
                raise PipelineError(1, "flutter create failed; no files were generated")

            report.state = PipelineState.VCS_INIT
            print_stage_header(2, STAGE_NAMES[2])
            try:
                await self.vcs.init_vcs(root)
            except VcsError as exc:
                raise PipelineError(2, str(exc)) from exc

            report.state = PipelineState.PARALLEL_STEPS
            print_stage_header(3, STAGE_NAMES[3])
            native_result, platform_results = await self._run_parallel_group(root)
            report.steps.append(native_result)
            report.steps.extend(platform_results)

            report.state = PipelineState.SAMPLE_MODULE
            print_stage_header(4, STAGE_NAMES[4])
            report.steps.append(await self._run_sample_module(root, native_result))

            failed = report.failed_steps
            if failed:
                report.state = PipelineState.ABORTED
                report.error = f"{len(failed)} step(s) failed"
            else:
                report.state = PipelineState.SUCCEEDED

        except PipelineError as exc:
            report.state = PipelineState.ABORTED
            report.error = str(exc)
            print_error(str(exc))

        total_elapsed = time.monotonic() - run_start
        report.total_duration = format_duration(total_elapsed)
        report.finished_at = datetime.now(timezone.utc).isoformat()

        self._print_final_summary(report)
        return report

    # ------------------------------------------------------------------
    # Stage 3: parallel group
    # ------------------------------------------------------------------

    async def _run_parallel_group(
        self, root: ProjectRoot
    ) -> tuple[StepResult, list[StepResult]]:
        """Run the native initializer and every platform step concurrently.

        At most ``config.max_parallel_steps`` members run at once.  Members
        never raise; each reports a ``StepResult``.

        Returns:
            ``(native_result, platform_results)``; the sample module depends
            on the first.
        """
        tasks = platform_tasks(root.plugin_name)
        console.print(
            f"  Running [bold]{len(tasks) + 1}[/bold] step(s) "
            f"(max {self.config.max_parallel_steps} parallel)..."
        )

        semaphore = asyncio.Semaphore(self.config.max_parallel_steps)

        async def _native() -> StepResult:
            async with semaphore:
                return await self._run_native(root)

        async def _platform(task: ScaffoldTask) -> StepResult:
            async with semaphore:
                return await self._run_task(task, root)

        native_job = asyncio.ensure_future(_native())
        platform_jobs = [asyncio.ensure_future(_platform(t)) for t in tasks]

        results = await asyncio.gather(native_job, *platform_jobs, return_exceptions=True)

        names = [NATIVE_STEP_NAME] + [t.name for t in tasks]
        final: list[StepResult] = []
        for name, res in zip(names, results):
            if isinstance(res, BaseException):
                final.append(
                    StepResult(name=name, success=False, error=f"Unhandled exception: {res!r}")
                )
            else:
                final.append(res)

        return final[0], final[1:]

    async def _run_task(self, task: ScaffoldTask, root: ProjectRoot) -> StepResult:
        """Run one scaffolding step and convert its outcome to a result."""
        target = task.target.as_posix()
        start = time.monotonic()
        try:
            await self.step.run(task, root)
        except StepError as exc:
            elapsed = time.monotonic() - start
            print_error(f"  x {task.name}: {exc}")
            return StepResult.from_error(task.name, exc, target=target, duration=elapsed)

        elapsed = time.monotonic() - start
        console.print(f"  [green]+[/green] Wrote {escape(target)}")
        return StepResult(
            name=task.name,
            template=task.template.value,
            target=target,
            duration_seconds=elapsed,
        )

    async def _run_native(self, root: ProjectRoot) -> StepResult:
        manifest = cargo_manifest_task()
        start = time.monotonic()
        try:
            await self.native.init_native(root)
        except NativeProjectError as exc:
            elapsed = time.monotonic() - start
            print_error(f"  x {NATIVE_STEP_NAME}: {exc}")
            return StepResult(
                name=NATIVE_STEP_NAME,
                target=RUST_DIR,
                success=False,
                stage=StepStage.COMMAND,
                error=str(exc),
                duration_seconds=elapsed,
            )
        except StepError as exc:
            elapsed = time.monotonic() - start
            print_error(f"  x {NATIVE_STEP_NAME}: {exc}")
            return StepResult.from_error(
                NATIVE_STEP_NAME, exc, target=manifest.target.as_posix(), duration=elapsed
            )

        return StepResult(
            name=NATIVE_STEP_NAME,
            template=TemplateRef.CARGO_TOML.value,
            target=manifest.target.as_posix(),
            duration_seconds=time.monotonic() - start,
        )

    # ------------------------------------------------------------------
    # Stage 4: sample module
    # ------------------------------------------------------------------

    async def _run_sample_module(self, root: ProjectRoot, native_result: StepResult) -> StepResult:
        """Write the sample module, but only after the Rust project exists."""
        target = API_DIR.as_posix()
        if not native_result.success:
            print_warning("  Skipping sample module: the Rust library project was not created.")
            return StepResult(
                name=SAMPLE_STEP_NAME,
                target=target,
                success=False,
                skipped=True,
                error=f"skipped: {NATIVE_STEP_NAME} failed",
            )

        start = time.monotonic()
        try:
            await self.sample.write(root)
        except FilesystemError as exc:
            print_error(f"  x {SAMPLE_STEP_NAME}: {exc}")
            return StepResult(
                name=SAMPLE_STEP_NAME,
                target=target,
                success=False,
                stage=StepStage.WRITE,
                error=str(exc),
                duration_seconds=time.monotonic() - start,
            )

        return StepResult(
            name=SAMPLE_STEP_NAME,
            target=target,
            duration_seconds=time.monotonic() - start,
        )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _print_final_summary(self, report: ScaffoldReport) -> None:
        """Print the per-step table and the final status panel."""
        if report.steps:
            rows = []
            for result in report.steps:
                if result.success:
                    status = "[green]ok[/green]"
                elif result.skipped:
                    status = "[yellow]skipped[/yellow]"
                else:
                    status = f"[red]failed ({result.stage.value if result.stage else 'error'})[/red]"
                rows.append(
                    (
                        escape(result.name),
                        escape(result.target or ""),
                        status,
                        format_duration(result.duration_seconds),
                    )
                )
            print_summary_table(rows, ["Step", "Target", "Status", "Time"], title="Scaffolding Steps")

        if report.success:
            border_style = "bold green"
            status_text = "[bold green]PLUGIN CREATED[/bold green]"
        else:
            border_style = "bold red"
            status_text = "[bold red]SCAFFOLDING FAILED[/bold red]"

        detail_lines = [
            status_text,
            "",
            f"Plugin    : {escape(report.plugin_name)}",
            f"Directory : {escape(report.project_root)}",
            f"Duration  : {report.total_duration or '-'}",
        ]
        if report.error:
            detail_lines.append(f"Error     : {escape(report.error)}")
        for result in report.failed_steps:
            detail_lines.append(f"  - {escape(result.name)}: {escape(result.error or '')}")

        console.print()
        console.print(
            Panel(
                "\n".join(detail_lines),
                title="[bold]Done[/bold]",
                border_style=border_style,
            )
        )


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


async def _main(config: Config, plugin_name: str, report_path: Path | None) -> ScaffoldReport:
    pipeline = Pipeline(config)
    report = await pipeline.run(plugin_name)
    if report_path is not None:
        await save_json(report.model_dump(mode="json"), report_path)
        console.print(f"Report written to [bold]{escape(str(report_path))}[/bold]")
    return report


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``frb-plugin-tool`` and ``python -m frb_plugin_tool.pipeline``."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Scaffold a Flutter FFI plugin backed by a Rust library",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  frb-plugin-tool\n"
            "  frb-plugin-tool --name hello_dart\n"
            "  frb-plugin-tool --name hello_dart --workdir ~/code --report report.json\n"
        ),
    )
    parser.add_argument(
        "--name", "-n",
        default=None,
        help="Plugin name (prompted for if omitted)",
    )
    parser.add_argument(
        "--workdir", "-w",
        default=None,
        help="Directory in which the plugin directory is created (default: .)",
    )
    parser.add_argument(
        "--template-origin",
        default=None,
        help="Base URL of the template store",
    )
    parser.add_argument(
        "--max-parallel",
        type=int,
        default=None,
        help="Maximum concurrently running scaffolding steps",
    )
    parser.add_argument(
        "--report",
        default=None,
        help="Write the run report as JSON to this path",
    )

    args = parser.parse_args(argv)

    try:
        config = Config.from_env()
        overrides: dict[str, object] = {}
        if args.workdir:
            overrides["workdir"] = Path(args.workdir).expanduser()
        if args.template_origin:
            overrides["template_origin"] = args.template_origin
        if args.max_parallel is not None:
            overrides["max_parallel_steps"] = args.max_parallel
        if overrides:
            config = Config.model_validate({**config.model_dump(), **overrides})
    except (ValidationError, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] Invalid configuration: {escape(str(exc))}")
        sys.exit(1)

    try:
        plugin_name = normalize_plugin_name(args.name) if args.name is not None else read_plugin_name()
    except ValueError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        sys.exit(1)
    except EOFError:
        console.print("[bold red]Error:[/bold red] No plugin name given.")
        sys.exit(1)

    report_path = Path(args.report) if args.report else None
    report = asyncio.run(_main(config, plugin_name, report_path))

    if report.success:
        print_success("Plugin project created successfully!")
    else:
        sys.exit(1)


if __name__ == "__main__":
    main()
