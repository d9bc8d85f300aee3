"""Tests for the fetch -> render -> write step (frb_plugin_tool.scaffolder.step).

Covers:
- ProjectRoot path handling
- ScaffoldTask context building
- ScaffoldStep success path and stage ordering
- Failures tagged with the stage of origin, later stages skipped
- StepResult construction from errors
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from frb_plugin_tool.scaffolder.materializer import FileMaterializer, FilesystemError, WriteMode
from frb_plugin_tool.scaffolder.step import (
    ProjectRoot,
    ScaffoldStep,
    ScaffoldTask,
    StepError,
    StepResult,
    StepStage,
)
from frb_plugin_tool.scaffolder.templates import (
    PluginNameContext,
    RenderError,
    TemplateRef,
    TemplateRenderer,
)

pytestmark = pytest.mark.unit


def _podspec_task(platform: str = "macos", name: str = "hello_dart") -> ScaffoldTask:
    return ScaffoldTask(
        name=f"{platform} podspec",
        template=TemplateRef.PODSPEC,
        target=Path(platform) / f"{name}.podspec",
    )


class TestProjectRoot:
    def test_path(self, tmp_path: Path):
        root = ProjectRoot(tmp_path, "hello_dart")
        assert root.path == tmp_path / "hello_dart"

    def test_resolve(self, tmp_path: Path):
        root = ProjectRoot(tmp_path, "hello_dart")
        assert root.resolve("rust/Cargo.toml") == tmp_path / "hello_dart" / "rust" / "Cargo.toml"
        assert root.resolve(Path("ios") / "x.podspec") == tmp_path / "hello_dart" / "ios" / "x.podspec"

    def test_frozen(self, tmp_path: Path):
        root = ProjectRoot(tmp_path, "a")
        with pytest.raises(AttributeError):
            root.plugin_name = "b"


class TestScaffoldTask:
    def test_default_context_from_template(self):
        assert _podspec_task().build_context("hello_dart") == PluginNameContext(name="hello_dart")

    def test_custom_context_builder(self):
        task = ScaffoldTask(
            name="custom",
            template=TemplateRef.CMAKE,
            target=Path("x"),
            context_builder=lambda n: PluginNameContext(name=n.upper()),
        )
        assert task.build_context("abc") == PluginNameContext(name="ABC")

    def test_default_mode_truncates(self):
        assert _podspec_task().mode is WriteMode.TRUNCATE


class TestScaffoldStep:
    @pytest.mark.asyncio
    async def test_writes_rendered_file(self, fake_fetcher, project_tree: Path, tmp_path: Path):
        step = ScaffoldStep(fake_fetcher, TemplateRenderer(), FileMaterializer())
        root = ProjectRoot(tmp_path, "hello_dart")

        written = await step.run(_podspec_task(), root)

        assert written == project_tree / "macos" / "hello_dart.podspec"
        text = written.read_text(encoding="utf-8")
        assert "s.name             = 'hello_dart'" in text
        assert fake_fetcher.calls == ["plugin.podspec"]

    @pytest.mark.asyncio
    async def test_stages_run_in_order(self, tmp_path: Path):
        order: list[str] = []

        fetcher = AsyncMock()
        fetcher.fetch = AsyncMock(side_effect=lambda name: order.append("fetch") or "{{ name }}")
        renderer = TemplateRenderer()
        real_render = renderer.render

        def render(*args, **kwargs):
            order.append("render")
            return real_render(*args, **kwargs)

        renderer.render = render
        materializer = AsyncMock()
        materializer.write = AsyncMock(side_effect=lambda path, text, mode: order.append("write") or path)

        step = ScaffoldStep(fetcher, renderer, materializer)
        await step.run(_podspec_task(), ProjectRoot(tmp_path, "hello_dart"))

        assert order == ["fetch", "render", "write"]
        path, text, mode = materializer.write.await_args.args
        assert text == "hello_dart"
        assert mode is WriteMode.TRUNCATE

    @pytest.mark.asyncio
    async def test_fetch_failure_skips_render_and_write(self, fetcher_factory, tmp_path: Path):
        fetcher = fetcher_factory(failures={"plugin.podspec"})
        materializer = AsyncMock(spec=FileMaterializer)
        step = ScaffoldStep(fetcher, TemplateRenderer(), materializer)

        with pytest.raises(StepError) as exc_info:
            await step.run(_podspec_task(), ProjectRoot(tmp_path, "hello_dart"))

        err = exc_info.value
        assert err.stage is StepStage.FETCH
        assert err.template == "plugin.podspec"
        materializer.write.assert_not_called()

    @pytest.mark.asyncio
    async def test_render_failure_skips_write(self, fetcher_factory, tmp_path: Path):
        fetcher = fetcher_factory(templates={"plugin.podspec": "{{ version }}"})
        materializer = AsyncMock(spec=FileMaterializer)
        step = ScaffoldStep(fetcher, TemplateRenderer(), materializer)

        with pytest.raises(StepError) as exc_info:
            await step.run(_podspec_task(), ProjectRoot(tmp_path, "hello_dart"))

        assert exc_info.value.stage is StepStage.RENDER
        assert isinstance(exc_info.value.cause, RenderError)
        materializer.write.assert_not_called()

    @pytest.mark.asyncio
    async def test_bad_context_is_render_failure_before_fetch(self, fake_fetcher, tmp_path: Path):
        task = ScaffoldTask(
            name="broken",
            template=TemplateRef.CARGO_TOML,
            target=Path("rust/Cargo.toml"),
            context_builder=lambda n: PluginNameContext(name=n, extra="nope"),
        )
        step = ScaffoldStep(fake_fetcher, TemplateRenderer(), FileMaterializer())

        with pytest.raises(StepError) as exc_info:
            await step.run(task, ProjectRoot(tmp_path, "hello_dart"))

        assert exc_info.value.stage is StepStage.RENDER
        assert fake_fetcher.calls == []

    @pytest.mark.asyncio
    async def test_write_failure_tagged(self, fake_fetcher, tmp_path: Path):
        # No project tree: the platform directory is missing.
        step = ScaffoldStep(fake_fetcher, TemplateRenderer(), FileMaterializer())

        with pytest.raises(StepError) as exc_info:
            await step.run(_podspec_task(), ProjectRoot(tmp_path, "hello_dart"))

        assert exc_info.value.stage is StepStage.WRITE
        assert isinstance(exc_info.value.cause, FilesystemError)
        assert "[write] plugin.podspec" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_rerun_overwrites_identically(self, fake_fetcher, project_tree: Path, tmp_path: Path):
        step = ScaffoldStep(fake_fetcher, TemplateRenderer(), FileMaterializer())
        root = ProjectRoot(tmp_path, "hello_dart")
        task = ScaffoldTask(
            name="flutter_rust_bridge.yaml",
            template=TemplateRef.BRIDGE_CONFIG,
            target=Path("flutter_rust_bridge.yaml"),
        )

        first = (await step.run(task, root)).read_bytes()
        second = (await step.run(task, root)).read_bytes()
        assert first == second


class TestStepResult:
    def test_defaults(self):
        result = StepResult(name="x")
        assert result.success is True
        assert result.skipped is False
        assert result.stage is None
        assert result.error is None

    def test_from_error(self):
        err = StepError(StepStage.FETCH, "cmake.txt", RuntimeError("boom"))
        result = StepResult.from_error("linux CMakeLists.txt", err, target="linux/CMakeLists.txt", duration=1.5)
        assert result.success is False
        assert result.stage is StepStage.FETCH
        assert result.template == "cmake.txt"
        assert result.target == "linux/CMakeLists.txt"
        assert result.error == "boom"
        assert result.duration_seconds == 1.5

    def test_json_dump(self):
        err = StepError(StepStage.WRITE, "build.gradle", OSError("disk full"))
        dumped = StepResult.from_error("android", err).model_dump(mode="json")
        assert dumped["stage"] == "write"
