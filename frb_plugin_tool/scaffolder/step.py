"""The fetch -> render -> write unit that produces one generated file."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .fetcher import TemplateFetcher, TransportError
from .materializer import FileMaterializer, FilesystemError, WriteMode
from .templates import RenderError, TemplateRef, TemplateRenderer


@dataclass(frozen=True)
class ProjectRoot:
    """The directory created by ``flutter create``: ``workdir / plugin_name``."""

    workdir: Path
    plugin_name: str

    @property
    def path(self) -> Path:
        return self.workdir / self.plugin_name

    def resolve(self, relative: str | Path) -> Path:
        """Join a project-relative path onto the root."""
        return self.path / relative


@dataclass(frozen=True)
class ScaffoldTask:
    """One generated file: which template, where it goes, and how to build its context.

    ``context_builder`` receives the plugin name; by default the template's
    own context model is used.
    """

    name: str
    template: TemplateRef
    target: Path
    mode: WriteMode = WriteMode.TRUNCATE
    context_builder: Callable[[str], BaseModel] | None = field(default=None, compare=False)

    def build_context(self, plugin_name: str) -> BaseModel:
        if self.context_builder is not None:
            return self.context_builder(plugin_name)
        return self.template.build_context(plugin_name)


class StepStage(str, Enum):
    """The stage of a scaffolding step in which a failure originated."""

    FETCH = "fetch"
    RENDER = "render"
    WRITE = "write"
    COMMAND = "command"


class StepError(Exception):
    """A scaffolding step failed; wraps the lower-level error."""

    def __init__(self, stage: StepStage, template: str, cause: Exception) -> None:
        self.stage = stage
        self.template = template
        self.cause = cause
        super().__init__(f"[{stage.value}] {template}: {cause}")


class StepResult(BaseModel):
    """Outcome of one member of the scaffolding run."""

    name: str = Field(description="Human-readable step name")
    template: str | None = Field(default=None, description="Template used, if any")
    target: str | None = Field(default=None, description="Project-relative output path")
    success: bool = Field(default=True)
    skipped: bool = Field(default=False, description="Step did not run because a dependency failed")
    stage: StepStage | None = Field(default=None, description="Stage where the failure originated")
    error: str | None = Field(default=None)
    duration_seconds: float = Field(default=0.0)

    @classmethod
    def from_error(cls, name: str, exc: StepError, target: str | None = None, duration: float = 0.0) -> "StepResult":
        return cls(
            name=name,
            template=exc.template,
            target=target,
            success=False,
            stage=exc.stage,
            error=str(exc.cause),
            duration_seconds=duration,
        )


class ScaffoldStep:
    """Runs a ``ScaffoldTask``: fetch the template, render it, write the file.

    Stages run strictly in order.  The target is only touched once the
    template has been fetched and rendered, so a failed fetch or render never
    leaves a truncated file behind.
    """

    def __init__(
        self,
        fetcher: TemplateFetcher,
        renderer: TemplateRenderer,
        materializer: FileMaterializer,
    ) -> None:
        self.fetcher = fetcher
        self.renderer = renderer
        self.materializer = materializer

    async def run(self, task: ScaffoldTask, root: ProjectRoot) -> Path:
        """Produce ``task.target`` under *root*.

        Returns:
            The absolute path written.

        Raises:
            StepError: Tagged with the stage that failed.
        """
        template = task.template.value

        try:
            context = task.build_context(root.plugin_name)
        except ValidationError as exc:
            raise StepError(StepStage.RENDER, template, exc) from exc

        try:
            text = await self.fetcher.fetch(template)
        except TransportError as exc:
            raise StepError(StepStage.FETCH, template, exc) from exc

        try:
            rendered = self.renderer.render(text, context, template_name=template)
        except RenderError as exc:
            raise StepError(StepStage.RENDER, template, exc) from exc

        try:
            return await self.materializer.write(root.resolve(task.target), rendered, task.mode)
        except FilesystemError as exc:
            raise StepError(StepStage.WRITE, template, exc) from exc
