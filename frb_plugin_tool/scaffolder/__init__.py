"""frb-plugin-tool scaffolder -- fetches, renders and writes generated files.

Each generated file is described by a ``ScaffoldTask`` and produced by a
``ScaffoldStep`` that composes the three leaf components:

    TemplateFetcher   - downloads raw template text from the template store
    TemplateRenderer  - renders it with a typed context (Jinja2)
    FileMaterializer  - writes the result into the project tree

Quick usage::

    from frb_plugin_tool.scaffolder import (
        FileMaterializer, ProjectRoot, ScaffoldStep, TemplateFetcher,
        TemplateRenderer, platform_tasks,
    )

    step = ScaffoldStep(TemplateFetcher(origin), TemplateRenderer(), FileMaterializer())
    root = ProjectRoot(Path.cwd(), "hello_dart")
    for task in platform_tasks(root.plugin_name):
        await step.run(task, root)
"""

from .catalog import cargo_manifest_task, platform_tasks
from .fetcher import TemplateFetcher, TransportError
from .materializer import FileMaterializer, FilesystemError, WriteMode
from .step import ProjectRoot, ScaffoldStep, ScaffoldTask, StepError, StepResult, StepStage
from .templates import (
    EmptyContext,
    PluginNameContext,
    RenderError,
    TemplateRef,
    TemplateRenderer,
)

__all__ = [
    # Leaf components
    "TemplateFetcher",
    "TransportError",
    "TemplateRenderer",
    "RenderError",
    "TemplateRef",
    "EmptyContext",
    "PluginNameContext",
    "FileMaterializer",
    "FilesystemError",
    "WriteMode",
    # Steps
    "ProjectRoot",
    "ScaffoldStep",
    "ScaffoldTask",
    "StepError",
    "StepResult",
    "StepStage",
    # Catalogue
    "cargo_manifest_task",
    "platform_tasks",
]
