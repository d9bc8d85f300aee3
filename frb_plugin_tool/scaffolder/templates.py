"""Jinja2 template rendering for plugin scaffolding.

Defines the catalogue of remote templates (``TemplateRef``), the closed
render-context model each template expects, and the ``TemplateRenderer`` that
compiles raw template text fetched from the template store.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError
from pydantic import BaseModel, ConfigDict


# ---------------------------------------------------------------------------
# Render contexts
# ---------------------------------------------------------------------------


class EmptyContext(BaseModel):
    """Context for templates that take no variables."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class PluginNameContext(BaseModel):
    """Context for templates that substitute the plugin name."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str


# ---------------------------------------------------------------------------
# Template catalogue
# ---------------------------------------------------------------------------


class TemplateRef(str, Enum):
    """Logical template names, each mapping 1:1 to a file in the template store."""

    CARGO_TOML = "Cargo.toml"
    PODSPEC = "plugin.podspec"
    CMAKE = "cmake.txt"
    GRADLE = "build.gradle"
    PUBSPEC = "pubspec.yaml"
    BRIDGE_CONFIG = "flutter_rust_bridge.yaml"

    @property
    def context_type(self) -> type[BaseModel]:
        """The context model this template declares."""
        if self is TemplateRef.BRIDGE_CONFIG:
            return EmptyContext
        return PluginNameContext

    def build_context(self, plugin_name: str) -> BaseModel:
        """Build this template's context for *plugin_name*."""
        if self.context_type is EmptyContext:
            return EmptyContext()
        return PluginNameContext(name=plugin_name)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class RenderError(Exception):
    """Raised when a template fails to compile or references an unbound variable."""

    def __init__(self, template: str, cause: Exception) -> None:
        self.template = template
        self.cause = cause
        super().__init__(f"Failed to render template '{template}': {cause}")


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders template text with a typed context.

    Templates use Jinja2 syntax; in practice only ``{{ name }}`` substitution
    is needed.  Undefined variables are errors rather than empty strings.
    """

    def __init__(self) -> None:
        self.env = Environment(
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )

    def render(
        self,
        text: str,
        context: BaseModel | dict[str, Any],
        template_name: str = "<string>",
    ) -> str:
        """Compile *text* and render it with *context*.

        Args:
            text: Raw template source.
            context: A context model (or plain mapping) of variables to bind.
            template_name: Used in error messages only.

        Returns:
            The rendered text.

        Raises:
            RenderError: On syntax errors or unbound variables.
        """
        values = context.model_dump() if isinstance(context, BaseModel) else dict(context)
        try:
            template = self.env.from_string(text)
            return template.render(**values)
        except TemplateError as exc:
            raise RenderError(template_name, exc) from exc

