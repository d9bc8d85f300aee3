"""frb-plugin-tool configuration.

Centralised, typed configuration for the scaffolding run. All settings use
Pydantic v2 models so they can be validated at construction time and built
from environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

DEFAULT_TEMPLATE_ORIGIN = "https://raw.githubusercontent.com/mdddj/frb_plugin_tool/main/temp/"

DEFAULT_PLATFORMS: list[str] = ["android", "ios", "macos", "windows", "linux"]


class ToolsConfig(BaseModel):
    """Executable names of the external tools the scaffolder drives."""

    flutter: str = Field(default="flutter")
    git: str = Field(default="git")
    cargo: str = Field(default="cargo")

    def as_dict(self) -> dict[str, str]:
        """Return a plain ``{tool: executable}`` mapping."""
        return {"flutter": self.flutter, "git": self.git, "cargo": self.cargo}


class VcsConfig(BaseModel):
    """Git settings: the initial commit and the shared build-support subtree."""

    commit_message: str = Field(default="initial commit")
    subtree_repo: str = Field(default="https://github.com/irondash/cargokit.git")
    subtree_branch: str = Field(default="main")
    subtree_prefix: str = Field(default="cargokit")


class Config(BaseModel):
    """Global scaffolding configuration.

    Created once by the CLI entry point (or by tests) and handed to the
    ``Pipeline``, which passes the relevant pieces to each component.
    """

    workdir: Path = Field(default=Path("."))
    template_origin: str = Field(default=DEFAULT_TEMPLATE_ORIGIN)
    fetch_timeout: float | None = Field(
        default=None, gt=0, description="Per-request template fetch timeout; None waits forever"
    )
    command_timeout: int | None = Field(
        default=None, gt=0, description="Per-subprocess timeout; None waits forever"
    )
    max_parallel_steps: int = Field(
        default=8, ge=1, description="Maximum concurrently running scaffolding steps"
    )
    platforms: list[str] = Field(default_factory=lambda: list(DEFAULT_PLATFORMS))
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    vcs: VcsConfig = Field(default_factory=VcsConfig)

    @field_validator("template_origin")
    @classmethod
    def _normalise_origin(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("template_origin must not be empty")
        return value.rstrip("/") + "/"

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            FRB_WORKDIR, FRB_TEMPLATE_ORIGIN, FRB_FETCH_TIMEOUT,
            FRB_COMMAND_TIMEOUT, FRB_MAX_PARALLEL_STEPS,
            FRB_FLUTTER, FRB_GIT, FRB_CARGO.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("FRB_WORKDIR"):
            kwargs["workdir"] = Path(os.environ["FRB_WORKDIR"])
        if os.environ.get("FRB_TEMPLATE_ORIGIN"):
            kwargs["template_origin"] = os.environ["FRB_TEMPLATE_ORIGIN"]
        if os.environ.get("FRB_FETCH_TIMEOUT"):
            kwargs["fetch_timeout"] = float(os.environ["FRB_FETCH_TIMEOUT"])
        if os.environ.get("FRB_COMMAND_TIMEOUT"):
            kwargs["command_timeout"] = int(os.environ["FRB_COMMAND_TIMEOUT"])
        if os.environ.get("FRB_MAX_PARALLEL_STEPS"):
            kwargs["max_parallel_steps"] = int(os.environ["FRB_MAX_PARALLEL_STEPS"])

        tools_kwargs: dict[str, Any] = {}
        for tool in ("flutter", "git", "cargo"):
            value = os.environ.get(f"FRB_{tool.upper()}")
            if value:
                tools_kwargs[tool] = value

        return cls(tools=ToolsConfig(**tools_kwargs), **kwargs)
