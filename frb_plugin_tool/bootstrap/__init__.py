"""frb-plugin-tool bootstrap module.

Drives the external tools that lay down the project tree before any template
is rendered.

Key classes:
    ProjectBootstrapper      - ``flutter create`` for the plugin skeleton
    VcsInitializer           - git init / commit / cargokit subtree
    NativeProjectInitializer - ``cargo new`` plus the rendered ``Cargo.toml``
    SampleModuleWriter       - the sample ``rust/src/api`` module
"""

from .native import NativeProjectError, NativeProjectInitializer, SampleModuleWriter
from .project import ProjectBootstrapper
from .vcs import VcsError, VcsInitializer

__all__ = [
    "ProjectBootstrapper",
    "VcsInitializer",
    "VcsError",
    "NativeProjectInitializer",
    "NativeProjectError",
    "SampleModuleWriter",
]
