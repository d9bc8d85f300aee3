"""The fixed set of files the scaffolder generates and where each one goes."""

from __future__ import annotations

from pathlib import Path

from .step import ScaffoldTask
from .templates import TemplateRef

RUST_DIR = "rust"

# Sample Rust module written once the Rust sub-project exists.
API_DIR = Path(RUST_DIR) / "src" / "api"
MOD_RS_PATH = API_DIR / "mod.rs"
HELLO_RS_PATH = API_DIR / "hello.rs"
LIB_RS_PATH = Path(RUST_DIR) / "src" / "lib.rs"

MOD_RS = "pub mod hello;\n"

HELLO_RS = """\
pub fn hello(name: &str) -> String {
    format!("hello {name}!")
}
"""

LIB_RS = "pub mod api;\n"


def cargo_manifest_task() -> ScaffoldTask:
    """The Rust sub-project manifest, written after ``cargo new``."""
    return ScaffoldTask(
        name="rust Cargo.toml",
        template=TemplateRef.CARGO_TOML,
        target=Path(RUST_DIR) / "Cargo.toml",
    )


def platform_tasks(plugin_name: str) -> list[ScaffoldTask]:
    """Per-platform build files and bridge configuration.

    These have no ordering constraints among themselves and write disjoint
    paths, so they can run concurrently.
    """
    podspec = f"{plugin_name}.podspec"
    return [
        ScaffoldTask(
            name="macos podspec",
            template=TemplateRef.PODSPEC,
            target=Path("macos") / podspec,
        ),
        ScaffoldTask(
            name="ios podspec",
            template=TemplateRef.PODSPEC,
            target=Path("ios") / podspec,
        ),
        ScaffoldTask(
            name="windows CMakeLists.txt",
            template=TemplateRef.CMAKE,
            target=Path("windows") / "CMakeLists.txt",
        ),
        ScaffoldTask(
            name="linux CMakeLists.txt",
            template=TemplateRef.CMAKE,
            target=Path("linux") / "CMakeLists.txt",
        ),
        ScaffoldTask(
            name="android build.gradle",
            template=TemplateRef.GRADLE,
            target=Path("android") / "build.gradle",
        ),
        ScaffoldTask(
            name="pubspec.yaml",
            template=TemplateRef.PUBSPEC,
            target=Path("pubspec.yaml"),
        ),
        ScaffoldTask(
            name="flutter_rust_bridge.yaml",
            template=TemplateRef.BRIDGE_CONFIG,
            target=Path("flutter_rust_bridge.yaml"),
        ),
    ]
