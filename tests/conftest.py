"""Shared pytest fixtures for the frb-plugin-tool test suite.

Provides reusable fixtures for:
- Sample template texts as served by the template store
- A fake template fetcher that records calls and can be told to fail
- A bootstrapped-looking project tree in a temp directory
- A fake command runner that records invocation order and mimics the
  side effects of ``flutter create`` and ``cargo new``
- Fake subprocess objects for driving run_command
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from frb_plugin_tool.scaffolder.fetcher import TransportError


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

SAMPLE_TEMPLATES: dict[str, str] = {
    "Cargo.toml": (
        "[package]\n"
        'name = "{{ name }}"\n'
        'version = "0.1.0"\n'
        'edition = "2021"\n'
        "\n"
        "[lib]\n"
        'crate-type = ["cdylib", "staticlib"]\n'
        "\n"
        "[dependencies]\n"
        'flutter_rust_bridge = "=2.0.0"\n'
    ),
    "plugin.podspec": (
        "Pod::Spec.new do |s|\n"
        "  s.name             = '{{ name }}'\n"
        "  s.version          = '0.0.1'\n"
        "  s.summary          = 'A new Flutter FFI plugin project.'\n"
        "  s.script_phase = {\n"
        "    :name => 'Build Rust library',\n"
        "    :script => 'sh \"$PODS_TARGET_SRCROOT/../cargokit/build_pod.sh\" ../rust {{ name }}',\n"
        "  }\n"
        "end\n"
    ),
    "cmake.txt": (
        "cmake_minimum_required(VERSION 3.10)\n"
        'set(PROJECT_NAME "{{ name }}")\n'
        "project(${PROJECT_NAME} LANGUAGES CXX)\n"
        'include("../cargokit/cmake/cargokit.cmake")\n'
        'apply_cargokit(${PROJECT_NAME} ../rust {{ name }} "")\n'
    ),
    "build.gradle": (
        "group 'com.example.{{ name }}'\n"
        "version '1.0'\n"
        "\n"
        'apply from: "../cargokit/gradle/plugin.gradle"\n'
        "cargokit {\n"
        "    manifestDir = '../rust'\n"
        "    libname = '{{ name }}'\n"
        "}\n"
    ),
    "pubspec.yaml": (
        "name: {{ name }}\n"
        "description: A new Flutter FFI plugin project.\n"
        "version: 0.0.1\n"
        "\n"
        "environment:\n"
        "  sdk: '>=3.0.0 <4.0.0'\n"
        "\n"
        "dependencies:\n"
        "  flutter:\n"
        "    sdk: flutter\n"
        "  flutter_rust_bridge: 2.0.0\n"
    ),
    "flutter_rust_bridge.yaml": (
        "rust_input: crate::api\n"
        "rust_root: rust/\n"
        "dart_output: lib/src/rust\n"
    ),
}


@pytest.fixture
def sample_templates() -> dict[str, str]:
    """Template texts keyed by template name."""
    return dict(SAMPLE_TEMPLATES)


class FakeFetcher:
    """Stands in for ``TemplateFetcher``; serves ``SAMPLE_TEMPLATES``.

    Names listed in ``failures`` raise ``TransportError``.  Every call is
    recorded in ``calls``.
    """

    def __init__(
        self,
        templates: dict[str, str] | None = None,
        failures: set[str] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.templates = templates if templates is not None else dict(SAMPLE_TEMPLATES)
        self.failures = failures or set()
        self.delay = delay
        self.calls: list[str] = []

    async def fetch(self, template_name: str) -> str:
        self.calls.append(template_name)
        if self.delay:
            await asyncio.sleep(self.delay)
        if template_name in self.failures:
            raise TransportError(template_name, "HTTP 404 from fake store")
        if template_name not in self.templates:
            raise TransportError(template_name, "not found")
        return self.templates[template_name]


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def fetcher_factory():
    """Build a ``FakeFetcher`` with custom templates, failures or delay."""
    return FakeFetcher


# ---------------------------------------------------------------------------
# Project tree
# ---------------------------------------------------------------------------

PLATFORM_DIRS = ("android", "ios", "macos", "windows", "linux")


def make_flutter_tree(project_dir: Path) -> None:
    """Create the directories ``flutter create --template=plugin_ffi`` produces."""
    project_dir.mkdir(parents=True, exist_ok=True)
    for platform in PLATFORM_DIRS:
        (project_dir / platform).mkdir(exist_ok=True)
    (project_dir / "lib").mkdir(exist_ok=True)
    (project_dir / "pubspec.yaml").write_text("name: placeholder\n", encoding="utf-8")


def make_cargo_tree(project_dir: Path, crate_name: str) -> None:
    """Create what ``cargo new rust --lib`` produces."""
    src = project_dir / "rust" / "src"
    src.mkdir(parents=True, exist_ok=True)
    (project_dir / "rust" / "Cargo.toml").write_text(
        f'[package]\nname = "{crate_name}"\n', encoding="utf-8"
    )
    (src / "lib.rs").write_text(
        "pub fn add(left: u64, right: u64) -> u64 {\n    left + right\n}\n",
        encoding="utf-8",
    )


@pytest.fixture
def plugin_name() -> str:
    return "hello_dart"


@pytest.fixture
def project_tree(tmp_path: Path, plugin_name: str) -> Path:
    """``tmp_path/<plugin_name>`` laid out as after ``flutter create``."""
    project_dir = tmp_path / plugin_name
    make_flutter_tree(project_dir)
    return project_dir


# ---------------------------------------------------------------------------
# Fake command runner
# ---------------------------------------------------------------------------


class RecordingRunner:
    """Async stand-in for ``run_command``.

    Records ``(argv, cwd)`` for each call in ``calls``.  ``returncodes`` maps
    a tool's first two argv items joined by a space (e.g. ``"git commit"``)
    to the exit code to report; unlisted commands succeed.  With
    ``simulate=True``, successful ``flutter create`` and ``cargo new`` calls
    create the directories the real tools would.
    """

    def __init__(
        self,
        returncodes: dict[str, int] | None = None,
        simulate: bool = True,
        missing: set[str] | None = None,
    ) -> None:
        self.returncodes = returncodes or {}
        self.simulate = simulate
        self.missing = missing or set()
        self.calls: list[tuple[list[str], Path | None]] = []

    @staticmethod
    def key(cmd: list[str]) -> str:
        return " ".join(cmd[:2])

    def keys(self) -> list[str]:
        return [self.key(cmd) for cmd, _ in self.calls]

    async def __call__(
        self,
        cmd: list[str],
        cwd: str | Path | None = None,
        timeout: int | None = None,
        **kwargs: Any,
    ) -> tuple[int, str, str]:
        cwd_path = Path(cwd) if cwd is not None else None
        self.calls.append((list(cmd), cwd_path))
        await asyncio.sleep(0)

        if cmd[0] in self.missing:
            raise FileNotFoundError(2, "No such file or directory", cmd[0])

        returncode = self.returncodes.get(self.key(cmd), 0)
        if returncode != 0:
            return returncode, "", f"{self.key(cmd)} failed"

        if self.simulate and cwd_path is not None:
            if cmd[1] == "create":
                make_flutter_tree(cwd_path / cmd[3])
            elif cmd[1] == "new":
                make_cargo_tree(cwd_path, cmd[cmd.index("--name") + 1])

        return 0, "", ""


@pytest.fixture
def recording_runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def runner_factory():
    """Build a ``RecordingRunner`` with custom exit codes or missing tools."""
    return RecordingRunner


# ---------------------------------------------------------------------------
# Subprocess stand-in for run_command
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Factory for fake ``asyncio.subprocess.Process`` objects.

    Patch ``asyncio.create_subprocess_exec`` to return one of these to drive
    ``run_command`` without launching anything::

        proc = mock_subprocess(stdout="Creating project...", returncode=0)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            ...
    """
    def factory(stdout: str = "", stderr: str = "", returncode: int = 0) -> MagicMock:
        proc = MagicMock()
        proc.returncode = returncode
        proc.communicate = AsyncMock(return_value=(stdout.encode(), stderr.encode()))
        proc.wait = AsyncMock(return_value=returncode)
        return proc

    return factory
