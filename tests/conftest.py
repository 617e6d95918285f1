"""Shared pytest fixtures for the modforge test suite.

Provides reusable fixtures for:
- Building ad-hoc module descriptors and registries
- Minimal project configurations and contexts
- Throwaway template trees on disk
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any, Callable

import pytest

from modforge.config import Config, ProjectSettings, ScaffoldSettings
from modforge.context import ProjectContext
from modforge.modules.models import ModuleContributions, ModuleDescriptor
from modforge.modules.registry import ModuleRegistry


# ---------------------------------------------------------------------------
# Modules & Registries
# ---------------------------------------------------------------------------

def _make_module(
    module_id: str,
    *,
    requires: tuple[str, ...] = (),
    conflicts_with: tuple[str, ...] = (),
    always_included: bool = False,
    dependencies: dict[str, Any] | None = None,
    dev_dependencies: dict[str, Any] | None = None,
    framework: dict[str, Any] | None = None,
    is_enabled: Callable[[Any], bool] | None = None,
) -> ModuleDescriptor:
    return ModuleDescriptor(
        id=module_id,
        name=module_id.title(),
        requires=requires,
        conflicts_with=conflicts_with,
        always_included=always_included,
        contributions=ModuleContributions(
            dependencies=dependencies or {},
            dev_dependencies=dev_dependencies or {},
            framework=framework or {},
        ),
        is_enabled=is_enabled,
    )


@pytest.fixture
def make_module() -> Callable[..., ModuleDescriptor]:
    """Factory for :class:`ModuleDescriptor` with sensible defaults."""
    return _make_module


@pytest.fixture
def make_registry() -> Callable[..., ModuleRegistry]:
    """Factory: ``make_registry(mod_a, mod_b, ...)`` -> ModuleRegistry."""
    def factory(*modules: ModuleDescriptor) -> ModuleRegistry:
        return ModuleRegistry(modules)
    return factory


@pytest.fixture
def core_auth_registry() -> ModuleRegistry:
    """``core`` (always included) plus ``auth`` requiring it."""
    return ModuleRegistry([
        _make_module(
            "core",
            always_included=True,
            dependencies={"flutter_riverpod": "^2.6.1", "json_annotation": "^4.8.0"},
        ),
        _make_module(
            "auth",
            requires=("core",),
            dependencies={"firebase_auth": "^5.3.4", "json_annotation": "^4.9.0"},
        ),
    ])


# ---------------------------------------------------------------------------
# Configuration & Context
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_config(tmp_path: Path) -> Config:
    """A config enabling ``auth`` that writes into a temp directory."""
    return Config(
        project=ProjectSettings(name="demo_app", description="Demo application"),
        modules={"auth": {"provider": "firebase"}},
        scaffold=ScaffoldSettings(run_dart_format=False, run_pub_get=False),
        output_dir=tmp_path / "demo_app",
    )


@pytest.fixture
def sample_context(sample_config: Config) -> ProjectContext:
    return ProjectContext.from_config(sample_config)


# ---------------------------------------------------------------------------
# Template trees
# ---------------------------------------------------------------------------

def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Write ``{relative_path: content}`` below *root* and return *root*."""
    for rel_path, content in files.items():
        target = root / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(textwrap.dedent(content), encoding="utf-8")
    return root


@pytest.fixture
def tree_writer() -> Callable[[Path, dict[str, str]], Path]:
    """Expose :func:`write_tree` to test modules."""
    return write_tree


@pytest.fixture
def template_root(tmp_path: Path) -> Path:
    """Minimal base + modules template tree for assembler tests."""
    root = tmp_path / "templates"
    write_tree(root / "base", {
        "pubspec.yaml.j2": """\
            name: {{ project.name }}
            description: test
            environment:
              sdk: ^3.5.0
            dependencies:
              flutter:
                sdk: flutter
            flutter:
              uses-material-design: true
            """,
        "lib/main.dart.j2": "// {{ project.name }} base\n",
        "README.md": "static readme\n",
    })
    write_tree(root / "modules" / "auth", {
        "lib/main.dart.j2": "// {{ project.name }} with auth\n",
        "lib/auth/login.dart": "class Login {}\n",
    })
    return root
