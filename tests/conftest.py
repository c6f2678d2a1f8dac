"""Shared pytest fixtures for the goskel test suite.

Provides reusable fixtures for:
- Target directories for generated projects
- Project configs with dependency resolution disabled
- A generator and template engine using the package templates
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from goskel.engine import TemplateEngine
from goskel.generator import ProjectGenerator
from goskel.models import ProjectConfig


MODULE = "example.com/demo"


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    """Not-yet-existing directory for a generated project."""
    return tmp_path / "demo"


# ---------------------------------------------------------------------------
# Configs
# ---------------------------------------------------------------------------


@pytest.fixture
def make_config(target_dir: Path) -> Callable[..., ProjectConfig]:
    """Factory for a ProjectConfig rooted at ``target_dir``; tidy is off."""

    def _make(**overrides: Any) -> ProjectConfig:
        data: dict[str, Any] = {
            "directory": str(target_dir),
            "module": MODULE,
            "tidy": False,
        }
        data.update(overrides)
        return ProjectConfig(**data)

    return _make


@pytest.fixture
def config(make_config: Callable[..., ProjectConfig]) -> ProjectConfig:
    return make_config()


# ---------------------------------------------------------------------------
# Engine & Generator
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def engine() -> TemplateEngine:
    return TemplateEngine()


@pytest.fixture
def generator() -> ProjectGenerator:
    return ProjectGenerator()
