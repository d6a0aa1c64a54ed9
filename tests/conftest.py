"""Pytest configuration and fixtures.

Provides environment isolation, an explicit execution context rooted in
``tmp_path`` and a templates root. Isolation fixtures are autouse unless
noted.
"""

from __future__ import annotations

import io
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

from prompter.context import ExecutionContext
from tests.helpers import FIXED_NOW

if TYPE_CHECKING:
    from collections.abc import Callable

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from reading a developer's .env during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    monkeypatch.setattr(
        "prompter.context.dotenv_values", lambda *_args, **_kwargs: {}
    )


@pytest.fixture(autouse=True)
def isolate_prompter_env(monkeypatch):
    """Clear PROMPTER_* and editor variables to prevent test pollution."""
    for key in list(os.environ.keys()):
        if key.startswith("PROMPTER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("VISUAL", raising=False)
    monkeypatch.delenv("EDITOR", raising=False)


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("asyncio").setLevel(logging.WARNING)


# =============================================================================
# Execution Context
# =============================================================================


@pytest.fixture
def home(tmp_path: Path) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def templates_root(tmp_path: Path) -> Path:
    """An empty templates root with ``pre/`` and ``post/`` directories."""
    root = tmp_path / "templates"
    (root / "pre").mkdir(parents=True)
    (root / "post").mkdir(parents=True)
    return root


@pytest.fixture
def make_context(home: Path, workdir: Path) -> Callable[..., ExecutionContext]:
    """Factory for contexts with in-memory streams and a fixed clock.

    The config file path points into the temporary home, so nothing from the
    developer's own ``~/.config/prompter`` leaks in.
    """

    def factory(env: dict[str, str] | None = None, **kwargs: Any) -> ExecutionContext:
        base = {
            "HOME": str(home),
            "PATH": os.environ.get("PATH", "/usr/bin:/bin"),
            "PROMPTER_CONFIG_PATH": str(home / ".config" / "prompter" / "config.toml"),
        }
        base.update(env or {})
        params: dict[str, Any] = {
            "env": base,
            "cwd": workdir,
            "home": home,
            "stdin": io.StringIO(),
            "stdout": io.StringIO(),
            "stderr": io.StringIO(),
            "clock": lambda: FIXED_NOW,
        }
        params.update(kwargs)
        return ExecutionContext(**params)

    return factory


@pytest.fixture
def context(make_context) -> ExecutionContext:
    return make_context()
