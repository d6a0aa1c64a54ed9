"""Execution context: the ambient inputs of one invocation.

Environment variables, working directory, home directory, the clock and the
standard streams are captured once and passed explicitly to every
component. Nothing below the CLI reads process-level state on its own.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
import logging
import os
from pathlib import Path
import sys
from types import MappingProxyType
from typing import TextIO

from dotenv import dotenv_values

logger = logging.getLogger(__name__)


def _frozen_env(env: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(env))


@dataclass(frozen=True)
class ExecutionContext:
    """Snapshot of process-level state for a single run."""

    env: Mapping[str, str]
    cwd: Path
    home: Path
    stdin: TextIO = field(default_factory=lambda: sys.stdin)
    stdout: TextIO = field(default_factory=lambda: sys.stdout)
    stderr: TextIO = field(default_factory=lambda: sys.stderr)
    clock: Callable[[], datetime] = datetime.now

    def __post_init__(self) -> None:
        object.__setattr__(self, "env", _frozen_env(self.env))

    @classmethod
    def from_process(cls, *, load_dotenv: bool = True) -> ExecutionContext:
        """Capture the current process state.

        A ``.env`` file in the working directory is read beneath the real
        environment: exported variables always win over file entries.
        """
        cwd = Path.cwd()
        env: dict[str, str] = {}
        if load_dotenv:
            dotenv_path = cwd / ".env"
            if dotenv_path.is_file():
                values = dotenv_values(dotenv_path)
                env.update({k: v for k, v in values.items() if v is not None})
                logger.debug("Loaded %d value(s) from %s", len(env), dotenv_path)
        env.update(os.environ)
        return cls(
            env=env,
            cwd=cwd,
            home=_home_from_env(env),
            stdin=sys.stdin,
            stdout=sys.stdout,
            stderr=sys.stderr,
        )

    def expand_path(self, path: str | Path) -> Path:
        """Expand a leading ``~`` against this context's home directory."""
        text = str(path)
        if text == "~":
            return self.home
        if text.startswith("~/") or text.startswith("~" + os.sep):
            return self.home / text[2:]
        return Path(text)

    def absolute(self, path: str | Path) -> Path:
        """Expand ``~`` and anchor relative paths at the context cwd."""
        p = self.expand_path(path)
        return p if p.is_absolute() else self.cwd / p

    def warn(self, message: str) -> None:
        """Emit a visible warning for a recovered failure."""
        logger.debug("warning: %s", message)
        self.stderr.write(f"Warning: {message}\n")
        self.stderr.flush()

    def status(self, message: str) -> None:
        """Write a status line to stderr, keeping stdout clean for prompts."""
        self.stderr.write(f"{message}\n")
        self.stderr.flush()


def _home_from_env(env: Mapping[str, str]) -> Path:
    if home := env.get("HOME") or env.get("USERPROFILE"):
        return Path(home)
    try:
        return Path.home()
    except RuntimeError:
        return Path.cwd()
