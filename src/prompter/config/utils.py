# src/prompter/config/utils.py

"""Configuration utilities and shared functionality.

Pure helpers that can be imported without creating circular dependencies:
environment key mapping, config file paths, output target parsing and
hint formatting.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from prompter.context import ExecutionContext

# --- Constants ---

ENV_PREFIX = "PROMPTER_"

CONFIG_PATH_VAR = "PROMPTER_CONFIG_PATH"
DEBUG_CONFIG_VAR = "PROMPTER_DEBUG_CONFIG"

DEFAULT_CONFIG_PATH = "~/.config/prompter/config.toml"

TRUTHY = {"1", "true", "yes", "on"}

# --- Environment Utilities ---


def env_key_for(field: str) -> str:
    """Map a config key path to its environment variable name.

    ``templates_root`` -> ``PROMPTER_TEMPLATES_ROOT``; dotted key paths use
    ``_`` in place of ``.``.
    """
    return f"{ENV_PREFIX}{field.replace('.', '_').upper()}"


def should_emit_debug(env: Mapping[str, str]) -> bool:
    """Return True when the config audit should be emitted as a warning."""
    return env.get(DEBUG_CONFIG_VAR, "").strip().lower() in TRUTHY


# --- Path Utilities ---


def get_config_path(context: ExecutionContext, explicit: str | None = None) -> Path:
    """Return the config file path: explicit > env override > default."""
    if explicit:
        return context.absolute(explicit)
    if override := context.env.get(CONFIG_PATH_VAR):
        return context.absolute(override)
    return context.expand_path(DEFAULT_CONFIG_PATH)


# --- Output Targets ---

TargetKind = Literal["clipboard", "stdout", "file"]


@dataclass(frozen=True)
class OutputTarget:
    """Parsed output sink descriptor."""

    kind: TargetKind
    path: str | None = None

    def __str__(self) -> str:
        return f"file:{self.path}" if self.kind == "file" else self.kind


def parse_target(value: str) -> OutputTarget | None:
    """Parse ``clipboard``, ``stdout`` or ``file:<path>``; None when invalid."""
    if value == "clipboard":
        return OutputTarget("clipboard")
    if value == "stdout":
        return OutputTarget("stdout")
    if value.startswith("file:") and value[5:].strip():
        return OutputTarget("file", value[5:])
    return None


# --- Field Specification Helpers ---


def field_spec_hint(field: str) -> str:
    """Return a compact hint for setting a config field via env or file."""
    return (
        f"Set {env_key_for(field)} or '{field}' in {DEFAULT_CONFIG_PATH} "
        "(or pass --config)."
    )
