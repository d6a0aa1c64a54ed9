# src/prompter/config/__init__.py

"""Configuration management for Prompter.

The core principle is resolve-once, freeze-then-flow: configuration is
resolved at entry points into an immutable ``Config`` that flows through
assembly and output.

Key exports:
- resolve_config: Main API for configuration resolution
- load_config / validate_config: File-only resolution and validation
- Config: Immutable configuration payload
- Settings: Pydantic schema for validation and defaults
"""

# ruff: noqa: I001

from .core import (
    Config,
    FieldOrigin,
    Origin,
    Settings,
    SourceMap,
    audit_lines,
    load_config,
    resolve_config,
    validate_config,
)
from .utils import OutputTarget, field_spec_hint, get_config_path, parse_target

__all__ = [  # noqa: RUF022
    # Main public API
    "resolve_config",
    "load_config",
    "validate_config",
    "Config",
    # Core types
    "Settings",
    "Origin",
    "FieldOrigin",
    "SourceMap",
    # Provenance helpers
    "audit_lines",
    "field_spec_hint",
    # Targets and paths
    "OutputTarget",
    "parse_target",
    "get_config_path",
]
