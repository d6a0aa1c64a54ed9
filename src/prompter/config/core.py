# src/prompter/config/core.py

"""Core configuration schema and resolution for Prompter.

This module provides:
- Single source of truth for configuration fields and defaults (Settings)
- Immutable runtime payload (Config)
- Pure layer merging with audit tracking (SourceMap)
- Validation with best-effort repair of the templates root
"""

from __future__ import annotations

from contextlib import suppress
from dataclasses import dataclass
from enum import Enum
from functools import cache
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, overload
import warnings

from pydantic import BaseModel, Field, ValidationError, field_validator

from prompter.errors import ConfigurationError

from .utils import (
    env_key_for,
    field_spec_hint,
    get_config_path,
    parse_target,
    should_emit_debug,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from prompter.context import ExecutionContext

DirectoryStrategy = Literal["git", "filesystem"]

# --- Schema (Pydantic wall) ---


class Settings(BaseModel):
    """Pydantic schema for configuration validation and defaults.

    All configuration resolution flows through this schema so that every
    source (file, environment, overrides) is held to the same rules.
    """

    templates_root: str = Field(default="~/.config/prompter", min_length=1)
    local_templates_root: str | None = Field(default=None)
    editor: str = Field(default="nvim")
    default_pre: str = Field(default="")
    default_post: str = Field(default="")
    fix_file: str = Field(default="/tmp/prompter-fix.txt", min_length=1)
    directory_strategy: DirectoryStrategy = Field(default="git")
    target: str = Field(default="clipboard")
    interactive_default: bool = Field(default=False)
    # Upper bound for the fix-mode re-run; 0 disables the bound
    fix_timeout_seconds: float = Field(default=300.0, ge=0)

    model_config = {"extra": "ignore"}

    @field_validator(
        "templates_root", "editor", "default_pre", "default_post", "fix_file",
        mode="before",
    )
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        """Trim surrounding whitespace on text fields."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("local_templates_root", mode="before")
    @classmethod
    def normalize_local_root(cls, v: Any) -> Any:
        """Map empty strings to None."""
        if isinstance(v, str):
            s = v.strip()
            return s or None
        return v

    @field_validator("directory_strategy", mode="before")
    @classmethod
    def normalize_strategy(cls, v: Any) -> Any:
        """Accept any casing for the strategy name."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("target")
    @classmethod
    def validate_target(cls, v: str) -> str:
        """Restrict targets to clipboard, stdout or file:<path>."""
        v = v.strip()
        if parse_target(v) is None:
            raise ValueError(
                f"invalid target: {v} (must be 'clipboard', 'stdout', or 'file:/path')"
            )
        return v


@cache
def _default_settings() -> dict[str, Any]:
    return Settings().model_dump()


# --- Immutable runtime payload ---


@dataclass(frozen=True)
class Config:
    """Immutable configuration resolved once per run.

    Paths are already expanded; ``template_roots`` lists the local root
    (when configured) ahead of the global one.
    """

    templates_root: Path
    local_templates_root: Path | None
    editor: str
    default_pre: str
    default_post: str
    fix_file: Path
    directory_strategy: DirectoryStrategy
    target: str
    interactive_default: bool
    fix_timeout_seconds: float

    @property
    def template_roots(self) -> tuple[Path, ...]:
        """Roots searched for templates, highest priority first."""
        if self.local_templates_root is None:
            return (self.templates_root,)
        if self.local_templates_root == self.templates_root:
            return (self.templates_root,)
        return (self.local_templates_root, self.templates_root)

    def snapshot(self) -> dict[str, Any]:
        """Plain mapping of resolved values, as exposed to templates."""
        return {
            "templates_root": str(self.templates_root),
            "local_templates_root": (
                str(self.local_templates_root) if self.local_templates_root else ""
            ),
            "editor": self.editor,
            "default_pre": self.default_pre,
            "default_post": self.default_post,
            "fix_file": str(self.fix_file),
            "directory_strategy": self.directory_strategy,
            "target": self.target,
            "interactive_default": self.interactive_default,
            "fix_timeout_seconds": self.fix_timeout_seconds,
        }


# --- Audit types ---


class Origin(str, Enum):
    """Source origin for configuration field values."""

    DEFAULT = "default"
    FILE = "file"
    ENV = "env"
    OVERRIDES = "overrides"


@dataclass(frozen=True)
class FieldOrigin:
    """Tracks the origin and context of a configuration field value."""

    origin: Origin
    env_key: str | None = None  # e.g., "PROMPTER_TARGET"
    file: str | None = None  # e.g., "~/.config/prompter/config.toml"


SourceMap = dict[str, FieldOrigin]


# --- Public resolution API ---


@overload
def resolve_config(
    overrides: Mapping[str, Any] | None = ...,
    *,
    path: str | None = ...,
    context: ExecutionContext | None = ...,
    explain: Literal[True],
) -> tuple[Config, SourceMap]: ...


@overload
def resolve_config(
    overrides: Mapping[str, Any] | None = ...,
    *,
    path: str | None = ...,
    context: ExecutionContext | None = ...,
    explain: Literal[False] = ...,
) -> Config: ...


def resolve_config(
    overrides: Mapping[str, Any] | None = None,
    *,
    path: str | None = None,
    context: ExecutionContext | None = None,
    explain: bool = False,
) -> Config | tuple[Config, SourceMap]:
    """Resolve configuration from all sources into a Config.

    Precedence: defaults < config file < environment < overrides. Override
    values that are None or empty strings count as "not given".

    Args:
        overrides: Caller-supplied values (e.g. CLI flags).
        path: Explicit config file path; defaults to
            ``$PROMPTER_CONFIG_PATH`` or ``~/.config/prompter/config.toml``.
        context: Execution context; captured from the process when omitted.
        explain: If True, also return the per-field SourceMap.

    Raises:
        ConfigurationError: If the file is unreadable or a value is invalid.
    """
    from prompter.context import ExecutionContext

    from .loaders import load_env, load_file

    ctx = context or ExecutionContext.from_process()
    config_path = get_config_path(ctx, path)

    file_values = load_file(config_path)
    _warn_unknown_keys(file_values, config_path)

    merged, sources = _resolve_layers(
        overrides=_effective_overrides(overrides or {}),
        env=load_env(ctx.env),
        file=file_values,
        file_label=str(config_path),
    )

    try:
        settings = Settings.model_validate(merged)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(p) for p in err.get("loc", ())) or "config"
        msg = err.get("msg") or "invalid value"
        # Remove "Value error, " prefix if present (Pydantic standard wrapper)
        if msg.startswith("Value error, "):
            msg = msg[13:]
        raise ConfigurationError(
            f"invalid configuration value for {field}: {msg}",
            hint=field_spec_hint(field),
            cause=e,
        ) from e

    frozen = _freeze(settings, ctx)
    if not explain and should_emit_debug(ctx.env):
        with suppress(Exception):
            warnings.warn(
                "Config audit\n" + "\n".join(audit_lines(frozen, sources)),
                stacklevel=2,
            )
    return (frozen, sources) if explain else frozen


def load_config(
    path: str | None = None, *, context: ExecutionContext | None = None
) -> Config:
    """Load configuration from a file with defaults and environment applied."""
    return resolve_config(None, path=path, context=context)


def validate_config(config: Config, *, context: ExecutionContext | None = None) -> None:
    """Validate a resolved configuration.

    May create the templates root when it is missing; never deletes or
    overwrites existing content.

    Raises:
        ConfigurationError: If a value is unrecognized or the templates root
            is unusable.
    """
    del context  # paths are already expanded at resolution time
    if config.directory_strategy not in ("git", "filesystem"):
        raise ConfigurationError(
            f"invalid directory_strategy: {config.directory_strategy} "
            "(must be 'git' or 'filesystem')",
            hint=field_spec_hint("directory_strategy"),
        )
    if parse_target(config.target) is None:
        raise ConfigurationError(
            f"invalid target: {config.target} "
            "(must be 'clipboard', 'stdout', or 'file:/path')",
            hint=field_spec_hint("target"),
        )
    if config.fix_timeout_seconds < 0:
        raise ConfigurationError(
            f"fix_timeout_seconds must be >= 0, got {config.fix_timeout_seconds}",
            hint=field_spec_hint("fix_timeout_seconds"),
        )
    _ensure_templates_root(config.templates_root)


def _ensure_templates_root(root: Path) -> None:
    if root.is_dir():
        if not os.access(root, os.R_OK | os.X_OK):
            raise ConfigurationError(
                f"templates_root is not readable: {root}",
                hint=f"Check the permissions of {root}.",
            )
        return
    if root.exists():
        raise ConfigurationError(
            f"templates_root is not a directory: {root}",
            hint=field_spec_hint("templates_root"),
        )
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(
            f"templates_root directory does not exist and cannot be created: {root}",
            hint=field_spec_hint("templates_root"),
            cause=e,
        ) from e


# --- Internal helpers (pure & tiny) ---


def _effective_overrides(overrides: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in overrides.items() if v is not None and v != ""}


def _warn_unknown_keys(values: Mapping[str, Any], path: Path) -> None:
    known = set(Settings.model_fields)
    for key in values:
        if key not in known:
            warnings.warn(
                f"Configuration: unknown key '{key}' in {path} ignored",
                UserWarning,
                stacklevel=3,
            )


def _freeze(settings: Settings, context: ExecutionContext) -> Config:
    """Convert validated Settings to an immutable Config with expanded paths."""
    local_root = (
        context.absolute(settings.local_templates_root)
        if settings.local_templates_root
        else None
    )
    return Config(
        templates_root=context.absolute(settings.templates_root),
        local_templates_root=local_root,
        editor=settings.editor,
        default_pre=settings.default_pre,
        default_post=settings.default_post,
        fix_file=context.absolute(settings.fix_file),
        directory_strategy=settings.directory_strategy,
        target=settings.target,
        interactive_default=settings.interactive_default,
        fix_timeout_seconds=settings.fix_timeout_seconds,
    )


def _resolve_layers(
    *,
    overrides: Mapping[str, Any],
    env: Mapping[str, Any],
    file: Mapping[str, Any],
    file_label: str,
) -> tuple[dict[str, Any], SourceMap]:
    """Merge layers with last-wins precedence while recording origins."""
    known = set(Settings.model_fields)
    layers = [
        (Origin.FILE, file),
        (Origin.ENV, env),
        (Origin.OVERRIDES, overrides),
    ]

    out: dict[str, Any] = dict(_default_settings())
    src: SourceMap = {k: FieldOrigin(origin=Origin.DEFAULT) for k in out}

    for origin, payload in layers:
        for k, v in payload.items():
            if k not in known:
                continue
            out[k] = v
            if origin is Origin.ENV:
                src[k] = FieldOrigin(origin=origin, env_key=env_key_for(k))
            elif origin is Origin.FILE:
                src[k] = FieldOrigin(origin=origin, file=file_label)
            else:
                src[k] = FieldOrigin(origin=origin)

    return out, src


# --- Audit helpers ---


def _origin_label(field: str, where: FieldOrigin) -> str:
    match where.origin:
        case Origin.ENV:
            return f"env:{where.env_key or env_key_for(field)}"
        case Origin.FILE:
            return f"file:{where.file or 'config.toml'}"
        case _:
            return str(where.origin.value)


def audit_lines(cfg: Config, sources: SourceMap) -> list[str]:
    """Produce human-readable ``field = value  (origin)`` lines."""
    values = cfg.snapshot()
    lines: list[str] = []
    for field, value in values.items():
        fo = sources.get(field, FieldOrigin(origin=Origin.DEFAULT))
        lines.append(f"{field} = {value!r}  ({_origin_label(field, fo)})")
    return lines

