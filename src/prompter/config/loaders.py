# src/prompter/config/loaders.py

"""Configuration loaders for environment and files.

Pure data loading functions that extract configuration values from their
sources without validating them. Each loader returns a plain dictionary that
the core resolver merges.
"""

from __future__ import annotations

import tomllib
from typing import TYPE_CHECKING, Any

from prompter.errors import ConfigurationError

from . import utils

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

# Meta/control variables that steer resolution but aren't config fields
META_ENV_FIELDS = {"config_path", "debug_config"}


def _coerce_bool(v: str) -> bool:
    """Convert string to boolean using common conventions."""
    return v.strip().lower() in utils.TRUTHY


# --- Environment Loading ---


def load_env(env: Mapping[str, str]) -> dict[str, Any]:
    """Load configuration from ``PROMPTER_*`` variables of ``env``.

    Only variables that map onto a known ``Settings`` field are read, so
    unrelated variables sharing the prefix are ignored. Values are coerced
    to the field's type when it is a bool or a number.

    Returns:
        Dictionary of configuration values keyed by field name.
    """
    from .core import Settings  # local import to keep loaders import-light

    by_env_key = {
        utils.env_key_for(name): name
        for name in Settings.model_fields
        if name not in META_ENV_FIELDS
    }
    config: dict[str, Any] = {}
    for key, value in env.items():
        field_name = by_env_key.get(key)
        if field_name is None:
            continue
        info = Settings.model_fields[field_name]
        config[field_name] = _coerce_env_value(value, info.annotation)
    return config


def _coerce_env_value(value: str, target_type: Any) -> Any:
    """Coerce env string to target type when possible.

    Falls back to the original string on conversion failure so that the
    schema reports a precise error.
    """
    if target_type is bool:
        return _coerce_bool(value)
    if target_type in (int, float):
        try:
            return target_type(value)
        except ValueError:
            return value
    return value


# --- File Loading ---


def read_toml(path: Path) -> dict[str, Any]:
    """Read a TOML config file; a missing file yields an empty dict.

    Raises:
        ConfigurationError: If the file exists but cannot be read or parsed.
    """
    if not path.exists():
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            f"failed to parse config file {path}: {e}",
            hint="Check the TOML syntax of your configuration file.",
            cause=e,
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"failed to read config file {path}: {e.strerror or e}",
            hint=(
                "Check file permissions for your configuration file, or point "
                "--config at a readable file."
            ),
            cause=e,
        ) from e


def load_file(path: Path) -> dict[str, Any]:
    """Load top-level configuration keys from a TOML file.

    Tables are flattened into dotted key paths (``[section] key`` becomes
    ``section.key``) so that every value has a single address shared with
    the environment mapping.
    """
    return _flatten(read_toml(path))


def _flatten(data: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            out.update(_flatten(value, prefix=f"{name}."))
        else:
            out[name] = value
    return out
