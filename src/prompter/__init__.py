"""Prompter: assemble prompts for AI coding assistants.

Public API:
    - Orchestrator: configure, collect, assemble and output a prompt
    - PromptRequest: what the caller asked for
    - ExecutionContext: explicit process state for one run
    - resolve_config / Config: layered configuration
"""

from __future__ import annotations

import logging

from prompter.config import Config, resolve_config
from prompter.context import ExecutionContext
from prompter.errors import (
    ConfigurationError,
    ContentCollectionError,
    ErrorKind,
    FixModeError,
    OutputError,
    PrompterError,
    SelectionCancelledError,
    TemplateInvalidError,
    TemplateNotFoundError,
    ValidationError,
    format_error,
    is_recoverable,
)
from prompter.orchestrator import Orchestrator
from prompter.request import PromptRequest

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("prompter-cli")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("prompter").addHandler(logging.NullHandler())

__all__ = [  # noqa: RUF022
    # Entry points
    "Orchestrator",
    "PromptRequest",
    "ExecutionContext",
    "Config",
    "resolve_config",
    # Errors
    "PrompterError",
    "ErrorKind",
    "ConfigurationError",
    "TemplateNotFoundError",
    "TemplateInvalidError",
    "ContentCollectionError",
    "FixModeError",
    "OutputError",
    "ValidationError",
    "SelectionCancelledError",
    "format_error",
    "is_recoverable",
]
