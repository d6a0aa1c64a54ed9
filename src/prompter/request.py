"""Prompt requests: the user's intent for one invocation."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from prompter.config.utils import parse_target
from prompter.errors import ValidationError

if TYPE_CHECKING:
    from prompter.config import Config
    from prompter.context import ExecutionContext


@dataclass(frozen=True)
class PromptRequest:
    """Everything a caller asked for; defaulting produces new instances."""

    base_prompt: str = ""
    pre_template: str = ""
    post_template: str = ""
    file_refs: tuple[str, ...] = ()
    directory_ref: str = ""
    fix_mode: bool = False
    fix_file: str = ""
    target: str = ""
    editor: str = ""
    editor_requested: bool = False
    interactive: bool = True
    force_interactive: bool = False
    force_non_interactive: bool = False
    number_select: bool = False
    from_clipboard: bool = False
    config_path: str = ""


def validate_request(
    request: PromptRequest | None, *, context: ExecutionContext
) -> PromptRequest:
    """Check a request before any configuration or template work.

    Returns:
        The request itself, for chaining.

    Raises:
        ValidationError: On the first rule the request breaks.
    """
    if request is None:
        raise ValidationError(
            "request cannot be None", hint="Build a PromptRequest before generating."
        )

    if request.force_interactive and request.force_non_interactive:
        raise ValidationError(
            "cannot use both --interactive and --yes",
            hint="Pick one of -i (force interactive) or -y (force non-interactive).",
        )

    if (
        not request.interactive
        and not request.base_prompt
        and not request.fix_mode
        and not request.from_clipboard
    ):
        raise ValidationError(
            "base prompt is required in non-interactive mode",
            hint=(
                "Pass the prompt as an argument, use --clipboard, or drop --yes to be "
                "asked for it."
            ),
        )

    if request.target and parse_target(request.target) is None:
        raise ValidationError(
            f"invalid target: {request.target} "
            "(must be 'clipboard', 'stdout', or 'file:/path')",
            hint="Use --target clipboard, --target stdout or --target file:/path/to/prompt.md.",
        )

    if request.config_path and not context.absolute(request.config_path).exists():
        raise ValidationError(
            f"config file does not exist: {request.config_path}",
            hint="Create the file or point --config at an existing TOML file.",
        )

    for label, name in (("pre", request.pre_template), ("post", request.post_template)):
        if name and not name.strip():
            raise ValidationError(
                f"{label}-template name cannot be empty",
                hint=f"Pass a template name to --{label}, or omit the flag.",
            )

    return request


def apply_config_defaults(request: PromptRequest, config: Config) -> PromptRequest:
    """Fill unset template names, target and fix file from the configuration.

    The editor is never taken from configuration here: it only matters when
    one was explicitly requested. In fix mode the configured fix file is
    skipped so that the shell-history strategy can run.
    """
    changes: dict[str, str] = {}
    if not request.pre_template and config.default_pre:
        changes["pre_template"] = config.default_pre
    if not request.post_template and config.default_post:
        changes["post_template"] = config.default_post
    if not request.target and config.target:
        changes["target"] = config.target
    if not request.fix_mode and not request.fix_file and str(config.fix_file):
        changes["fix_file"] = str(config.fix_file)
    return replace(request, **changes) if changes else request
