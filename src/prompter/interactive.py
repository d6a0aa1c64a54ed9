"""Interactive prompts and collection of missing request inputs.

Menus and questions are written to stderr so that a prompt sent to stdout
stays clean. Number-select mode reads single keys: ``1``-``9`` pick an
option, Enter takes the default and Esc or Ctrl-C cancels.
"""

from __future__ import annotations

from dataclasses import replace
import logging
from typing import TYPE_CHECKING, Protocol

import click
import typer

from prompter.errors import ContentCollectionError, SelectionCancelledError, ValidationError
from prompter.templates.helpers import truncate

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from prompter.config import Config
    from prompter.context import ExecutionContext
    from prompter.request import PromptRequest
    from prompter.templates.store import TemplateKind, TemplateStore

logger = logging.getLogger(__name__)

NONE_OPTION = "None"
_ENTER = ("\r", "\n")
_CANCEL = ("\x1b", "\x03")


class Prompter(Protocol):
    """Prompt primitives; cancellation raises ``SelectionCancelledError``."""

    def confirm(self, message: str, *, default: bool, number_select: bool = False) -> bool: ...

    def select(
        self, message: str, options: Sequence[str], *, number_select: bool = False
    ) -> str: ...

    def ask(self, message: str) -> str: ...


class TerminalPrompter:
    """Prompter for a real terminal built on Typer and Click."""

    def __init__(self, context: ExecutionContext) -> None:
        self.context = context

    def _echo(self, text: str = "") -> None:
        click.echo(text, file=self.context.stderr)

    def _is_tty(self) -> bool:
        isatty = getattr(self.context.stdin, "isatty", None)
        return bool(isatty and isatty())

    def confirm(self, message: str, *, default: bool, number_select: bool = False) -> bool:
        if number_select:
            labels = ["Yes", "No"]
            picked = self._number_menu(message, labels, default_index=0 if default else 1)
            return picked == 0
        try:
            return typer.confirm(message, default=default, err=True)
        except click.Abort as e:
            raise SelectionCancelledError() from e

    def select(
        self, message: str, options: Sequence[str], *, number_select: bool = False
    ) -> str:
        if not options:
            return NONE_OPTION
        if number_select:
            return options[self._number_menu(message, options, default_index=0)]
        self._echo(message)
        for i, option in enumerate(options, start=1):
            self._echo(f"  {i}. {option}")
        try:
            choice = typer.prompt(
                "Select option",
                default=1,
                type=click.IntRange(1, len(options)),
                err=True,
            )
        except click.Abort as e:
            raise SelectionCancelledError() from e
        return options[choice - 1]

    def ask(self, message: str) -> str:
        try:
            return str(typer.prompt(message, err=True)).strip()
        except click.Abort as e:
            raise SelectionCancelledError() from e

    # --- Number-key selection ---

    def _number_menu(
        self, message: str, labels: Sequence[str], *, default_index: int
    ) -> int:
        self._echo()
        self._echo(message)
        self._echo("  (Press a number key for instant selection)")
        self._echo()
        for i, label in enumerate(labels):
            mark = " (default)" if i == default_index and len(labels) == 2 else ""
            self._echo(f"  {i + 1}. {label}{mark}")
        self._echo()
        if not self._is_tty():
            return self._line_selection(labels, default_index=default_index)
        return self._key_selection(labels, default_index=default_index)

    def _key_selection(self, labels: Sequence[str], *, default_index: int) -> int:
        click.echo("Select option: ", nl=False, file=self.context.stderr)
        while True:
            try:
                ch = click.getchar()
            except (KeyboardInterrupt, EOFError) as e:
                self._echo()
                raise SelectionCancelledError() from e
            if ch in _CANCEL:
                self._echo()
                raise SelectionCancelledError()
            if ch in _ENTER:
                self._echo()
                return default_index
            if ch.isdigit() and ch != "0" and int(ch) <= len(labels):
                self._echo(ch)
                return int(ch) - 1

    def _line_selection(self, labels: Sequence[str], *, default_index: int) -> int:
        click.echo(
            f"Enter number (1-{len(labels)}) or press Enter for "
            f"{labels[default_index]}: ",
            nl=False,
            file=self.context.stderr,
        )
        line = self.context.stdin.readline()
        if not line:
            raise SelectionCancelledError()
        text = line.strip()
        if not text:
            return default_index
        if text.isdigit() and 1 <= int(text) <= len(labels):
            return int(text) - 1
        raise ValidationError(
            f"invalid selection: {text!r}",
            hint=f"Enter a number between 1 and {len(labels)}.",
        )


# --- Request completion ---


def resolve_interactive_mode(request: PromptRequest, config: Config) -> PromptRequest:
    """Set ``interactive`` from the force flags, else from the config default."""
    if request.force_interactive and request.force_non_interactive:
        raise ValidationError(
            "cannot use both --interactive and --yes",
            hint="Pick one of -i (force interactive) or -y (force non-interactive).",
        )
    if request.force_interactive:
        interactive = True
    elif request.force_non_interactive:
        interactive = False
    else:
        interactive = config.interactive_default
    return replace(request, interactive=interactive)


def template_options(store: TemplateStore, kind: TemplateKind) -> list[str]:
    """Selection options: defaults, then ``None``, then the other templates."""
    infos = store.list_templates(kind)
    defaults = [t.name for t in infos if t.is_default]
    regular = [t.name for t in infos if not t.is_default]
    return [*defaults, NONE_OPTION, *regular]


def _with_clipboard(
    request: PromptRequest,
    clipboard: Callable[[], str],
    context: ExecutionContext,
) -> PromptRequest:
    content = clipboard().strip()
    if not content:
        raise ContentCollectionError(
            "clipboard is empty",
            hint="Copy some text first, or pass the prompt as an argument.",
        )
    if request.base_prompt:
        if request.interactive:
            context.status(f"Appended clipboard content to base prompt: {truncate(100, content)}")
        return replace(request, base_prompt=f"{request.base_prompt}\n\n{content}")
    if request.interactive:
        context.status(f"Read base prompt from clipboard: {truncate(100, content)}")
    return replace(request, base_prompt=content)


def collect_missing_inputs(
    request: PromptRequest,
    *,
    store: TemplateStore,
    prompter: Prompter,
    clipboard: Callable[[], str],
    context: ExecutionContext,
) -> PromptRequest:
    """Fill gaps in ``request`` from the clipboard and, if interactive, the user.

    Raises:
        ContentCollectionError: When clipboard input was requested but is empty.
        SelectionCancelledError: When the user aborts a prompt.
    """
    if request.from_clipboard and not request.fix_mode:
        request = _with_clipboard(request, clipboard, context)

    if not request.interactive or request.fix_mode:
        return request

    if not request.base_prompt:
        request = replace(request, base_prompt=prompter.ask("Enter your base prompt"))

    for kind in ("pre", "post"):
        field = f"{kind}_template"
        if getattr(request, field):
            continue
        options = template_options(store, kind)
        if options == [NONE_OPTION]:
            continue
        where = "prepended to" if kind == "pre" else "appended to"
        picked = prompter.select(
            f"Select a {kind}-template ({where} prompt):",
            options,
            number_select=request.number_select,
        )
        if picked != NONE_OPTION:
            request = replace(request, **{field: picked})

    if not request.directory_ref and not request.file_refs:
        include = prompter.confirm(
            "Include current directory context in the prompt?",
            default=False,
            number_select=request.number_select,
        )
        if include:
            request = replace(request, directory_ref=str(context.cwd))

    logger.debug("Collected request: %s", request)
    return request
