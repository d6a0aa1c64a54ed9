"""Command-line interface."""

from __future__ import annotations

import logging
import platform
import sys
from typing import TYPE_CHECKING, NoReturn

import typer
from typing_extensions import Annotated

from prompter import __version__
from prompter.config import audit_lines, get_config_path, resolve_config
from prompter.context import ExecutionContext
from prompter.errors import ContentCollectionError, PrompterError, ValidationError, format_error
from prompter.interactive import resolve_interactive_mode
from prompter.orchestrator import Orchestrator
from prompter.request import PromptRequest
from prompter.templates import TEMPLATE_KINDS, add_template, list_templates
from prompter.templates.library import contract_path, template_kind

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="prompter",
    help="Assemble prompts for AI coding assistants from templates and context.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

ConfigOption = Annotated[
    str,
    typer.Option(
        "--config",
        "-c",
        help="Config file path (default ~/.config/prompter/config.toml).",
        metavar="PATH",
    ),
]
YesOption = Annotated[
    bool,
    typer.Option("--yes", "-y", help="Non-interactive: use defaults without prompts."),
]
InteractiveOption = Annotated[
    bool,
    typer.Option("--interactive", "-i", help="Force interactive mode."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", help="Enable verbose logging."),
]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(levelname)s] %(message)s",
    )


def _fail(err: PrompterError) -> NoReturn:
    typer.echo(f"Error: {format_error(err)}", err=True)
    raise typer.Exit(code=1)


def _split_refs(values: Sequence[str]) -> tuple[str, ...]:
    refs: list[str] = []
    for value in values:
        refs.extend(part.strip() for part in value.split(",") if part.strip())
    return tuple(refs)


@app.command()
def generate(
    base_prompt: Annotated[
        str, typer.Argument(help="Base prompt text.", show_default=False)
    ] = "",
    pre: Annotated[str, typer.Option("--pre", "-p", help="Pre-template name.")] = "",
    post: Annotated[str, typer.Option("--post", "-o", help="Post-template name.")] = "",
    files: Annotated[
        list[str] | None,
        typer.Option("--file", help="File to reference. Repeatable or comma-separated."),
    ] = None,
    directory: Annotated[
        bool, typer.Option("--directory", "-d", help="Reference the current directory.")
    ] = False,
    target: Annotated[
        str,
        typer.Option(
            "--target", "-t", help="Output target: clipboard, stdout or file:/path."
        ),
    ] = "",
    editor: Annotated[
        str | None,
        typer.Option("--editor", "-e", help="Open the prompt in this editor afterwards."),
    ] = None,
    fix: Annotated[
        bool, typer.Option("--fix", "-f", help="Fix mode: embed a failing command's output.")
    ] = False,
    fix_file: Annotated[
        str, typer.Option("--fix-file", help="File holding captured command output.")
    ] = "",
    numbers: Annotated[
        bool, typer.Option("--numbers", "-n", help="Select options with number keys.")
    ] = False,
    clipboard: Annotated[
        bool,
        typer.Option(
            "--clipboard",
            "-b",
            help="Append clipboard content to the prompt (or use it as the prompt).",
        ),
    ] = False,
    templates_root: Annotated[
        str,
        typer.Option("--templates-root", help="Override the templates root directory."),
    ] = "",
    config: ConfigOption = "",
    yes: YesOption = False,
    interactive: InteractiveOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Assemble a prompt and send it to the configured target."""
    _configure_logging(verbose)
    context = ExecutionContext.from_process()
    request = PromptRequest(
        base_prompt=base_prompt.strip(),
        pre_template=pre,
        post_template=post,
        file_refs=_split_refs(files or ()),
        directory_ref=str(context.cwd) if directory else "",
        fix_mode=fix,
        fix_file=fix_file,
        target=target,
        editor=editor or "",
        editor_requested=editor is not None,
        force_interactive=interactive,
        force_non_interactive=yes,
        number_select=numbers,
        from_clipboard=clipboard,
        config_path=config,
    )
    orchestrator = Orchestrator(
        context=context, config_overrides={"templates_root": templates_root}
    )
    try:
        orchestrator.run(request)
    except PrompterError as e:
        _fail(e)


@app.command("list")
def list_command(config: ConfigOption = "", verbose: VerboseOption = False) -> None:
    """List available pre and post templates."""
    _configure_logging(verbose)
    context = ExecutionContext.from_process()
    try:
        cfg = Orchestrator(context=context).load_configuration(config)
        listing = list_templates(cfg, context=context)
    except PrompterError as e:
        _fail(e)
    typer.echo(listing.render(context))


@app.command()
def add(
    content: Annotated[
        str, typer.Argument(help="Template content.", show_default=False)
    ] = "",
    pre: Annotated[
        str, typer.Option("--pre", "-p", help="Create a pre-template with this name.")
    ] = "",
    post: Annotated[
        str, typer.Option("--post", "-o", help="Create a post-template with this name.")
    ] = "",
    clipboard: Annotated[
        bool, typer.Option("--clipboard", "-b", help="Use clipboard content.")
    ] = False,
    overwrite: Annotated[
        bool, typer.Option("--overwrite", help="Replace an existing template.")
    ] = False,
    config: ConfigOption = "",
    yes: YesOption = False,
    interactive: InteractiveOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Add a new template to the templates root."""
    _configure_logging(verbose)
    context = ExecutionContext.from_process()
    orchestrator = Orchestrator(context=context)
    try:
        cfg = orchestrator.load_configuration(config)
        is_interactive = resolve_interactive_mode(
            PromptRequest(force_interactive=interactive, force_non_interactive=yes), cfg
        ).interactive
        prompter = orchestrator.prompter

        picked = template_kind(pre, post)
        if picked is None or interactive:
            if not is_interactive:
                raise ValidationError(
                    "must specify either --pre or --post in non-interactive mode",
                    hint="Example: prompter add --pre review 'Review this change.'",
                )
            kind = prompter.select("Template type:", list(TEMPLATE_KINDS))
            name = prompter.ask("Template name")
        else:
            kind, name = picked

        if clipboard:
            text = orchestrator.output_handler.read_clipboard().strip()
            if not text:
                raise ContentCollectionError(
                    "clipboard is empty", hint="Copy the template text first."
                )
        elif content:
            text = content
        elif is_interactive:
            text = prompter.ask("Template content")
        else:
            raise ValidationError(
                "must provide content as an argument or use --clipboard in "
                "non-interactive mode",
                hint="Example: prompter add --post tests 'Add tests.' --yes",
            )

        existing = cfg.templates_root / kind / f"{name.strip()}.md"
        if existing.exists() and not overwrite and is_interactive:
            if not prompter.confirm(
                f"Template {contract_path(existing, context)} exists. Overwrite?",
                default=False,
            ):
                context.status("Template creation cancelled.")
                return
            overwrite = True

        path = add_template(cfg, kind, name, text, overwrite=overwrite)
    except PrompterError as e:
        _fail(e)
    context.status(f"Created {kind} template: {contract_path(path, context)}")


@app.command("config")
def config_command(config: ConfigOption = "", verbose: VerboseOption = False) -> None:
    """Show resolved configuration values and where each came from."""
    _configure_logging(verbose)
    context = ExecutionContext.from_process()
    try:
        cfg, sources = resolve_config(path=config or None, context=context, explain=True)
    except PrompterError as e:
        _fail(e)
    typer.echo(f"Config file: {get_config_path(context, config or None)}")
    for line in audit_lines(cfg, sources):
        typer.echo(f"  {line}")


@app.command()
def version() -> None:
    """Print version information."""
    typer.echo(f"prompter version {__version__}")
    typer.echo(f"  python: {platform.python_version()}")
    typer.echo(f"  platform: {sys.platform}/{platform.machine()}")


COMMANDS = ("generate", "list", "add", "config", "version")
_PASSTHROUGH = ("--help", "-h", "--version", "-v")
# Options whose value is the following token.
_VALUE_OPTIONS = frozenset(
    {
        "--config", "-c", "--pre", "-p", "--post", "-o", "--file", "--target", "-t",
        "--editor", "-e", "--fix-file", "--templates-root",
    }
)


def _command_index(args: Sequence[str]) -> int | None:
    """Position of the first positional token, skipping options and their values."""
    i = 0
    while i < len(args):
        token = args[i]
        if token == "--":
            return None
        if not token.startswith("-") or token == "-":
            return i
        i += 2 if token in _VALUE_OPTIONS else 1
    return None


def with_default_command(args: Sequence[str]) -> list[str]:
    """Route bare invocations (``prompter "text" -p review``) to ``generate``.

    Options given before a subcommand (``prompter --config x list``) are moved
    after it.
    """
    args = list(args)
    if args and args[0] in _PASSTHROUGH:
        return args
    index = _command_index(args)
    if index is not None and args[index] in COMMANDS:
        return [args[index], *args[:index], *args[index + 1 :]]
    return ["generate", *args]


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for the CLI."""
    args = with_default_command(sys.argv[1:] if argv is None else argv)
    if args in (["--version"], ["-v"]):
        args = ["version"]
    app(args=args, prog_name="prompter")


if __name__ == "__main__":
    main()
