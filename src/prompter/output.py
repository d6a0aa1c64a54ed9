"""Output sinks: clipboard, stdout, file and editor.

The dispatcher writes the assembled prompt to its primary target and,
when asked, opens it in an editor afterwards. A clipboard failure degrades
to stdout with a warning; every other failure is fatal.
"""

from __future__ import annotations

from contextlib import suppress
import logging
import os
from pathlib import Path
import shlex
import shutil
import subprocess
import tempfile
from typing import TYPE_CHECKING, Protocol

import pyperclip

from prompter.config.utils import parse_target
from prompter.errors import (
    ContentCollectionError,
    OutputError,
    ValidationError,
    is_recoverable,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from prompter.config import Config
    from prompter.context import ExecutionContext

logger = logging.getLogger(__name__)

FALLBACK_EDITORS = ("nvim", "vim", "vi", "nano")
LAST_RESORT_EDITOR = "vi"


def atomic_write_text(path: Path, text: str, mode: int = 0o644) -> None:
    """Write text to a file atomically using a temporary sibling file.

    Parent directories are created as needed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
        os.chmod(path, mode)
    finally:
        if os.path.exists(tmp_name):
            with suppress(OSError):
                os.remove(tmp_name)


def resolve_editor(
    explicit: str | None,
    *,
    env: Mapping[str, str],
    configured: str | None = None,
    which: Callable[[str], str | None] = shutil.which,
) -> str:
    """Pick the editor command.

    Precedence: explicit > ``$VISUAL`` > ``$EDITOR`` > configured editor >
    first of nvim, vim, vi, nano found on PATH > vi.
    """
    for candidate in (explicit, env.get("VISUAL"), env.get("EDITOR"), configured):
        if candidate and candidate.strip():
            return candidate.strip()
    for name in FALLBACK_EDITORS:
        if which(name):
            return name
    return LAST_RESORT_EDITOR


class OutputHandler(Protocol):
    """Side-effecting sink operations; every failure is an ``OutputError``."""

    def write_clipboard(self, text: str) -> None: ...

    def read_clipboard(self) -> str: ...

    def write_stdout(self, text: str) -> None: ...

    def write_file(self, text: str, path: Path) -> None: ...

    def open_in_editor(self, text: str, editor: str) -> None: ...


class SystemOutputHandler:
    """Real sinks backed by pyperclip, the context streams and subprocesses."""

    def __init__(self, context: ExecutionContext) -> None:
        self.context = context

    def write_clipboard(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise OutputError("clipboard", detail=str(e), cause=e) from e

    def read_clipboard(self) -> str:
        try:
            return pyperclip.paste() or ""
        except pyperclip.PyperclipException as e:
            raise ContentCollectionError(
                f"failed to read from clipboard: {e}",
                hint=(
                    "Clipboard access failed. Ensure a clipboard tool is installed "
                    "(xclip, xsel or wl-clipboard on Linux), or pass the prompt as an "
                    "argument instead."
                ),
                cause=e,
            ) from e

    def write_stdout(self, text: str) -> None:
        try:
            self.context.stdout.write(f"{text}\n")
            self.context.stdout.flush()
        except OSError as e:
            raise OutputError("stdout", detail=str(e), cause=e) from e

    def write_file(self, text: str, path: Path) -> None:
        try:
            atomic_write_text(path, text)
        except OSError as e:
            raise OutputError(
                f"file:{path}", detail=e.strerror or str(e), cause=e
            ) from e

    def open_in_editor(self, text: str, editor: str) -> None:
        try:
            argv = shlex.split(editor)
        except ValueError as e:
            raise OutputError("editor", detail=f"cannot parse editor command: {e}", cause=e) from e
        if not argv:
            raise OutputError("editor", detail="editor command is empty")

        try:
            with tempfile.NamedTemporaryFile(
                "w", prefix="prompter-", suffix=".md", delete=False, encoding="utf-8"
            ) as tmp:
                tmp.write(text)
                tmp_path = Path(tmp.name)
        except OSError as e:
            raise OutputError(
                "editor", detail=f"failed to create temporary file: {e}", cause=e
            ) from e

        try:
            logger.debug("Launching editor %s on %s", argv, tmp_path)
            proc = subprocess.run(
                [*argv, str(tmp_path)],
                cwd=self.context.cwd,
                env=dict(self.context.env),
                check=False,
            )
        except OSError as e:
            raise OutputError(
                "editor", detail=f"failed to launch editor {argv[0]}: {e}", cause=e
            ) from e
        finally:
            with suppress(OSError):
                tmp_path.unlink()
        if proc.returncode != 0:
            raise OutputError(
                "editor", detail=f"editor {argv[0]} exited with status {proc.returncode}"
            )


class OutputDispatcher:
    """Route a finished prompt to its target, then to an editor if requested."""

    def __init__(self, handler: OutputHandler, *, context: ExecutionContext) -> None:
        self.handler = handler
        self.context = context

    def dispatch(
        self,
        text: str,
        target: str,
        *,
        editor_requested: bool = False,
        editor: str = "",
        config: Config | None = None,
    ) -> None:
        """Deliver ``text`` to ``target``.

        Raises:
            ValidationError: For an unsupported target; nothing is written.
            OutputError: When stdout, file or editor output fails.
        """
        parsed = parse_target(target)
        if parsed is None:
            raise ValidationError(
                f"invalid target: {target} (must be 'clipboard', 'stdout', or 'file:/path')",
                hint="Use --target clipboard, --target stdout or --target file:/path/to/prompt.md.",
            )

        if parsed.kind == "clipboard":
            self._to_clipboard(text)
        elif parsed.kind == "stdout":
            self.handler.write_stdout(text)
        elif parsed.path:
            self.handler.write_file(text, self.context.absolute(parsed.path))
            self.context.status(f"Prompt written to {parsed.path}")

        if editor_requested:
            command = resolve_editor(
                editor,
                env=self.context.env,
                configured=config.editor if config else None,
            )
            self.handler.open_in_editor(text, command)

    def _to_clipboard(self, text: str) -> None:
        try:
            self.handler.write_clipboard(text)
        except OutputError as e:
            if not is_recoverable(e):
                raise
            self.context.warn(e.message)
            self.context.status("Falling back to stdout:\n")
            self.handler.write_stdout(text)
            return
        self.context.status("Prompt copied to clipboard")
