"""Fix-mode capture: obtain a failing command and its output.

Two strategies sit behind one contract. An explicit fix file is read
verbatim. Without one, the last command is located in the shell history and
re-run to capture its combined output. History parsing is best effort: it
only sees what the shell has flushed to disk, and it cannot tell whether the
last command actually failed.
"""

from __future__ import annotations

import logging
import re
import subprocess
from typing import TYPE_CHECKING, Protocol

from prompter.errors import FixModeError
from prompter.templates.renderer import FixInfo

if TYPE_CHECKING:
    from pathlib import Path

    from prompter.context import ExecutionContext
    from prompter.interactive import Prompter

logger = logging.getLogger(__name__)

HISTORY_FILES = (".zsh_history", ".bash_history")
DEFAULT_FIX_FILE_HINT = "/tmp/prompter-fix.txt"

# zsh EXTENDED_HISTORY lines look like ": 1700000000:0;make test"
_ZSH_PREFIX = re.compile(r"^:\s*\d+:\d+;")
_SELF_INVOCATION = re.compile(r"(^|[\s/;|&])prompter(\s|$)")


def capture_hint(fix_file: str | Path | None = None) -> str:
    """Remedial command for piping output into a fix file."""
    target = fix_file or DEFAULT_FIX_FILE_HINT
    return (
        f"Capture the output explicitly: <command> 2>&1 | tee {target} && "
        f"prompter --fix --fix-file {target} --yes"
    )


class CaptureStrategy(Protocol):
    """One way of producing fix-mode content."""

    def capture(self) -> str: ...


# --- Explicit fix file ---


class FixFileCapture:
    """Read captured output from a file the user prepared."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def capture(self) -> str:
        try:
            content = self.path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError as e:
            raise FixModeError(
                f"fix file not found: {self.path}",
                hint=capture_hint(self.path),
                cause=e,
            ) from e
        except OSError as e:
            raise FixModeError(
                f"failed to read fix file {self.path}: {e.strerror or e}",
                hint=f"Check the permissions of {self.path}.",
                cause=e,
            ) from e
        content = content.strip()
        if not content:
            raise FixModeError(
                f"fix file is empty: {self.path}",
                hint=capture_hint(self.path),
            )
        return content


# --- Shell history ---


def _clean_history_line(line: str) -> str:
    return _ZSH_PREFIX.sub("", line.strip(), count=1).strip()


def _is_candidate(line: str) -> bool:
    return bool(line) and not line.startswith("#") and not _SELF_INVOCATION.search(line)


def last_command_in(lines: list[str]) -> str | None:
    """Return the most recent usable command from history lines."""
    for raw in reversed(lines):
        line = _clean_history_line(raw)
        if _is_candidate(line):
            return line
    return None


def locate_last_command(context: ExecutionContext, *, hint: str | None = None) -> str:
    """Find the last command in ``~/.zsh_history`` or ``~/.bash_history``.

    The first history file that exists is used.

    Raises:
        FixModeError: When no history exists or no usable command is found.
    """
    hint = hint or capture_hint()
    for name in HISTORY_FILES:
        path = context.home / name
        if not path.is_file():
            continue
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise FixModeError(
                f"failed to read shell history {path}: {e.strerror or e}",
                hint=hint,
                cause=e,
            ) from e
        command = last_command_in(text.splitlines())
        if command is None:
            raise FixModeError(
                "no suitable command found in shell history", hint=hint
            )
        logger.debug("Last command from %s: %s", path, command)
        return command
    raise FixModeError("no shell history found", hint=hint)


def run_command(
    command: str,
    *,
    context: ExecutionContext,
    timeout_seconds: float = 0,
    hint: str | None = None,
) -> str:
    """Run ``command`` with ``sh -c`` and return ``"$ <command>\\n\\n<output>"``.

    Stdout and stderr are captured together. A non-zero exit status is
    expected (the command is being fixed) and is not an error.

    Raises:
        FixModeError: When the shell cannot start or the timeout expires.
    """
    hint = hint or capture_hint()
    try:
        proc = subprocess.run(
            ["sh", "-c", command],
            cwd=context.cwd,
            env=dict(context.env),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            timeout=timeout_seconds or None,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise FixModeError(
            f"command timed out after {timeout_seconds:g}s: {command}",
            hint=f"Raise fix_timeout_seconds (0 disables the limit). {hint}",
            cause=e,
        ) from e
    except OSError as e:
        raise FixModeError(
            f"failed to run command: {e.strerror or e}",
            hint=hint,
            cause=e,
        ) from e
    logger.debug("Command exited with status %s", proc.returncode)
    output = proc.stdout.decode("utf-8", errors="replace")
    return f"$ {command}\n\n{output}".strip()


class ShellHistoryCapture:
    """Re-run the last shell command, confirming first when interactive."""

    def __init__(
        self,
        *,
        context: ExecutionContext,
        prompter: Prompter | None = None,
        interactive: bool = False,
        number_select: bool = False,
        timeout_seconds: float = 0,
        hint: str | None = None,
    ) -> None:
        self.context = context
        self.prompter = prompter
        self.interactive = interactive
        self.number_select = number_select
        self.timeout_seconds = timeout_seconds
        self.hint = hint or capture_hint()

    def capture(self) -> str:
        command = locate_last_command(self.context, hint=self.hint)
        if self.interactive and self.prompter is not None:
            confirmed = self.prompter.confirm(
                f"Re-run last command to capture output?\n  $ {command}",
                default=True,
                number_select=self.number_select,
            )
            if not confirmed:
                raise FixModeError("user declined to re-run command", hint=self.hint)
        else:
            self.context.status(f"Re-running last command: {command}")
        return run_command(
            command,
            context=self.context,
            timeout_seconds=self.timeout_seconds,
            hint=self.hint,
        )


# --- Captor ---


class FixCaptor:
    """Choose and run the capture strategy for a fix-mode request."""

    def __init__(
        self,
        *,
        context: ExecutionContext,
        prompter: Prompter | None = None,
        timeout_seconds: float = 0,
        hint_file: str | Path | None = None,
    ) -> None:
        self.context = context
        self.prompter = prompter
        self.timeout_seconds = timeout_seconds
        self.hint = capture_hint(hint_file)

    def strategy_for(
        self, fix_file: str | None, *, interactive: bool, number_select: bool = False
    ) -> CaptureStrategy:
        if fix_file:
            return FixFileCapture(self.context.absolute(fix_file))
        return ShellHistoryCapture(
            context=self.context,
            prompter=self.prompter,
            interactive=interactive,
            number_select=number_select,
            timeout_seconds=self.timeout_seconds,
            hint=self.hint,
        )

    def capture(
        self,
        fix_file: str | None = None,
        *,
        interactive: bool,
        number_select: bool = False,
    ) -> str:
        """Return the captured ``$ command`` plus output text.

        Raises:
            FixModeError: When nothing usable can be captured.
            SelectionCancelledError: When the confirmation prompt is aborted.
        """
        strategy = self.strategy_for(
            fix_file, interactive=interactive, number_select=number_select
        )
        logger.debug("Fix capture via %s", type(strategy).__name__)
        return strategy.capture()


def parse_fix_content(raw: str) -> FixInfo:
    """Split captured text into the command line and its output."""
    first, _, rest = raw.partition("\n")
    command = first.strip()
    if command.startswith("$ "):
        command = command[2:]
    return FixInfo(enabled=True, raw=raw, command=command, output=rest.strip())
