"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: in-memory stand-ins for the template
store, the output sinks and the interactive prompter, plus a config builder.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from prompter.config import Config
from prompter.errors import OutputError, SelectionCancelledError, TemplateNotFoundError
from prompter.templates.renderer import parse_template
from prompter.templates.store import (
    TemplateHandle,
    TemplateInfo,
    is_default_stem,
    strip_default_marker,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from prompter.templates.store import TemplateKind

FIXED_NOW = datetime(2024, 5, 17, 9, 30, 0)


def make_config(root: Path, **overrides: Any) -> Config:
    """Build a Config directly, bypassing file and env resolution."""
    values: dict[str, Any] = {
        "templates_root": root,
        "local_templates_root": None,
        "editor": "nvim",
        "default_pre": "",
        "default_post": "",
        "fix_file": Path("/tmp/prompter-fix.txt"),
        "directory_strategy": "filesystem",
        "target": "stdout",
        "interactive_default": False,
        "fix_timeout_seconds": 30.0,
    }
    values.update(overrides)
    return Config(**values)


def write_template(root: Path, kind: str, filename: str, body: str) -> Path:
    path = root / kind / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body, encoding="utf-8")
    return path


@dataclass
class InMemoryTemplateStore:
    """TemplateStore double keyed by ``(kind, file stem)``."""

    sources: dict[tuple[str, str], str] = field(default_factory=dict)
    loads: list[str] = field(default_factory=list)

    def _match(self, name: str, kind: TemplateKind | None) -> tuple[str, str]:
        needle = name.lower()
        for k, stem in sorted(self.sources):
            if kind and k != kind:
                continue
            if needle in (stem.lower(), strip_default_marker(stem).lower()):
                return k, stem
        raise TemplateNotFoundError(name)

    def discover(self, name: str, kind: TemplateKind | None = None) -> Path:
        k, stem = self._match(name, kind)
        return Path("/memory") / k / f"{stem}.md"

    def load(self, name_or_path: str, kind: TemplateKind | None = None) -> TemplateHandle:
        self.loads.append(name_or_path)
        k, stem = self._match(name_or_path, kind)
        return TemplateHandle(
            name=name_or_path,
            path=Path("/memory") / k / f"{stem}.md",
            template=parse_template(self.sources[(k, stem)], name=name_or_path),
        )

    def list_templates(self, kind: TemplateKind) -> list[TemplateInfo]:
        infos = [
            TemplateInfo(
                name=strip_default_marker(stem),
                kind=kind,
                path=Path("/memory") / k / f"{stem}.md",
                is_default=is_default_stem(stem),
                root=Path("/memory"),
            )
            for k, stem in sorted(self.sources)
            if k == kind
        ]
        return sorted(infos, key=lambda t: (not t.is_default, t.name.lower()))


@dataclass
class RecordingOutputHandler:
    """OutputHandler double that records every write."""

    clipboard_text: str = ""
    fail_clipboard: bool = False
    fail_stdout: bool = False
    clipboard: list[str] = field(default_factory=list)
    stdout: list[str] = field(default_factory=list)
    files: dict[Path, str] = field(default_factory=dict)
    editor_calls: list[tuple[str, str]] = field(default_factory=list)

    def write_clipboard(self, text: str) -> None:
        if self.fail_clipboard:
            raise OutputError("clipboard", detail="no clipboard mechanism")
        self.clipboard.append(text)

    def read_clipboard(self) -> str:
        return self.clipboard_text

    def write_stdout(self, text: str) -> None:
        if self.fail_stdout:
            raise OutputError("stdout", detail="broken pipe")
        self.stdout.append(text)

    def write_file(self, text: str, path: Path) -> None:
        self.files[path] = text

    def open_in_editor(self, text: str, editor: str) -> None:
        self.editor_calls.append((editor, text))

    @property
    def writes(self) -> int:
        return len(self.clipboard) + len(self.stdout) + len(self.files)


@dataclass
class ScriptedPrompter:
    """Prompter double answering from a script; a ``None`` entry cancels."""

    script: list[Any] = field(default_factory=list)
    calls: list[tuple[str, str]] = field(default_factory=list)
    options_seen: list[list[str]] = field(default_factory=list)

    def _next(self, method: str, message: str) -> Any:
        self.calls.append((method, message))
        if not self.script:
            raise AssertionError(f"unexpected {method} prompt: {message}")
        answer = self.script.pop(0)
        if answer is None:
            raise SelectionCancelledError()
        return answer

    def confirm(self, message: str, *, default: bool, number_select: bool = False) -> bool:
        return bool(self._next("confirm", message))

    def select(
        self, message: str, options: Sequence[str], *, number_select: bool = False
    ) -> str:
        self.options_seen.append(list(options))
        return str(self._next("select", message))

    def ask(self, message: str) -> str:
        return str(self._next("ask", message))
