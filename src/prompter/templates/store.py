"""Template discovery across templates roots.

A templates root holds ``pre/`` and ``post/`` directories of ``.md`` or
``.tmpl`` files. Names match file stems case-insensitively, and a
``.default`` token in the stem marks the template preselected for its kind
(``review.default.md`` is found as ``review``).
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Literal, Protocol

from prompter.errors import TemplateInvalidError, TemplateNotFoundError

from .renderer import parse_template

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from jinja2 import Template

    from prompter.context import ExecutionContext

logger = logging.getLogger(__name__)

TemplateKind = Literal["pre", "post"]
TEMPLATE_KINDS: tuple[TemplateKind, ...] = ("pre", "post")
TEMPLATE_SUFFIXES = (".md", ".tmpl")
DEFAULT_MARKER = "default"


@dataclass(frozen=True)
class TemplateHandle:
    """A parsed template bound to its source file."""

    name: str
    path: Path
    template: Template


@dataclass(frozen=True)
class TemplateInfo:
    """Listing entry for one discovered template file."""

    name: str
    kind: TemplateKind
    path: Path
    is_default: bool
    root: Path


class TemplateStore(Protocol):
    """Capability set the assembler needs from a template source."""

    def discover(self, name: str, kind: TemplateKind | None = None) -> Path: ...

    def load(
        self, name_or_path: str, kind: TemplateKind | None = None
    ) -> TemplateHandle: ...

    def list_templates(self, kind: TemplateKind) -> list[TemplateInfo]: ...


# --- Name handling ---


def _stem_tokens(stem: str) -> list[str]:
    return stem.split(".")


def is_default_stem(stem: str) -> bool:
    """Return True when the stem carries the default marker."""
    tokens = _stem_tokens(stem)
    return len(tokens) > 1 and any(t.lower() == DEFAULT_MARKER for t in tokens)


def strip_default_marker(stem: str) -> str:
    """Remove the default marker token from a file stem.

    ``foo.default.bar`` becomes ``foo.bar`` and ``name.default`` becomes
    ``name``; a bare ``default`` stem is returned unchanged.
    """
    if not is_default_stem(stem):
        return stem
    kept = [t for t in _stem_tokens(stem) if t.lower() != DEFAULT_MARKER]
    return ".".join(kept) if kept else stem


def is_template_file(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() in TEMPLATE_SUFFIXES


def looks_like_path(name: str) -> bool:
    """Names with a path separator, or absolute paths, bypass discovery."""
    return os.sep in name or "/" in name or Path(name).is_absolute()


# --- Filesystem store ---


class FileSystemTemplateStore:
    """Discover and load templates from one or more roots.

    Roots are searched in order, so listing the local root first lets it
    shadow templates of the same name in the global root.
    """

    def __init__(self, roots: Sequence[Path], *, context: ExecutionContext) -> None:
        self._roots = tuple(roots)
        self._context = context

    @property
    def roots(self) -> tuple[Path, ...]:
        return self._roots

    def _kind_dirs(self, kind: TemplateKind | None) -> Iterator[tuple[Path, TemplateKind, Path]]:
        kinds = (kind,) if kind else TEMPLATE_KINDS
        for root in self._roots:
            for k in kinds:
                directory = root / k
                if directory.is_dir():
                    yield root, k, directory

    @staticmethod
    def _entries(directory: Path) -> list[Path]:
        try:
            children = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            logger.debug("Skipping unreadable template directory %s: %s", directory, e)
            return []
        return [p for p in children if is_template_file(p)]

    def discover(self, name: str, kind: TemplateKind | None = None) -> Path:
        """Return the first file matching ``name``.

        Raises:
            TemplateNotFoundError: When no root holds a matching file.
        """
        if looks_like_path(name):
            path = self._context.absolute(name)
            if path.is_file():
                return path
            raise TemplateNotFoundError(
                name,
                hint=f"No template file at {path}. Check the path and try again.",
            )

        needle = name.strip().lower()
        for _root, _kind, directory in self._kind_dirs(kind):
            entries = self._entries(directory)
            for entry in entries:
                if entry.stem.lower() == needle:
                    return entry
            for entry in entries:
                if strip_default_marker(entry.stem).lower() == needle:
                    return entry
        raise TemplateNotFoundError(
            name, roots=tuple(str(r) for r in self._roots)
        )

    def load(
        self, name_or_path: str, kind: TemplateKind | None = None
    ) -> TemplateHandle:
        """Discover, read and parse a template.

        Raises:
            TemplateNotFoundError: When discovery fails.
            TemplateInvalidError: When the file is unreadable or does not parse.
        """
        path = self.discover(name_or_path, kind)
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise TemplateInvalidError(
                name_or_path, f"failed to read template file {path}: {e}", cause=e
            ) from e
        return TemplateHandle(
            name=name_or_path,
            path=path,
            template=parse_template(source, name=name_or_path),
        )

    def list_templates(self, kind: TemplateKind) -> list[TemplateInfo]:
        """List templates of one kind; the first root wins for duplicate names.

        Defaults come first, then the rest, each group sorted by name.
        """
        seen: set[str] = set()
        found: list[TemplateInfo] = []
        for root, k, directory in self._kind_dirs(kind):
            for entry in self._entries(directory):
                display = strip_default_marker(entry.stem)
                if display.lower() in seen:
                    continue
                seen.add(display.lower())
                found.append(
                    TemplateInfo(
                        name=display,
                        kind=k,
                        path=entry,
                        is_default=is_default_stem(entry.stem),
                        root=root,
                    )
                )
        return sorted(found, key=lambda t: (not t.is_default, t.name.lower()))


def load_optional(path: Path, *, name: str) -> TemplateHandle | None:
    """Parse the template at ``path`` if the file exists, else return None."""
    if not path.is_file():
        return None
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateInvalidError(
            name, f"failed to read template file {path}: {e}", cause=e
        ) from e
    return TemplateHandle(name=name, path=path, template=parse_template(source, name=name))
