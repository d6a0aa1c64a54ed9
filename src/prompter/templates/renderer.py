"""Template parsing and rendering.

Templates are Jinja2 sources rendered with ``StrictUndefined``: referencing
a name that is not in scope is an error, never an empty string.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import logging
import subprocess
from typing import TYPE_CHECKING, Any

from jinja2 import Environment, StrictUndefined, TemplateSyntaxError

from prompter.errors import PrompterError, TemplateInvalidError

from .helpers import template_globals

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from jinja2 import Template

    from prompter.context import ExecutionContext

    from .store import TemplateHandle

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 5


@dataclass(frozen=True)
class GitInfo:
    """Repository snapshot; all fields empty outside a git work tree."""

    root: str = ""
    branch: str = ""
    commit: str = ""
    dirty: bool = False


@dataclass(frozen=True)
class FixInfo:
    """Fix-mode payload exposed to templates."""

    enabled: bool = False
    raw: str = ""
    command: str = ""
    output: str = ""


@dataclass(frozen=True)
class FileRef:
    """A referenced file, recorded by path only."""

    path: str
    rel_path: str


@dataclass(frozen=True)
class TemplateData:
    """Names in scope while a template renders."""

    prompt: str = ""
    now: datetime = field(default_factory=datetime.now)
    cwd: str = ""
    files: tuple[FileRef, ...] = ()
    git: GitInfo = field(default_factory=GitInfo)
    config: Mapping[str, Any] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)
    fix: FixInfo = field(default_factory=FixInfo)

    def namespace(self) -> dict[str, Any]:
        return {
            "prompt": self.prompt,
            "now": self.now,
            "cwd": self.cwd,
            "files": list(self.files),
            "git": self.git,
            "config": dict(self.config),
            "env": dict(self.env),
            "fix": self.fix,
        }


def _environment() -> Environment:
    env = Environment(
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
    )
    env.globals.update(template_globals())
    return env


def parse_template(source: str, *, name: str) -> Template:
    """Compile template source, mapping syntax errors to ``TemplateInvalidError``."""
    try:
        return _environment().from_string(source)
    except TemplateSyntaxError as e:
        raise TemplateInvalidError(
            name, f"line {e.lineno}: {e.message}", cause=e
        ) from e


def render(handle: TemplateHandle, data: TemplateData) -> str:
    """Render a parsed template; trailing whitespace is removed.

    Raises:
        TemplateInvalidError: On any runtime failure inside the template,
            including undefined names and helper misuse.
    """
    logger.debug("Rendering template %s (%s)", handle.name, handle.path)
    try:
        text = handle.template.render(**data.namespace())
    except PrompterError:
        raise
    except Exception as e:
        raise TemplateInvalidError(handle.name, str(e), cause=e) from e
    return text.rstrip()


# --- Template data ---


def file_refs(paths: Sequence[str], context: ExecutionContext) -> tuple[FileRef, ...]:
    return tuple(FileRef(path=str(context.absolute(p)), rel_path=p) for p in paths)


def _git(context: ExecutionContext, *args: str) -> str | None:
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=context.cwd,
            env=dict(context.env),
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("git %s failed: %s", " ".join(args), e)
        return None
    if proc.returncode != 0:
        return None
    return proc.stdout.strip()


def collect_git_info(context: ExecutionContext, strategy: str) -> GitInfo:
    """Best-effort repository snapshot for the ``git`` directory strategy.

    Any failure, including a missing ``git`` binary, yields an empty
    snapshot.
    """
    if strategy != "git":
        return GitInfo()
    root = _git(context, "rev-parse", "--show-toplevel")
    if not root:
        return GitInfo()
    status = _git(context, "status", "--porcelain")
    return GitInfo(
        root=root,
        branch=_git(context, "rev-parse", "--abbrev-ref", "HEAD") or "",
        commit=_git(context, "rev-parse", "--short", "HEAD") or "",
        dirty=bool(status),
    )


def build_template_data(
    *,
    context: ExecutionContext,
    prompt: str,
    file_paths: Sequence[str],
    config: Mapping[str, Any],
    directory_strategy: str,
    fix: FixInfo | None = None,
) -> TemplateData:
    """Assemble a fresh ``TemplateData`` from the context and request values."""
    return TemplateData(
        prompt=prompt,
        now=context.clock(),
        cwd=str(context.cwd),
        files=file_refs(file_paths, context),
        git=collect_git_info(context, directory_strategy),
        config=config,
        env=context.env,
        fix=fix or FixInfo(),
    )

