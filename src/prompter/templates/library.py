"""Template library management: listing and adding templates."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING

from prompter.errors import ValidationError
from prompter.output import atomic_write_text

from .store import TEMPLATE_KINDS, FileSystemTemplateStore

if TYPE_CHECKING:
    from pathlib import Path

    from prompter.config import Config
    from prompter.context import ExecutionContext

    from .store import TemplateInfo, TemplateKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemplateListing:
    """Templates visible from the configured roots."""

    roots: tuple[Path, ...]
    local_root: Path | None
    by_kind: dict[str, list[TemplateInfo]]

    def render(self, context: ExecutionContext) -> str:
        lines = ["Template roots:"]
        for root in self.roots:
            marker = " (local)" if root == self.local_root and len(self.roots) > 1 else ""
            lines.append(f"  - {contract_path(root, context)}{marker}")
        for kind in TEMPLATE_KINDS:
            infos = self.by_kind.get(kind, [])
            title = f"{kind.capitalize()}-templates"
            lines.append("")
            if not infos:
                lines.append(f"{title}: (none found)")
                continue
            lines.append(f"{title}:")
            for info in infos:
                tags = []
                if info.is_default:
                    tags.append("default")
                if info.root == self.local_root and len(self.roots) > 1:
                    tags.append("local")
                suffix = f" ({', '.join(tags)})" if tags else ""
                lines.append(f"  - {info.name}{suffix}")
        return "\n".join(lines)


def contract_path(path: Path, context: ExecutionContext) -> str:
    """Display ``path`` with the home directory shortened to ``~``."""
    try:
        rel = path.relative_to(context.home)
    except ValueError:
        return str(path)
    return "~" if str(rel) == "." else f"~/{rel}"


def list_templates(config: Config, *, context: ExecutionContext) -> TemplateListing:
    """Collect the templates of every kind across the configured roots."""
    store = FileSystemTemplateStore(config.template_roots, context=context)
    return TemplateListing(
        roots=config.template_roots,
        local_root=config.local_templates_root,
        by_kind={kind: store.list_templates(kind) for kind in TEMPLATE_KINDS},
    )


def add_template(
    config: Config,
    kind: str,
    name: str,
    content: str,
    *,
    overwrite: bool = False,
) -> Path:
    """Write ``<templates_root>/<kind>/<name>.md`` and return its path.

    Raises:
        ValidationError: For an unknown kind, a bad name, empty content, or
            an existing file when ``overwrite`` is not set.
    """
    if kind not in TEMPLATE_KINDS:
        raise ValidationError(
            f"invalid template kind: {kind} (must be 'pre' or 'post')",
            hint="Use --pre NAME or --post NAME.",
        )
    name = name.strip()
    if not name or "/" in name or "\\" in name or name.startswith("."):
        raise ValidationError(
            f"invalid template name: {name!r}",
            hint="Template names are plain file stems such as 'review' or 'tests.default'.",
        )
    if not content.strip():
        raise ValidationError(
            "template content is empty",
            hint="Pass the content as an argument or use --clipboard.",
        )

    path = config.templates_root / kind / f"{name}.md"
    if path.exists() and not overwrite:
        raise ValidationError(
            f"template file already exists: {path}",
            hint="Pass --overwrite to replace it.",
        )
    atomic_write_text(path, content)
    logger.info("Created %s template %s", kind, path)
    return path


def template_kind(pre: str | None, post: str | None) -> tuple[TemplateKind, str] | None:
    """Map mutually exclusive --pre/--post names to ``(kind, name)``."""
    if pre and post:
        raise ValidationError(
            "cannot specify both --pre and --post",
            hint="Create one template per invocation.",
        )
    if pre:
        return "pre", pre
    if post:
        return "post", post
    return None
