"""Prompt assembly for normal and fix mode."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prompter.errors import TemplateNotFoundError, is_recoverable
from prompter.fix import FixCaptor, parse_fix_content
from prompter.templates.renderer import build_template_data, render
from prompter.templates.store import FileSystemTemplateStore, load_optional

if TYPE_CHECKING:
    from collections.abc import Callable

    from prompter.config import Config
    from prompter.context import ExecutionContext
    from prompter.interactive import Prompter
    from prompter.request import PromptRequest
    from prompter.templates.renderer import FixInfo, TemplateData
    from prompter.templates.store import TemplateKind, TemplateStore

logger = logging.getLogger(__name__)

PART_SEPARATOR = "\n\n"
FIX_TEMPLATE = "fix.md"
FIX_FALLBACK_OPENER = "Please fix"


def _default_store_factory(context: ExecutionContext) -> Callable[[Config], TemplateStore]:
    def factory(config: Config) -> TemplateStore:
        return FileSystemTemplateStore(config.template_roots, context=context)

    return factory


class PromptAssembler:
    """Turn a defaulted request into the final prompt text.

    Normal mode joins the rendered pre-template, the base prompt, the
    reference block and the rendered post-template. Fix mode joins an opener
    with the captured command output.
    """

    def __init__(
        self,
        *,
        context: ExecutionContext,
        captor: FixCaptor | None = None,
        prompter: Prompter | None = None,
        store_factory: Callable[[Config], TemplateStore] | None = None,
    ) -> None:
        self.context = context
        self.captor = captor
        self.prompter = prompter
        self.store_factory = store_factory or _default_store_factory(context)

    def assemble(self, request: PromptRequest, config: Config) -> str:
        if request.fix_mode:
            return self._assemble_fix(request, config)
        return self._assemble_normal(request, config)

    # --- Normal mode ---

    def _assemble_normal(self, request: PromptRequest, config: Config) -> str:
        store = self.store_factory(config)
        parts: list[str] = []

        if request.pre_template:
            parts.append(self._render_named(store, request, config, "pre"))
        if request.base_prompt:
            parts.append(request.base_prompt)
        parts.append(self.reference_block(request))
        if request.post_template:
            parts.append(self._render_named(store, request, config, "post"))

        return PART_SEPARATOR.join(p for p in parts if p)

    def _render_named(
        self,
        store: TemplateStore,
        request: PromptRequest,
        config: Config,
        kind: TemplateKind,
    ) -> str:
        name = request.pre_template if kind == "pre" else request.post_template
        try:
            handle = store.load(name.strip())
        except TemplateNotFoundError as e:
            if not is_recoverable(e):
                raise
            self.context.warn(f"{e.message} (skipping {kind}-template)")
            return ""
        return render(handle, self._template_data(request, config))

    def _template_data(
        self, request: PromptRequest, config: Config, fix: FixInfo | None = None
    ) -> TemplateData:
        return build_template_data(
            context=self.context,
            prompt=request.base_prompt,
            file_paths=request.file_refs,
            config=config.snapshot(),
            directory_strategy=config.directory_strategy,
            fix=fix,
        )

    def reference_block(self, request: PromptRequest) -> str:
        """Format file and directory references, one entry per line."""
        lines: list[str] = []
        if request.file_refs:
            lines.append("Referencing files:")
            lines.extend(request.file_refs)
        if request.directory_ref:
            lines.append("Referencing dir:")
            if request.directory_ref == ".":
                lines.append(str(self.context.cwd))
            else:
                lines.append(str(self.context.absolute(request.directory_ref)))
        return "\n".join(lines)

    # --- Fix mode ---

    def _assemble_fix(self, request: PromptRequest, config: Config) -> str:
        captor = self.captor or FixCaptor(
            context=self.context,
            prompter=self.prompter,
            timeout_seconds=config.fix_timeout_seconds,
            hint_file=config.fix_file,
        )
        captured = captor.capture(
            request.fix_file or None,
            interactive=request.interactive,
            number_select=request.number_select,
        )
        opener = self._fix_opener(request, config, captured)
        return PART_SEPARATOR.join(p for p in (opener, captured) if p)

    def _fix_opener(self, request: PromptRequest, config: Config, captured: str) -> str:
        handle = load_optional(config.templates_root / FIX_TEMPLATE, name=FIX_TEMPLATE)
        if handle is None:
            logger.debug("No %s in %s; using fallback opener", FIX_TEMPLATE, config.templates_root)
            return FIX_FALLBACK_OPENER
        text = render(handle, self._template_data(request, config, parse_fix_content(captured)))
        return text or FIX_FALLBACK_OPENER
