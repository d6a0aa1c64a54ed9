"""Orchestration of one prompt run: configure, collect, assemble, output."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from prompter.assembler import PromptAssembler
from prompter.config import resolve_config, validate_config
from prompter.errors import ConfigurationError, PrompterError, wrap_error
from prompter.interactive import (
    TerminalPrompter,
    collect_missing_inputs,
    resolve_interactive_mode,
)
from prompter.output import OutputDispatcher, SystemOutputHandler
from prompter.request import apply_config_defaults, validate_request
from prompter.templates.store import FileSystemTemplateStore

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from prompter.config import Config
    from prompter.context import ExecutionContext
    from prompter.fix import FixCaptor
    from prompter.interactive import Prompter
    from prompter.output import OutputHandler
    from prompter.request import PromptRequest
    from prompter.templates.store import TemplateStore

logger = logging.getLogger(__name__)

FALLBACK_TARGET = "stdout"


class Orchestrator:
    """Coordinate configuration, assembly and output for prompt requests.

    Collaborators default to the real terminal, clipboard and filesystem;
    tests pass in-memory doubles instead.
    """

    def __init__(
        self,
        *,
        context: ExecutionContext,
        output_handler: OutputHandler | None = None,
        prompter: Prompter | None = None,
        store_factory: Callable[[Config], TemplateStore] | None = None,
        captor: FixCaptor | None = None,
        config_overrides: Mapping[str, Any] | None = None,
    ) -> None:
        self.context = context
        self.config_overrides = dict(config_overrides or {})
        self.output_handler = output_handler or SystemOutputHandler(context)
        self.prompter = prompter or TerminalPrompter(context)
        self.store_factory = store_factory or self._filesystem_store
        self.assembler = PromptAssembler(
            context=context,
            captor=captor,
            prompter=self.prompter,
            store_factory=self.store_factory,
        )
        self.dispatcher = OutputDispatcher(self.output_handler, context=context)

    def _filesystem_store(self, config: Config) -> TemplateStore:
        return FileSystemTemplateStore(config.template_roots, context=self.context)

    def load_configuration(self, config_path: str = "") -> Config:
        """Resolve and validate configuration for this context.

        Raises:
            ConfigurationError: For any load, resolution or validation failure.
        """
        try:
            config = resolve_config(
                self.config_overrides, path=config_path or None, context=self.context
            )
            validate_config(config, context=self.context)
        except PrompterError:
            raise
        except (OSError, ValueError) as e:
            raise wrap_error(e, ConfigurationError) from e
        logger.debug("Templates roots: %s", ", ".join(map(str, config.template_roots)))
        return config

    def generate_prompt(self, request: PromptRequest, config: Config | None = None) -> str:
        """Validate ``request``, apply configuration defaults and assemble.

        Raises:
            ValidationError: When the request is malformed.
            PrompterError: From configuration, templates or fix capture.
        """
        validate_request(request, context=self.context)
        cfg = config or self.load_configuration(request.config_path)
        request = apply_config_defaults(request, cfg)
        logger.debug(
            "Assembling %s prompt (pre=%r post=%r)",
            "fix-mode" if request.fix_mode else "normal",
            request.pre_template,
            request.post_template,
        )
        return self.assembler.assemble(request, cfg)

    def output_prompt(self, prompt: str, request: PromptRequest, config: Config) -> None:
        """Send ``prompt`` to the request target, else the configured one."""
        target = request.target or config.target or FALLBACK_TARGET
        self.dispatcher.dispatch(
            prompt,
            target,
            editor_requested=request.editor_requested,
            editor=request.editor,
            config=config,
        )

    def run(self, request: PromptRequest) -> str:
        """Run the whole flow and return the prompt that was output."""
        config = self.load_configuration(request.config_path)
        request = resolve_interactive_mode(request, config)
        request = collect_missing_inputs(
            request,
            store=self.store_factory(config),
            prompter=self.prompter,
            clipboard=self.output_handler.read_clipboard,
            context=self.context,
        )
        prompt = self.generate_prompt(request, config)
        self.output_prompt(prompt, request, config)
        return prompt
