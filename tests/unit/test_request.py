"""Request validation and configuration defaulting."""

from __future__ import annotations

from pathlib import Path

import pytest

from prompter.errors import ValidationError
from prompter.request import PromptRequest, apply_config_defaults, validate_request
from tests.helpers import make_config

pytestmark = pytest.mark.unit


class TestValidateRequest:
    def test_none_is_rejected(self, context) -> None:
        with pytest.raises(ValidationError, match="cannot be None"):
            validate_request(None, context=context)

    def test_conflicting_force_flags(self, context) -> None:
        request = PromptRequest(
            base_prompt="x", force_interactive=True, force_non_interactive=True
        )

        with pytest.raises(ValidationError, match="--interactive and --yes"):
            validate_request(request, context=context)

    def test_non_interactive_needs_some_input(self, context) -> None:
        with pytest.raises(ValidationError, match="base prompt is required"):
            validate_request(PromptRequest(interactive=False), context=context)

    @pytest.mark.parametrize(
        "request_",
        [
            PromptRequest(interactive=False, fix_mode=True),
            PromptRequest(interactive=False, from_clipboard=True),
            PromptRequest(interactive=True),
        ],
    )
    def test_prompt_may_come_from_elsewhere(self, context, request_) -> None:
        assert validate_request(request_, context=context) is request_

    @pytest.mark.parametrize("target", ["bogus", "file:", "FILE:/x"])
    def test_invalid_target(self, context, target: str) -> None:
        with pytest.raises(ValidationError, match="invalid target"):
            validate_request(PromptRequest(base_prompt="x", target=target), context=context)

    def test_config_path_must_exist(self, context) -> None:
        request = PromptRequest(base_prompt="x", config_path="missing.toml")

        with pytest.raises(ValidationError, match="config file does not exist"):
            validate_request(request, context=context)

    def test_whitespace_template_name(self, context) -> None:
        with pytest.raises(ValidationError, match="post-template name cannot be empty"):
            validate_request(
                PromptRequest(base_prompt="x", post_template="   "), context=context
            )


class TestApplyConfigDefaults:
    def test_unset_fields_take_configured_values(self, tmp_path) -> None:
        cfg = make_config(tmp_path, default_pre="eng", default_post="tests", target="clipboard")

        out = apply_config_defaults(PromptRequest(base_prompt="x"), cfg)

        assert (out.pre_template, out.post_template, out.target) == ("eng", "tests", "clipboard")
        assert out.fix_file == "/tmp/prompter-fix.txt"

    def test_explicit_values_win(self, tmp_path) -> None:
        cfg = make_config(tmp_path, default_pre="eng", target="clipboard")
        request = PromptRequest(pre_template="mine", target="stdout")

        out = apply_config_defaults(request, cfg)

        assert out.pre_template == "mine"
        assert out.target == "stdout"

    def test_fix_mode_keeps_fix_file_unset(self, tmp_path) -> None:
        cfg = make_config(tmp_path, fix_file=Path("/tmp/elsewhere.txt"))

        out = apply_config_defaults(PromptRequest(fix_mode=True), cfg)

        assert out.fix_file == ""

    def test_input_request_is_not_mutated(self, tmp_path) -> None:
        request = PromptRequest(base_prompt="x")

        apply_config_defaults(request, make_config(tmp_path, default_pre="eng"))

        assert request.pre_template == ""
