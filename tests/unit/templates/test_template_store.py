"""Template discovery, default markers and listing."""

from __future__ import annotations

import pytest

from prompter.errors import TemplateInvalidError, TemplateNotFoundError
from prompter.templates.store import (
    FileSystemTemplateStore,
    is_default_stem,
    strip_default_marker,
)
from tests.helpers import write_template

pytestmark = pytest.mark.unit


class TestDefaultMarker:
    @pytest.mark.parametrize(
        ("stem", "expected"),
        [
            ("foo.default.bar", "foo.bar"),
            ("name.default", "name"),
            ("default.name", "name"),
            ("default", "default"),
            ("plain", "plain"),
            ("defaults.md-ish", "defaults.md-ish"),
        ],
    )
    def test_strip_default_marker(self, stem: str, expected: str) -> None:
        assert strip_default_marker(stem) == expected

    def test_bare_default_is_not_a_marked_default(self) -> None:
        assert not is_default_stem("default")
        assert is_default_stem("review.default")


class TestDiscovery:
    @pytest.mark.parametrize(
        "name", ["engineering-defaults", "ENGINEERING-DEFAULTS", "Engineering-Defaults"]
    )
    def test_names_match_stems_case_insensitively(
        self, context, templates_root, name: str
    ) -> None:
        path = write_template(templates_root, "pre", "Engineering-Defaults.md", "x")
        store = FileSystemTemplateStore([templates_root], context=context)

        assert store.discover(name) == path

    def test_tmpl_suffix_is_accepted_and_other_files_ignored(
        self, context, templates_root
    ) -> None:
        write_template(templates_root, "post", "notes.txt", "ignored")
        path = write_template(templates_root, "post", "notes.tmpl", "x")
        store = FileSystemTemplateStore([templates_root], context=context)

        assert store.discover("notes") == path

    def test_marked_default_is_found_by_display_name(self, context, templates_root) -> None:
        path = write_template(templates_root, "pre", "review.default.md", "x")
        store = FileSystemTemplateStore([templates_root], context=context)

        assert store.discover("review") == path
        assert store.discover("review.default") == path

    def test_exact_stem_beats_marker_stripped_match(self, context, templates_root) -> None:
        write_template(templates_root, "pre", "review.default.md", "marked")
        exact = write_template(templates_root, "pre", "review.md", "exact")
        store = FileSystemTemplateStore([templates_root], context=context)

        assert store.discover("review") == exact

    def test_pre_is_searched_before_post(self, context, templates_root) -> None:
        pre = write_template(templates_root, "pre", "shared.md", "pre")
        post = write_template(templates_root, "post", "shared.md", "post")
        store = FileSystemTemplateStore([templates_root], context=context)

        assert store.discover("shared") == pre
        assert store.discover("shared", "post") == post

    def test_local_root_wins_over_global(self, context, templates_root, tmp_path) -> None:
        local = tmp_path / "local"
        write_template(templates_root, "pre", "style.md", "global")
        mine = write_template(local, "pre", "style.md", "local")
        store = FileSystemTemplateStore([local, templates_root], context=context)

        assert store.discover("style") == mine

    def test_path_like_names_load_directly(self, context, tmp_path) -> None:
        path = tmp_path / "elsewhere" / "custom.md"
        path.parent.mkdir()
        path.write_text("Hello {{ prompt }}")
        store = FileSystemTemplateStore([], context=context)

        handle = store.load(str(path))

        assert handle.path == path

    def test_missing_template_raises_not_found(self, context, templates_root) -> None:
        store = FileSystemTemplateStore([templates_root], context=context)

        with pytest.raises(TemplateNotFoundError) as exc:
            store.discover("nope")

        assert exc.value.name == "nope"
        assert str(templates_root) in exc.value.roots

    def test_missing_root_directories_are_skipped(self, context, tmp_path) -> None:
        store = FileSystemTemplateStore([tmp_path / "absent"], context=context)

        with pytest.raises(TemplateNotFoundError):
            store.discover("anything")

    def test_syntax_errors_surface_as_template_invalid(self, context, templates_root) -> None:
        write_template(templates_root, "pre", "broken.md", "{% if prompt %}never closed")
        store = FileSystemTemplateStore([templates_root], context=context)

        with pytest.raises(TemplateInvalidError) as exc:
            store.load("broken")

        assert "broken" in exc.value.message


class TestListing:
    def test_defaults_first_then_sorted_and_deduplicated(
        self, context, templates_root, tmp_path
    ) -> None:
        local = tmp_path / "local"
        write_template(templates_root, "pre", "zeta.md", "")
        write_template(templates_root, "pre", "alpha.md", "")
        write_template(templates_root, "pre", "main.default.md", "")
        write_template(local, "pre", "alpha.md", "")
        store = FileSystemTemplateStore([local, templates_root], context=context)

        infos = store.list_templates("pre")

        assert [i.name for i in infos] == ["main", "alpha", "zeta"]
        assert infos[0].is_default
        assert infos[1].root == local

    def test_listing_is_per_kind(self, context, templates_root) -> None:
        write_template(templates_root, "post", "tests.md", "")
        store = FileSystemTemplateStore([templates_root], context=context)

        assert store.list_templates("pre") == []
        assert [i.name for i in store.list_templates("post")] == ["tests"]
