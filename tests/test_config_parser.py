"""Tests for config line parsing."""

from chatview_core.config_parser import (
    ChatMeta,
    is_color_config_line,
    is_config_line,
    is_format_config_line,
    parse_align_configs,
    parse_color_configs,
    parse_format_configs,
    parse_meta_configs,
)


class TestFormatConfigs:
    def test_known_keys(self):
        assert parse_format_configs("{header=h3, mw=70, mode=minimal}") == {
            "header": "h3",
            "mw": "70",
            "mode": "minimal",
        }

    def test_out_of_domain_header_is_dropped(self):
        assert parse_format_configs("{header=h1}") == {}

    def test_malformed_pairs_are_skipped(self):
        assert parse_format_configs("{header, =h2, mw=71, mode = minimal}") == {"mode": "minimal"}

    def test_unknown_key(self):
        assert parse_format_configs("{title=Chat}") == {}

    def test_no_braces(self):
        assert parse_format_configs("header=h2") == {}

    def test_last_duplicate_wins(self):
        assert parse_format_configs("{header=h2, header=h5}") == {"header": "h5"}


class TestColorConfigs:
    def test_palette_filter(self):
        assert parse_color_configs("[Alice=blue, Bob=magenta, =red]") == {"Alice": "blue"}

    def test_names_with_spaces(self):
        assert parse_color_configs("[Dr. Who = teal]") == {"Dr. Who": "teal"}

    def test_not_a_color_line(self):
        assert parse_color_configs("plain text") == {}


class TestAlignConfigs:
    def test_names(self):
        assert parse_align_configs(">Alice, Bob,") == ["Alice", "Bob"]

    def test_requires_marker(self):
        assert parse_align_configs("Alice, Bob") == []


class TestLineShapes:
    def test_format_line(self):
        assert is_format_config_line("  {mode=minimal}  ")
        assert not is_format_config_line("text {mode=minimal}")

    def test_color_line_needs_pairs(self):
        assert is_color_config_line("[A=blue, B=red]")
        assert not is_color_config_line("[note]")

    def test_time_comment_is_not_config(self):
        assert not is_config_line("[10:30] hi there")


class TestMetaConfigs:
    def test_none(self):
        assert parse_meta_configs(None) == {}

    def test_front_matter_mapping(self):
        meta = {"MaxWidth": 60, "Header": "h3", "Mode": "fancy", "tags": ["x"]}
        assert parse_meta_configs(meta) == {"mw": "60", "header": "h3"}

    def test_values_outside_allow_list(self):
        assert parse_meta_configs({"MaxWidth": "62", "Header": True, "Mode": 3.5}) == {}

    def test_not_a_mapping(self):
        assert parse_meta_configs("MaxWidth: 60") == {}

    def test_model_instance(self):
        meta = ChatMeta(header="h5", mode="minimal")
        assert parse_meta_configs(meta) == {"header": "h5", "mode": "minimal"}

    def test_model_drops_invalid_silently(self):
        meta = ChatMeta.model_validate({"MaxWidth": [1, 2], "Header": "h9"})
        assert meta.max_width is None
        assert meta.header is None
