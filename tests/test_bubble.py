"""Tests for bubble spec resolution."""

from chatview_core.bubble import BubbleSpecBuilder
from chatview_core.transcript_parser import ChatConfig, Comment, Direction, Message, parse_transcript


def _msg(line_no, header, body="hi", direction=Direction.LEFT, time=""):
    return Message(line_no=line_no, direction=direction, header=header, time=time, body=body)


class TestDefaults:
    def test_no_format_config(self):
        spec = BubbleSpecBuilder(ChatConfig()).build(_msg(1, "A", time="09:00"))
        assert spec.width_class == "chat-view-desktop-width"
        assert spec.mode_class == "chat-view-bubble-mode-default"
        assert spec.header_tag == "h4"
        assert spec.subtext == "09:00"
        assert spec.margin_class == "chat-view-default-vertical-margin"

    def test_mobile_width(self):
        spec = BubbleSpecBuilder(ChatConfig(), mobile=True).build(_msg(1, "A"))
        assert spec.width_class == "chat-view-mobile-width"

    def test_format_config_applies(self):
        config = ChatConfig(format={"mw": "70", "mode": "minimal", "header": "h2"})
        spec = BubbleSpecBuilder(config, mobile=True).build(_msg(1, "A"))
        assert spec.width_class == "chat-view-max-width-70"
        assert spec.mode_class == "chat-view-bubble-mode-minimal"
        assert spec.header_tag == "h2"

    def test_unresolved_color(self):
        spec = BubbleSpecBuilder(ChatConfig(color={"B": "red"})).build(_msg(1, "A"))
        assert spec.color == "unresolved"
        assert spec.color_class == "chat-view-unresolved"


class TestContinuation:
    def test_same_header_continues(self):
        builder = BubbleSpecBuilder(ChatConfig(color={"Bob": "green"}))
        first, second = builder.build_all([_msg(1, "Bob"), _msg(4, "Bob", body="again")])
        assert not first.continued
        assert first.prev_header == ""
        assert second.continued
        assert second.prev_header == "Bob"
        assert second.color_class == "chat-view-green"
        assert second.margin_class == "chat-view-small-vertical-margin"

    def test_color_lookup_uses_prev_header(self):
        looked_up = []

        class SpyBuilder(BubbleSpecBuilder):
            def resolve_color(self, key):
                looked_up.append(key)
                return super().resolve_color(key)

        builder = SpyBuilder(ChatConfig(color={"Bob": "green"}))
        builder.build(_msg(4, "Bob"), previous=_msg(1, "Bob"))
        assert looked_up == ["Bob"]

    def test_comments_do_not_break_run(self):
        builder = BubbleSpecBuilder(ChatConfig())
        specs = builder.build_all([_msg(1, "Bob"), Comment(line_no=3, text="meanwhile"), _msg(4, "Bob")])
        assert [s.continued for s in specs] == [False, True]

    def test_header_compare_is_case_sensitive(self):
        specs = BubbleSpecBuilder(ChatConfig()).build_all([_msg(1, "Bob"), _msg(4, "bob")])
        assert [s.continued for s in specs] == [False, False]

    def test_different_sender_resets(self):
        specs = BubbleSpecBuilder(ChatConfig()).build_all([_msg(1, "A"), _msg(4, "B"), _msg(7, "B")])
        assert [s.continued for s in specs] == [False, False, True]
        assert specs[1].prev_header == "A"

    def test_from_parsed_transcript(self):
        t = parse_transcript("[Bob=blue]\n@left Bob\none\n___\n@left Bob\ntwo\n___\n")
        specs = BubbleSpecBuilder(t.config).build_all(t.blocks)
        assert [s.body for s in specs] == ["one", "two"]
        assert specs[1].continued
        assert specs[1].color == "blue"


class TestAlign:
    def test_align_list_forces_right(self):
        config = ChatConfig(align=["Bob"])
        spec = BubbleSpecBuilder(config).build(_msg(1, "Bob", direction=Direction.LEFT))
        assert spec.direction is Direction.RIGHT

    def test_other_headers_keep_direction(self):
        config = ChatConfig(align=["Bob"])
        spec = BubbleSpecBuilder(config).build(_msg(1, "Ann", direction=Direction.CENTER))
        assert spec.direction is Direction.CENTER

    def test_to_dict(self):
        d = BubbleSpecBuilder(ChatConfig()).build(_msg(1, "A")).to_dict()
        assert d["direction"] == "left"
        assert d["continued"] is False
