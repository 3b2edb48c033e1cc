"""Tests for the chatview command line."""

import json

from chatview_core.chat_text_to_json import convert_text, main


NOTE = (
    "---\nMaxWidth: 60\n---\n\n"
    "```chat\n"
    "[Bob=blue]\n"
    "@left Bob [2024-01-01]\n"
    "hello\n"
    "___\n"
    "@left Bob\n"
    "again\n"
    "___\n"
    "```\n"
)


class TestConvertText:
    def test_shape(self):
        data = convert_text("[Bob=blue]\n@left Bob\nhi\n___\n", mobile=True)
        assert set(data) == {"config", "blocks", "bubbles"}
        (bubble,) = data["bubbles"]
        assert bubble["color_class"] == "chat-view-blue"
        assert bubble["width_class"] == "chat-view-mobile-width"


class TestMain:
    def test_markdown_note_to_json(self, tmp_path, capsys):
        src = tmp_path / "note.md"
        src.write_text(NOTE, encoding="utf-8")
        out = tmp_path / "out.json"

        assert main([str(src), "-o", str(out), "--meta", "MaxWidth=60"]) == 0

        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["config"]["format"] == {"mw": "60"}
        assert [b["body"] for b in data["blocks"]] == ["hello", "again"]
        assert [b["continued"] for b in data["bubbles"]] == [False, True]
        assert "[ok] blocks=2 messages=2" in capsys.readouterr().out

    def test_plain_transcript_default_output(self, tmp_path):
        src = tmp_path / "chat.txt"
        src.write_text("@right Me\nhi\n___\n", encoding="utf-8")
        assert main([str(src)]) == 0
        data = json.loads((tmp_path / "chat.json").read_text(encoding="utf-8"))
        assert data["blocks"][0]["direction"] == "right"

    def test_html_to_stdout(self, tmp_path, capsys):
        src = tmp_path / "note.md"
        src.write_text(NOTE, encoding="utf-8")
        assert main([str(src), "--html", "-o", "-"]) == 0
        out = capsys.readouterr().out
        assert "chat-view-bubble" in out
        assert "<p>hello</p>" in out

    def test_missing_input(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.txt")]) == 2
        assert "[error]" in capsys.readouterr().out

    def test_bad_meta(self, tmp_path, capsys):
        src = tmp_path / "chat.txt"
        src.write_text("@right Me\nhi\n___\n", encoding="utf-8")
        assert main([str(src), "--meta", "MaxWidth"]) == 2
        assert "KEY=VALUE" in capsys.readouterr().out

    def test_block_index_out_of_range(self, tmp_path, capsys):
        src = tmp_path / "note.md"
        src.write_text(NOTE, encoding="utf-8")
        assert main([str(src), "--block", "2"]) == 2
        assert "out of range" in capsys.readouterr().out
