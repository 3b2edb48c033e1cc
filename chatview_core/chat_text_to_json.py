"""
Convert chat transcript markup into JSON (or an HTML preview).

Input is either a bare transcript (`.txt`) or a Markdown note (`.md`) holding
one or more ```chat / ```chat-md blocks; `--block N` picks which one.

Output JSON:
  {"config": {"format": {...}, "color": {...}, "align": [...]},
   "blocks": [{"type": "Message", ...}, ...],
   "bubbles": [{"header": ..., "color_class": ..., ...}, ...]}
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from chatview_core.bubble import BubbleSpecBuilder
from chatview_core.chat_blocks import get_chat_block
from chatview_core.html_render import render_html
from chatview_core.settings import configure_logging, load_settings
from chatview_core.transcript_parser import parse_transcript


MARKDOWN_SUFFIXES = (".md", ".markdown")


def convert_text(
    text: str,
    *,
    meta: Any = None,
    mobile: bool = False,
    legacy_align: bool = False,
) -> Dict[str, Any]:
    transcript = parse_transcript(text, meta=meta, legacy_align=legacy_align)
    bubbles = BubbleSpecBuilder(transcript.config, mobile=mobile).build_all(transcript.blocks)
    data = transcript.to_dict()
    data["bubbles"] = [b.to_dict() for b in bubbles]
    return data


def _parse_meta_args(items: Optional[List[str]]) -> Dict[str, str]:
    meta: Dict[str, str] = {}
    for item in items or []:
        if "=" not in item:
            raise ValueError(f"invalid --meta {item!r} (expected KEY=VALUE)")
        key, value = item.split("=", 1)
        meta[key.strip()] = value.strip()
    return meta


def load_transcript_text(path: Path, *, block: Optional[int] = None) -> str:
    text = path.read_text(encoding="utf-8")
    if block is not None or path.suffix.lower() in MARKDOWN_SUFFIXES:
        return get_chat_block(text, block or 0).content
    return text


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Convert chat transcript markup into JSON or HTML.")
    p.add_argument("input", help="Input transcript (.txt) or Markdown note (.md)")
    p.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output file (default: alongside input; '-' for stdout)",
    )
    p.add_argument("--html", action="store_true", help="Write an HTML preview instead of JSON")
    p.add_argument("--block", type=int, default=None, help="Chat block index inside a Markdown note (default: 0)")
    p.add_argument(
        "--meta",
        action="append",
        default=None,
        metavar="KEY=VALUE",
        help="Document metadata (MaxWidth, Header, Mode); repeatable",
    )
    p.add_argument("--mobile", action="store_true", help="Use the mobile width class when no max width is set")
    p.add_argument("--legacy-align", action="store_true", help="Honour '>Name, ...' right-alignment lines")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_argparser().parse_args(list(argv) if argv is not None else None)
    settings = load_settings()
    configure_logging(settings)

    mobile = bool(args.mobile) or settings.mobile
    legacy_align = bool(args.legacy_align) or settings.legacy_align

    in_path = Path(args.input)
    try:
        meta = _parse_meta_args(args.meta)
        text = load_transcript_text(in_path, block=args.block)
    except (OSError, ValueError) as exc:
        print(f"[error] {exc}")
        return 2

    if args.html:
        out = render_html(text, meta=meta, mobile=mobile, legacy_align=legacy_align)
        suffix = ".html"
        summary = ""
    else:
        data = convert_text(text, meta=meta, mobile=mobile, legacy_align=legacy_align)
        out = json.dumps(data, ensure_ascii=False, indent=2)
        suffix = ".json"
        messages = sum(1 for b in data["blocks"] if b["type"] == "Message")
        summary = f" blocks={len(data['blocks'])} messages={messages}"

    if args.output == "-":
        print(out)
        return 0

    out_path = Path(args.output) if args.output else in_path.with_suffix(suffix)
    out_path.write_text(out, encoding="utf-8")
    print(f"[ok]{summary} out={out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
