"""
Locate and edit ```chat / ```chat-md blocks inside a Markdown document.

These helpers work on document text only; reading and writing files is left to
the caller.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Mapping, Optional

from chatview_core.config_parser import is_config_line
from chatview_core.constants import CHAT_BLOCK_LANGS, COLORS, MESSAGE_END_RE
from chatview_core.transcript_parser import Direction, FenceStack, parse_header_and_time


# Outer document fences (CommonMark: up to 3 spaces of indent, ``` or ~~~).
_DOC_FENCE_RE = re.compile(r"^( {0,3})(`{3,}|~{3,})(.*)$")
_BACKTICK_RUN_RE = re.compile(r"^\s*(`{3,})")


@dataclass(frozen=True)
class ChatBlock:
    start: int  # line index of the opening fence
    end: int  # line index of the closing fence, or len(lines) if unclosed
    lang: str
    info: str  # full info string after the opening fence
    fence: str
    indent: str
    content: str
    closed: bool


def _is_closing_fence(line: str, fence: str) -> bool:
    stripped = line.strip()
    if len(line) - len(line.lstrip(" ")) > 3 or not stripped:
        return False
    char = fence[0]
    return stripped == char * len(stripped) and len(stripped) >= len(fence)


def _lines(document: str) -> List[str]:
    return (document or "").replace("\r\n", "\n").split("\n")


def find_chat_blocks(document: str) -> List[ChatBlock]:
    lines = _lines(document)
    blocks: List[ChatBlock] = []
    i = 0
    while i < len(lines):
        m = _DOC_FENCE_RE.match(lines[i])
        if not m:
            i += 1
            continue
        indent, fence, info = m.group(1), m.group(2), m.group(3).strip()
        j = i + 1
        while j < len(lines) and not _is_closing_fence(lines[j], fence):
            j += 1
        closed = j < len(lines)
        lang = info.split(None, 1)[0].lower() if info else ""
        if lang in CHAT_BLOCK_LANGS and fence.startswith("`"):
            blocks.append(
                ChatBlock(
                    start=i,
                    end=j,
                    lang=lang,
                    info=info,
                    fence=fence,
                    indent=indent,
                    content="\n".join(lines[i + 1 : j]),
                    closed=closed,
                )
            )
        i = j + 1
    return blocks


def get_chat_block(document: str, index: int = 0) -> ChatBlock:
    blocks = find_chat_blocks(document)
    if not blocks:
        raise ValueError("no chat block found in document")
    if index < 0 or index >= len(blocks):
        raise ValueError(f"chat block index out of range: {index} (found {len(blocks)})")
    return blocks[index]


def choose_fence(content: str) -> str:
    longest = 0
    for line in _lines(content):
        m = _BACKTICK_RUN_RE.match(line)
        if m:
            longest = max(longest, len(m.group(1)))
    return "`" * max(3, longest + 1) if longest else "```"


def format_message(direction: str, header: str, body: str, time: str = "") -> str:
    d = Direction.parse(direction)
    header = (header or "").strip()
    if not header:
        raise ValueError("message header must not be empty")
    if "\n" in header:
        raise ValueError("message header must be a single line")

    time = (time or "").strip()
    head_text = f"{header} [{time}]" if time else header
    if parse_header_and_time(head_text) != (header, time):
        raise ValueError(f"message header {header!r} would not read back as written; pass a time or rename it")

    body_lines = (body or "").replace("\r\n", "\n").rstrip("\n").split("\n")
    fence = FenceStack()
    for n, line in enumerate(body_lines, start=1):
        # Config-shaped lines are consumed by the parser even inside code fences.
        if is_config_line(line.strip()):
            raise ValueError(f"body line {n}: {line.strip()!r} would be read as chat configuration")
        if fence.feed(line):
            continue
        if not fence.is_open and MESSAGE_END_RE.match(line.strip()):
            raise ValueError(f"body line {n}: '___' outside a code fence would end the message")
    if fence.is_open:
        raise ValueError(f"body leaves code fence {fence.delimiter!r} open")

    return f"@{d.value} {head_text}\n" + "\n".join(body_lines) + "\n___\n"


def _color_line(colors: Mapping[str, str]) -> Optional[str]:
    pairs = []
    for name, color in colors.items():
        name = str(name).strip()
        if not name or color not in COLORS or any(ch in name for ch in ",=[]"):
            continue
        pairs.append(f"{name}={color}")
    if not pairs:
        return None
    return "[" + ", ".join(pairs) + "]"


def append_message(
    document: str,
    direction: str,
    header: str,
    body: str,
    *,
    time: str = "",
    index: int = 0,
    colors: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Append a message to chat block `index` of `document`.

    If the document has no such block a new ```chat block is appended, seeded
    with a `[name=color, ...]` line from `colors`. The block is re-fenced with
    a longer backtick run when its new content would otherwise close it early.
    """
    if index < 0:
        raise ValueError(f"chat block index must be >= 0, got {index}")
    message_lines = format_message(direction, header, body, time).rstrip("\n").split("\n")
    blocks = find_chat_blocks(document)

    if index < len(blocks):
        block = blocks[index]
        lines = _lines(document)
        content_lines = lines[block.start + 1 : block.end]
        while content_lines and not content_lines[-1].strip():
            content_lines.pop()
        if content_lines:
            content_lines.append("")
        content_lines.extend(message_lines)

        fence = block.fence
        needed = choose_fence("\n".join(content_lines))
        if len(needed) > len(fence):
            fence = needed
        rebuilt = [f"{block.indent}{fence}{block.info}", *content_lines, f"{block.indent}{fence}"]
        tail = lines[block.end + 1 :] if block.closed else []
        return "\n".join(lines[: block.start] + rebuilt + tail)

    out = document or ""
    if out and not out.endswith("\n\n"):
        out += "\n" if out.endswith("\n") else "\n\n"
    fence = choose_fence("\n".join(message_lines))
    new_block = [f"{fence}chat"]
    color_line = _color_line(colors or {})
    if color_line:
        new_block.extend([color_line, ""])
    new_block.extend(message_lines)
    new_block.append(fence)
    return out + "\n".join(new_block) + "\n"
