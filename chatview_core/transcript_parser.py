"""
Parse chat transcript markup into an ordered list of blocks.

Transcript syntax (the inner text of a ```chat / ```chat-md fence):
- `{key=value, ...}` / `[name=color, ...]` config lines (anywhere)
- `@left|@right|@center <header> [time]` starts a message; the body follows on
  the next lines and ends at a line of three or more underscores (`___`)
- `[time] text` / `(time) text` outside a message is a time comment
- any other non-blank line outside a message is a plain comment

Inside a message body, backtick fences (``` or longer) are tracked so that a
`___` line inside a code sample does not end the message. A fence only closes
on a line equal to its exact opening run.

Parsing never raises: unknown config is dropped, malformed message starts fall
through to comments, and a message still open at end of input is kept.
"""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from loguru import logger

from chatview_core.config_parser import (
    is_align_config_line,
    is_color_config_line,
    is_config_line,
    is_format_config_line,
    parse_align_configs,
    parse_color_configs,
    parse_format_configs,
    parse_meta_configs,
)
from chatview_core.constants import (
    FENCE_OPEN_RE,
    MESSAGE_END_RE,
    MESSAGE_START_RE,
    TIME_COMMENT_RE,
)


def _strip_bom(text: str) -> str:
    return (text or "").lstrip("\ufeff")


def _split_lines(text: str) -> List[str]:
    lines = _strip_bom(text).replace("\r\n", "\n").split("\n")
    # A final newline ends the last line; it does not open another one.
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()
    return lines


class Direction(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"

    @classmethod
    def parse(cls, value: str) -> "Direction":
        return cls((value or "").strip().lower())


@dataclass(frozen=True)
class Block:
    line_no: int

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        for key, value in d.items():
            if isinstance(value, Enum):
                d[key] = value.value
        d["type"] = self.__class__.__name__
        return d


@dataclass(frozen=True)
class Comment(Block):
    text: str


@dataclass(frozen=True)
class TimeComment(Block):
    time: str
    text: str


@dataclass(frozen=True)
class Message(Block):
    direction: Direction
    header: str
    time: str
    body: str


@dataclass(frozen=True)
class ChatConfig:
    format: Dict[str, str] = field(default_factory=dict)
    color: Dict[str, str] = field(default_factory=dict)
    align: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"format": dict(self.format), "color": dict(self.color), "align": list(self.align)}


@dataclass(frozen=True)
class Transcript:
    config: ChatConfig
    blocks: List[Block]

    def messages(self) -> List[Message]:
        return [b for b in self.blocks if isinstance(b, Message)]

    def to_dict(self) -> Dict[str, Any]:
        return {"config": self.config.to_dict(), "blocks": [b.to_dict() for b in self.blocks]}


# ---------------------------------------------------------------------------
# Header / time disambiguation
# ---------------------------------------------------------------------------

HeaderTime = Tuple[str, str]

_DATED_TIME_RE = re.compile(r"^(.*)\s+(\[\d{4}-\d{2}-\d{2}[\s\d:]*\]|\(\d{4}-\d{2}-\d{2}[\s\d:]*\))$")
_TRAILING_GROUP_RE = re.compile(r"^(.*)\s+(\[[^\[\]]*\]|\([^()]*\))$")
_GENERIC_TIME_RE = re.compile(r"^(.*?)(?:\s+\[([\s\S]*?)\]|\s+\(([\s\S]*?)\))$")


def _unwrap_group(raw: str) -> str:
    return raw[1:-1].strip()


def match_dated_time(text: str) -> Optional[HeaderTime]:
    """`Alice [2024-01-01 19:22]` -> ("Alice", "2024-01-01 19:22")."""
    m = _DATED_TIME_RE.match(text)
    if not m:
        return None
    return m.group(1).strip(), _unwrap_group(m.group(2))


def match_trailing_group(text: str) -> Optional[HeaderTime]:
    """`Alice (yesterday)` -> ("Alice", "yesterday")."""
    m = _TRAILING_GROUP_RE.match(text)
    if not m:
        return None
    return m.group(1).strip(), _unwrap_group(m.group(2))


def match_generic_time(text: str) -> Optional[HeaderTime]:
    m = _GENERIC_TIME_RE.match(text)
    if not m:
        return None
    return m.group(1).strip(), (m.group(2) or m.group(3) or "").strip()


def match_header_only(text: str) -> Optional[HeaderTime]:
    return text.strip(), ""


# Order matters: the first matcher that returns a split wins.
HEADER_TIME_MATCHERS: Sequence[Callable[[str], Optional[HeaderTime]]] = (
    match_dated_time,
    match_trailing_group,
    match_generic_time,
    match_header_only,
)


def parse_header_and_time(text: str) -> HeaderTime:
    text = (text or "").strip()
    if not text:
        return "", ""
    for matcher in HEADER_TIME_MATCHERS:
        result = matcher(text)
        if result is not None:
            return result
    return text, ""


# ---------------------------------------------------------------------------
# Fence tracking
# ---------------------------------------------------------------------------


class FenceStack:
    """At most one open backtick fence, remembered by its exact opening run."""

    def __init__(self) -> None:
        self._delimiter: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self._delimiter is not None

    @property
    def delimiter(self) -> Optional[str]:
        return self._delimiter

    def reset(self) -> None:
        self._delimiter = None

    def feed(self, line: str) -> bool:
        """Returns True when `line` opened or closed the fence."""
        if self._delimiter is None:
            m = FENCE_OPEN_RE.match(line.lstrip())
            if not m:
                return False
            self._delimiter = m.group(1)
            return True
        if line.strip() == self._delimiter:
            self._delimiter = None
            return True
        return False


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def scan_global_config(lines: Sequence[str], *, base_format: Optional[Mapping[str, str]] = None) -> ChatConfig:
    formats: Dict[str, str] = dict(base_format or {})
    colors: Dict[str, str] = {}
    for raw in lines:
        stripped = raw.strip()
        if is_format_config_line(stripped):
            formats.update(parse_format_configs(stripped))
        elif is_color_config_line(stripped):
            colors.update(parse_color_configs(stripped))
    return ChatConfig(format=formats, color=colors)


@dataclass
class _OpenMessage:
    line_no: int
    direction: Direction
    header: str
    time: str
    body: List[str] = field(default_factory=list)

    def add(self, line: str) -> None:
        # Blank lines between the message start and its first content are dropped.
        if not self.body and not line.strip():
            return
        self.body.append(line)

    def text(self) -> str:
        return "\n".join(self.body)


class _Segmenter:
    def __init__(self, *, legacy_align: bool) -> None:
        self.legacy_align = legacy_align
        self.blocks: List[Block] = []
        self.align: List[str] = []
        self.fence = FenceStack()
        self.message: Optional[_OpenMessage] = None
        self.comment_lines: List[str] = []
        self.comment_line_no = 0

    def feed(self, line_no: int, raw: str) -> None:
        line = raw.rstrip()
        stripped = line.strip()
        if is_config_line(stripped):
            return
        if self.message is None:
            self._feed_searching(line_no, line, stripped)
        else:
            self._feed_message(self.message, line, stripped)

    def finish(self) -> None:
        if self.message is not None and self.message.text().strip():
            self._emit_message(self.message)
        self.message = None
        self._flush_comment()

    def _feed_searching(self, line_no: int, line: str, stripped: str) -> None:
        m = MESSAGE_START_RE.match(stripped)
        if m:
            self._flush_comment()
            header, time = parse_header_and_time(m.group(2))
            self.message = _OpenMessage(
                line_no=line_no,
                direction=Direction.parse(m.group(1)),
                header=header,
                time=time,
            )
            self.fence.reset()
            return

        if self.legacy_align and is_align_config_line(stripped):
            for name in parse_align_configs(stripped):
                if name not in self.align:
                    self.align.append(name)
            return

        m = TIME_COMMENT_RE.match(line)
        if m:
            self._flush_comment()
            self.blocks.append(TimeComment(line_no=line_no, time=_unwrap_group(m.group(1)), text=m.group(2)))
            return

        if stripped:
            if not self.comment_lines:
                self.comment_line_no = line_no
            self.comment_lines.append(line)

    def _feed_message(self, msg: _OpenMessage, line: str, stripped: str) -> None:
        if self.fence.feed(line):
            msg.add(line)
            return
        if not self.fence.is_open and MESSAGE_END_RE.match(stripped):
            self._emit_message(msg)
            return
        msg.add(line)

    def _emit_message(self, msg: _OpenMessage) -> None:
        self.blocks.append(
            Message(
                line_no=msg.line_no,
                direction=msg.direction,
                header=msg.header,
                time=msg.time,
                body=msg.text(),
            )
        )
        self.message = None
        self.fence.reset()

    def _flush_comment(self) -> None:
        text = "\n".join(self.comment_lines)
        if text.strip():
            self.blocks.append(Comment(line_no=self.comment_line_no, text=text))
        self.comment_lines = []
        self.comment_line_no = 0


class TranscriptParser:
    def __init__(self, *, legacy_align: bool = False) -> None:
        self.legacy_align = legacy_align

    def parse(self, text: str, *, base_format: Optional[Mapping[str, str]] = None) -> Transcript:
        lines = _split_lines(text)
        config = scan_global_config(lines, base_format=base_format)

        seg = _Segmenter(legacy_align=self.legacy_align)
        for idx, raw in enumerate(lines):
            seg.feed(idx + 1, raw)
        seg.finish()

        return Transcript(config=replace(config, align=seg.align), blocks=seg.blocks)


def parse_transcript(text: str, *, meta: Any = None, legacy_align: bool = False) -> Transcript:
    transcript = TranscriptParser(legacy_align=legacy_align).parse(text, base_format=parse_meta_configs(meta))
    logger.debug(
        f"transcript parsed | blocks={len(transcript.blocks)} messages={len(transcript.messages())} "
        f"format={len(transcript.config.format)} colors={len(transcript.config.color)}"
    )
    return transcript


def parse_to_json(text: str, *, meta: Any = None, legacy_align: bool = False) -> str:
    transcript = parse_transcript(text, meta=meta, legacy_align=legacy_align)
    return json.dumps(transcript.to_dict(), ensure_ascii=False, indent=2)
