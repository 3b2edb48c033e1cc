from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional

from chatview_core.constants import (
    CSS_PREFIX,
    DEFAULT_HEADER_TAG,
    DEFAULT_MODE,
    DESKTOP_WIDTH_CLASS,
    MOBILE_WIDTH_CLASS,
    UNRESOLVED_COLOR,
)
from chatview_core.transcript_parser import Block, ChatConfig, Direction, Message


@dataclass(frozen=True)
class BubbleSpec:
    header: str
    prev_header: str
    body: str
    subtext: str
    direction: Direction
    continued: bool
    color: str
    color_class: str
    width_class: str
    mode_class: str
    margin_class: str
    header_tag: str

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["direction"] = self.direction.value
        return d


class BubbleSpecBuilder:
    """
    Resolves parsed messages into presentation records.

    Format defaults (width, mode, header tag) are applied here, not in the
    parser. `continued` is derived from the previous message in the block
    sequence; comments in between do not break a run of the same sender.
    """

    def __init__(self, config: ChatConfig, *, mobile: bool = False) -> None:
        self.config = config
        self.mobile = mobile

    def width_class(self) -> str:
        mw = self.config.format.get("mw")
        if mw is not None:
            return f"{CSS_PREFIX}-max-width-{mw}"
        return MOBILE_WIDTH_CLASS if self.mobile else DESKTOP_WIDTH_CLASS

    def mode_class(self) -> str:
        return f"{CSS_PREFIX}-bubble-mode-{self.config.format.get('mode', DEFAULT_MODE)}"

    def header_tag(self) -> str:
        return self.config.format.get("header", DEFAULT_HEADER_TAG)

    def resolve_color(self, key: str) -> str:
        return self.config.color.get(key, UNRESOLVED_COLOR)

    def build(self, message: Message, previous: Optional[Message] = None) -> BubbleSpec:
        prev_header = previous.header if previous is not None else ""
        continued = previous is not None and previous.header == message.header
        color = self.resolve_color(prev_header if continued else message.header)

        direction = message.direction
        if message.header and message.header in self.config.align:
            direction = Direction.RIGHT

        margin = "small" if continued else "default"
        return BubbleSpec(
            header=message.header,
            prev_header=prev_header,
            body=message.body,
            subtext=message.time,
            direction=direction,
            continued=continued,
            color=color,
            color_class=f"{CSS_PREFIX}-{color}",
            width_class=self.width_class(),
            mode_class=self.mode_class(),
            margin_class=f"{CSS_PREFIX}-{margin}-vertical-margin",
            header_tag=self.header_tag(),
        )

    def build_all(self, blocks: Iterable[Block]) -> List[BubbleSpec]:
        specs: List[BubbleSpec] = []
        previous: Optional[Message] = None
        for block in blocks:
            if not isinstance(block, Message):
                continue
            specs.append(self.build(block, previous))
            previous = block
        return specs
