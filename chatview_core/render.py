from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, Union

from loguru import logger

from chatview_core.bubble import BubbleSpec, BubbleSpecBuilder
from chatview_core.transcript_parser import Block, Comment, Message, TimeComment, Transcript, parse_transcript


class ChatRenderer(Protocol):
    def render_bubble(self, target: Any, spec: BubbleSpec) -> None: ...

    def render_comment(self, target: Any, block: Union[Comment, TimeComment]) -> None: ...

    def render_raw(self, target: Any, text: str) -> None: ...


def raw_text(block: Block) -> str:
    if isinstance(block, Message):
        return block.body or block.header
    if isinstance(block, TimeComment):
        return f"[{block.time}] {block.text}"
    if isinstance(block, Comment):
        return block.text
    return ""


def _dispatch(renderer: ChatRenderer, target: Any, block: Block, call: Callable[[], None]) -> None:
    try:
        call()
    except Exception as exc:
        logger.opt(exception=exc).warning(
            f"render failed, using raw text | line={block.line_no} type={block.__class__.__name__}"
        )
        try:
            renderer.render_raw(target, raw_text(block))
        except Exception as fallback_exc:
            logger.opt(exception=fallback_exc).error(f"raw fallback failed | line={block.line_no}")


def render_transcript(
    text: str,
    target: Any,
    renderer: ChatRenderer,
    *,
    meta: Any = None,
    mobile: bool = False,
    legacy_align: bool = False,
) -> Transcript:
    """
    Parse `text` and hand every block to `renderer` in document order.

    A callback that raises is replaced by `renderer.render_raw` for that block;
    the remaining blocks are still rendered.
    """
    transcript = parse_transcript(text, meta=meta, legacy_align=legacy_align)
    builder = BubbleSpecBuilder(transcript.config, mobile=mobile)

    previous: Optional[Message] = None
    for block in transcript.blocks:
        if isinstance(block, Message):
            spec = builder.build(block, previous)
            previous = block
            _dispatch(renderer, target, block, lambda spec=spec: renderer.render_bubble(target, spec))
        elif isinstance(block, (Comment, TimeComment)):
            _dispatch(renderer, target, block, lambda block=block: renderer.render_comment(target, block))
    return transcript
