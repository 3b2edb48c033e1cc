from __future__ import annotations

from html import escape
from typing import Any, Callable, List, Optional, Union

from markdown_it import MarkdownIt

from chatview_core.bubble import BubbleSpec
from chatview_core.constants import CSS_PREFIX
from chatview_core.render import render_transcript
from chatview_core.transcript_parser import Comment, TimeComment


def _default_markdown() -> Callable[[str], str]:
    # Raw HTML in message bodies is escaped, not passed through.
    md = MarkdownIt("commonmark", {"html": False}).enable("table").enable("strikethrough")
    return md.render


def _cls(*names: str) -> str:
    return " ".join(n for n in names if n)


class HtmlTarget:
    def __init__(self) -> None:
        self.parts: List[str] = []

    def append(self, fragment: str) -> None:
        self.parts.append(fragment)

    def html(self) -> str:
        inner = "\n".join(self.parts)
        return f'<div class="{CSS_PREFIX}">\n{inner}\n</div>\n'


class HtmlChatRenderer:
    def __init__(self, markdown: Optional[Callable[[str], str]] = None) -> None:
        self._markdown = markdown or _default_markdown()

    def render_bubble(self, target: HtmlTarget, spec: BubbleSpec) -> None:
        classes = _cls(
            f"{CSS_PREFIX}-bubble",
            f"{CSS_PREFIX}-align-{spec.direction.value}",
            spec.margin_class,
            spec.color_class,
            spec.width_class,
            spec.mode_class,
        )
        parts = [f'<div class="{classes}">']
        # A continued bubble belongs to the sender shown on the bubble above it.
        if spec.header and not spec.continued:
            tag = spec.header_tag
            parts.append(f'<{tag} class="{CSS_PREFIX}-header">{escape(spec.header)}</{tag}>')
        if spec.body:
            body_html = self._markdown(spec.body)
            parts.append(f'<div class="{CSS_PREFIX}-message-container">{body_html}</div>')
        if spec.subtext:
            parts.append(f'<sub class="{CSS_PREFIX}-subtext">{escape(spec.subtext)}</sub>')
        parts.append("</div>")
        target.append("".join(parts))

    def render_comment(self, target: HtmlTarget, block: Union[Comment, TimeComment]) -> None:
        if isinstance(block, TimeComment):
            target.append(
                f'<div class="{CSS_PREFIX}-time-comment-container">'
                f'<div class="{CSS_PREFIX}-centered-comment">{escape(block.text)}</div>'
                f'<span class="{CSS_PREFIX}-time-footnote">{escape(block.time)}</span>'
                "</div>"
            )
            return
        target.append(f'<div class="{CSS_PREFIX}-comment">{escape(block.text)}</div>')

    def render_raw(self, target: HtmlTarget, text: str) -> None:
        target.append(f'<pre class="{CSS_PREFIX}-raw">{escape(text)}</pre>')


def render_html(
    text: str,
    *,
    meta: Any = None,
    mobile: bool = False,
    legacy_align: bool = False,
    markdown: Optional[Callable[[str], str]] = None,
) -> str:
    target = HtmlTarget()
    render_transcript(
        text,
        target,
        HtmlChatRenderer(markdown=markdown),
        meta=meta,
        mobile=mobile,
        legacy_align=legacy_align,
    )
    return target.html()
