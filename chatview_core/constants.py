from __future__ import annotations

import re
from typing import Dict, Tuple


# Allowed values per format key. `mw` is the bubble max-width percentage.
FORMAT_CONFIGS: Dict[str, Tuple[str, ...]] = {
    "header": ("h2", "h3", "h4", "h5", "h6"),
    "mw": ("50", "55", "60", "65", "70", "75", "80", "85", "90"),
    "mode": ("default", "minimal"),
}

COLORS: Tuple[str, ...] = (
    "red",
    "orange",
    "yellow",
    "green",
    "blue",
    "purple",
    "grey",
    "brown",
    "indigo",
    "teal",
    "pink",
    "slate",
    "wood",
)

DIRECTIONS: Tuple[str, ...] = ("left", "right", "center")

# Whole-line shapes (matched against the trimmed line).
FORMAT_CONFIG_LINE_RE = re.compile(r"^\{(.+?)\}$")
COLOR_CONFIG_LINE_RE = re.compile(r"^\[([^\[\]]+?=[^\[\]]+?(?:,[^\[\]]+?=[^\[\]]+?)*)\]\s*$")
ALIGN_CONFIG_LINE_RE = re.compile(r"^>(.+)$")

MESSAGE_START_RE = re.compile(r"^@(left|right|center)\s+(.*)$", re.IGNORECASE)
MESSAGE_END_RE = re.compile(r"^_{3,}$")
TIME_COMMENT_RE = re.compile(r"^\s*(\[.+?\]|\(.+?\))\s+(.+)$")
FENCE_OPEN_RE = re.compile(r"^(`{3,})")

DEFAULT_HEADER_TAG = "h4"
DEFAULT_MODE = "default"
DESKTOP_WIDTH_CLASS = "chat-view-desktop-width"
MOBILE_WIDTH_CLASS = "chat-view-mobile-width"
UNRESOLVED_COLOR = "unresolved"

CSS_PREFIX = "chat-view"
CHAT_BLOCK_LANGS: Tuple[str, ...] = ("chat", "chat-md")
