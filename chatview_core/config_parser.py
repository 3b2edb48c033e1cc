"""
Config line parsing for chat transcripts.

Three line syntaxes feed three independent namespaces:
- `{header=h3, mw=70, mode=minimal}`  format options
- `[Alice=blue, Bob=green]`          sender colors
- `>Alice, Bob`                      legacy forced right alignment

Values outside the allow-lists in `constants` are dropped silently. Nothing in
this module raises on bad input; unrecognised lines give an empty result.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chatview_core.constants import (
    ALIGN_CONFIG_LINE_RE,
    COLOR_CONFIG_LINE_RE,
    COLORS,
    FORMAT_CONFIG_LINE_RE,
    FORMAT_CONFIGS,
)


_FORMAT_SEARCH_RE = re.compile(r"\{(.+?)\}")
_COLOR_SEARCH_RE = re.compile(r"\[(.+?)\]")


def _split_pairs(inner: str) -> Iterable[Tuple[str, str]]:
    for part in inner.split(","):
        part = part.strip()
        if "=" not in part:
            continue
        key, value = part.split("=", 1)
        key = key.strip()
        if not key:
            continue
        yield key, value.strip()


def is_format_config_line(line: str) -> bool:
    return bool(FORMAT_CONFIG_LINE_RE.match((line or "").strip()))


def is_color_config_line(line: str) -> bool:
    return bool(COLOR_CONFIG_LINE_RE.match((line or "").strip()))


def is_config_line(line: str) -> bool:
    return is_format_config_line(line) or is_color_config_line(line)


def is_align_config_line(line: str) -> bool:
    return bool(ALIGN_CONFIG_LINE_RE.match((line or "").strip()))


def parse_format_configs(line: str) -> Dict[str, str]:
    formats: Dict[str, str] = {}
    m = _FORMAT_SEARCH_RE.search(line or "")
    if not m:
        return formats
    for key, value in _split_pairs(m.group(1)):
        allowed = FORMAT_CONFIGS.get(key)
        if allowed is not None and value in allowed:
            formats[key] = value
    return formats


def parse_color_configs(line: str) -> Dict[str, str]:
    colors: Dict[str, str] = {}
    m = _COLOR_SEARCH_RE.search(line or "")
    if not m:
        return colors
    for name, color in _split_pairs(m.group(1)):
        if color in COLORS:
            colors[name] = color
    return colors


def parse_align_configs(line: str) -> List[str]:
    m = ALIGN_CONFIG_LINE_RE.match((line or "").strip())
    if not m:
        return []
    return [name.strip() for name in m.group(1).split(",") if name.strip()]


def _allowed_or_none(value: Any, allowed: Tuple[str, ...]) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        # Front-matter like `MaxWidth: 60` arrives as a number.
        if isinstance(value, float) and not value.is_integer():
            return None
        value = str(int(value))
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value if value in allowed else None


class ChatMeta(BaseModel):
    """Format options read from document metadata (front-matter)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    max_width: Optional[str] = Field(default=None, alias="MaxWidth")
    header: Optional[str] = Field(default=None, alias="Header")
    mode: Optional[str] = Field(default=None, alias="Mode")

    @field_validator("max_width", mode="before")
    @classmethod
    def check_max_width(cls, v: Any) -> Optional[str]:
        return _allowed_or_none(v, FORMAT_CONFIGS["mw"])

    @field_validator("header", mode="before")
    @classmethod
    def check_header(cls, v: Any) -> Optional[str]:
        return _allowed_or_none(v, FORMAT_CONFIGS["header"])

    @field_validator("mode", mode="before")
    @classmethod
    def check_mode(cls, v: Any) -> Optional[str]:
        return _allowed_or_none(v, FORMAT_CONFIGS["mode"])

    def to_format_configs(self) -> Dict[str, str]:
        out: Dict[str, str] = {}
        if self.max_width is not None:
            out["mw"] = self.max_width
        if self.header is not None:
            out["header"] = self.header
        if self.mode is not None:
            out["mode"] = self.mode
        return out


def parse_meta_configs(meta: Any) -> Dict[str, str]:
    if meta is None:
        return {}
    if isinstance(meta, ChatMeta):
        return meta.to_format_configs()
    if not isinstance(meta, Mapping):
        return {}
    return ChatMeta.model_validate({str(k): v for k, v in meta.items()}).to_format_configs()
