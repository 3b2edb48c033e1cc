from __future__ import annotations

import os
import sys
from typing import Mapping, Optional

from loguru import logger
from pydantic import BaseModel, Field


class ChatViewSettings(BaseModel):
    # Max request body for the preview app (bytes of UTF-8 text).
    max_text_bytes: int = Field(default=300_000)
    # Sliding-window rate limit per client for the preview app.
    rate_limit_window_seconds: int = Field(default=60)
    rate_limit_max_requests: int = Field(default=30)
    # Pick the mobile width class when no `mw` is configured.
    mobile: bool = Field(default=False)
    # Treat `>Name, ...` lines outside messages as forced right alignment.
    legacy_align: bool = Field(default=False)
    log_level: str = Field(default="INFO")


def _env_str(env: Mapping[str, str], name: str) -> Optional[str]:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _env_str(env, name)
    if raw is None:
        return default
    return int(float(raw))


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = _env_str(env, name)
    if raw is None:
        return default
    return raw.lower() not in {"0", "false", "no", "off"}


def load_settings(environ: Optional[Mapping[str, str]] = None) -> ChatViewSettings:
    env = os.environ if environ is None else environ
    defaults = ChatViewSettings()
    return ChatViewSettings(
        max_text_bytes=_env_int(env, "CHATVIEW_MAX_TEXT_BYTES", defaults.max_text_bytes),
        rate_limit_window_seconds=_env_int(env, "CHATVIEW_RATE_LIMIT_WINDOW_S", defaults.rate_limit_window_seconds),
        rate_limit_max_requests=_env_int(env, "CHATVIEW_RATE_LIMIT_MAX", defaults.rate_limit_max_requests),
        mobile=_env_bool(env, "CHATVIEW_MOBILE", defaults.mobile),
        legacy_align=_env_bool(env, "CHATVIEW_LEGACY_ALIGN", defaults.legacy_align),
        log_level=(_env_str(env, "CHATVIEW_LOG_LEVEL") or defaults.log_level).upper(),
    )


def configure_logging(settings: ChatViewSettings) -> None:
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level, format="{time:HH:mm:ss} {level} {message}")
