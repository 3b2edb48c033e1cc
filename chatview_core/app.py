from __future__ import annotations

import threading
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from chatview_core.chat_text_to_json import convert_text
from chatview_core.html_render import render_html
from chatview_core.settings import configure_logging, load_settings


SETTINGS = load_settings()

_rate_lock = threading.Lock()
_rate_hits: Dict[str, list[float]] = {}


class ParseRequest(BaseModel):
    text: str = Field(default="")
    meta: Optional[Dict[str, Any]] = None
    mobile: Optional[bool] = None
    legacy_align: Optional[bool] = None


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    configure_logging(SETTINGS)
    logger.info(f"chat view app started | max_text_bytes={SETTINGS.max_text_bytes}")
    yield


app = FastAPI(title="Chat View", version="0.1.0", lifespan=lifespan)


def _check_text_size(text: str) -> None:
    if len(text.encode("utf-8")) > SETTINGS.max_text_bytes:
        raise HTTPException(status_code=413, detail=f"text too large (max {SETTINGS.max_text_bytes} bytes)")


def _client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _rate_limit(request: Request) -> None:
    now = time.monotonic()
    cutoff = now - SETTINGS.rate_limit_window_seconds
    key = _client_key(request)
    with _rate_lock:
        # Drop clients with no hits left in the window.
        for idle in [k for k, hits in _rate_hits.items() if not hits or hits[-1] < cutoff]:
            del _rate_hits[idle]
        hits = [t for t in _rate_hits.get(key, []) if t >= cutoff]
        if len(hits) >= SETTINGS.rate_limit_max_requests:
            _rate_hits[key] = hits
            raise HTTPException(status_code=429, detail="rate limited")
        hits.append(now)
        _rate_hits[key] = hits


def _options(req: ParseRequest) -> Dict[str, Any]:
    return {
        "meta": req.meta,
        "mobile": SETTINGS.mobile if req.mobile is None else req.mobile,
        "legacy_align": SETTINGS.legacy_align if req.legacy_align is None else req.legacy_align,
    }


@app.get("/api/health")
def health() -> Dict[str, Any]:
    return {"ok": True}


@app.post("/api/parse")
def parse(req: ParseRequest, request: Request) -> JSONResponse:
    _rate_limit(request)
    _check_text_size(req.text)
    try:
        data = convert_text(req.text, **_options(req))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.info(f"parse ok | bytes={len(req.text)} blocks={len(data['blocks'])}")
    return JSONResponse({"data": data})


@app.post("/api/render")
def render(req: ParseRequest, request: Request) -> HTMLResponse:
    _rate_limit(request)
    _check_text_size(req.text)
    try:
        html = render_html(req.text, **_options(req))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.info(f"render ok | bytes={len(req.text)}")
    return HTMLResponse(html)
