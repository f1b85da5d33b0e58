from __future__ import annotations

import logging

from fastapi import APIRouter

from notiproof.pipeline.api.schemas import RenderRequest, RenderResponse, StatusResponse
from notiproof.pipeline.engine.adapters.registry import registered_sources
from notiproof.pipeline.engine.templates.renderer import placeholders, render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["meta"])


@router.get("/health", response_model=StatusResponse)
async def health():
    return {"status": "ok"}


@router.get("/sources")
async def sources():
    """Integration kinds with a dedicated adapter. Anything else is mapped generically."""
    return {"sources": registered_sources()}


@router.post("/render", response_model=RenderResponse)
async def render_preview(body: RenderRequest):
    return RenderResponse(
        message=render(body.template, body.data),
        placeholders=placeholders(body.template),
    )
