"""Restyle Image Generator — FastAPI Application.

This module is the single entry point for the web application.  It defines
the FastAPI ``app`` instance, the REST API routes, mounts the Gradio UI, and
provides the ``main()`` function that launches the uvicorn server.

Architecture
------------
- **Configuration** comes from :data:`~restyle.core.config.config`.  The
  Gemini API key is required: startup fails without it.
- **Generation** is delegated to a fresh
  :class:`~restyle.core.orchestrator.WorkflowOrchestrator` per request, so
  the REST layer is stateless.
- **The browser UI** is the Gradio app from :mod:`restyle.ui.app`, mounted
  at ``/ui``.

Endpoints
---------
========  =================  ==========================================
Method    Path               Purpose
========  =================  ==========================================
GET       ``/``              Redirect to the Gradio UI
GET       ``/api/config``    Version, models, media types, slot titles
POST      ``/api/style``     Single-shot style transfer
POST      ``/api/prompts``   Multi-prompt generation (three results)
========  =================  ==========================================

Usage
-----
CLI (installed entry point)::

    restyle

Direct invocation::

    python -m restyle.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import gradio as gr
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from restyle import __version__
from restyle.api.models import ImagePayload, PromptStudioRequest, RunResponse, StyleRequest
from restyle.core.config import config
from restyle.core.errors import ImageRejectedError, MissingAPIKeyError
from restyle.core.gemini_client import GeminiClient
from restyle.core.intake import decode_data_url
from restyle.core.models import SLOT_TITLES, SUPPORTED_MEDIA_TYPES, EncodedImage
from restyle.core.orchestrator import WorkflowOrchestrator
from restyle.core.validation import ValidationError
from restyle.ui.app import create_ui
from restyle.ui.state import get_default_client

logger = logging.getLogger(__name__)

UI_PATH = "/ui"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    On startup:
        Builds the shared Gemini client and stores it on ``app.state``.
        A missing API key raises :class:`MissingAPIKeyError` and aborts
        startup.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    app.state.gemini_client = get_default_client()
    logger.info("Gemini client initialised.")

    yield

    logger.info("Shutting down.")


app = FastAPI(
    title="Restyle Image Generator",
    description="Style transfer and prompt studio on top of the Gemini image API.",
    version=__version__,
    lifespan=lifespan,
)

# Allow cross-origin requests so a separately served frontend can call the
# API during development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_client(request: Request) -> GeminiClient:
    """Dependency returning the shared Gemini client."""
    return request.app.state.gemini_client


def _decode_payload(payload: ImagePayload | None) -> EncodedImage | None:
    """Decode an optional image payload.

    Raises:
        HTTPException: 415 if the image is rejected by intake.
    """
    if payload is None:
        return None
    try:
        return decode_data_url(payload.data, name=payload.name)
    except ImageRejectedError as e:
        logger.warning(f"Rejected uploaded image {payload.name}: {e.reason}")
        raise HTTPException(status_code=415, detail=str(e)) from e


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/", include_in_schema=False)
async def index() -> RedirectResponse:
    """Redirect the bare root to the Gradio UI."""
    return RedirectResponse(url=UI_PATH)


@app.get("/api/config")
async def get_config() -> dict:
    """Return the application configuration for clients.

    Returns:
        Dictionary with keys ``version``, ``text_model``, ``image_model``,
        ``media_types`` and ``slots``.
    """
    return {
        "version": __version__,
        "text_model": config.text_model,
        "image_model": config.image_model,
        "media_types": list(SUPPORTED_MEDIA_TYPES),
        "slots": [{"kind": kind.value, "title": title} for kind, title in SLOT_TITLES.items()],
    }


@app.post("/api/style")
async def style_transfer(req: StyleRequest, client: GeminiClient = Depends(get_client)) -> dict:
    """Generate one image from a style image and a source image.

    A failed run is still a completed request: it is returned with
    ``phase="failed"`` and an ``error_message``.

    Raises:
        HTTPException: 400 if an image is missing, 415 if one is rejected.
    """
    style_image = _decode_payload(req.style_image)
    source_image = _decode_payload(req.source_image)

    orchestrator = WorkflowOrchestrator(client)
    try:
        snapshot = await orchestrator.run_single_shot(style_image, source_image)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return RunResponse.from_snapshot(snapshot).model_dump()


@app.post("/api/prompts")
async def prompt_studio(
    req: PromptStudioRequest, client: GeminiClient = Depends(get_client)
) -> dict:
    """Derive three prompts from a reference image and generate an image for each.

    Raises:
        HTTPException: 400 if an image is missing, 415 if one is rejected.
    """
    reference_image = _decode_payload(req.reference_image)
    source_image = _decode_payload(req.source_image)

    orchestrator = WorkflowOrchestrator(client)
    try:
        snapshot = await orchestrator.run_multi_prompt(reference_image, source_image)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return RunResponse.from_snapshot(snapshot).model_dump()


# Mounted last so the API routes above take precedence.
app = gr.mount_gradio_app(app, create_ui(), path=UI_PATH)


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :data:`~restyle.core.config.config` (which
    loads from ``RESTYLE_SERVER_HOST`` and ``RESTYLE_SERVER_PORT``
    environment variables).  Defaults to ``0.0.0.0:7860``.

    The API key is checked before the server starts; without it the
    process exits with :class:`MissingAPIKeyError`.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("Starting Restyle Image Generator...")

    try:
        config.require_api_key()
    except MissingAPIKeyError as e:
        logger.error(f"Cannot start: {e}")
        raise

    uvicorn.run(
        "restyle.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
