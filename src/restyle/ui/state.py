"""State management utilities for Restyle UI.

This module handles the initialization of per-session UI state and the
presentation state holder that turns orchestrator snapshots into a stream
the Gradio handlers can render from.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable
from functools import lru_cache

from restyle.core.config import config
from restyle.core.gemini_client import GeminiClient, create_gemini_client
from restyle.core.models import WorkflowSnapshot
from restyle.core.orchestrator import WorkflowOrchestrator

from .models import UIState

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_default_client() -> GeminiClient:
    """Return the process-wide Gemini client built from ``config``.

    Raises:
        MissingAPIKeyError: If no API key is configured
    """
    logger.info(f"Creating Gemini client (text={config.text_model}, image={config.image_model})")
    return create_gemini_client(config)


def initialize_ui_state(state: UIState | None = None, client: GeminiClient | None = None) -> UIState:
    """Initialize or ensure UI state is ready.

    Orchestrators are created lazily on the first run so that building the
    UI never needs an API client.

    Args:
        state: Existing UIState or None
        client: Client to use (default: :func:`get_default_client`)

    Returns:
        Initialized UIState instance
    """
    if state is None:
        logger.info("Creating new UIState")
        state = UIState()

    if state.is_initialized():
        logger.debug("UIState already initialized")
        return state

    client = client or get_default_client()

    if state.style_orchestrator is None:
        logger.info("Initializing Style Transfer orchestrator")
        state.style_orchestrator = WorkflowOrchestrator(client)

    if state.studio_orchestrator is None:
        logger.info("Initializing Prompt Studio orchestrator")
        state.studio_orchestrator = WorkflowOrchestrator(client)

    logger.info(f"UIState initialization complete: {state}")
    return state


class PresentationState:
    """Passive holder of the latest snapshot of one orchestrator.

    Subscribes to the orchestrator on creation and records every published
    snapshot. :meth:`stream` drives one run and yields each snapshot as it
    is published, so the prompts of a multi-prompt run can be rendered
    while the images are still loading.

    Args:
        orchestrator: Orchestrator to observe
    """

    def __init__(self, orchestrator: WorkflowOrchestrator):
        self.snapshot: WorkflowSnapshot = orchestrator.snapshot
        self._changes: asyncio.Queue[WorkflowSnapshot] = asyncio.Queue()
        self._unsubscribe = orchestrator.subscribe(self._on_change)

    def _on_change(self, snapshot: WorkflowSnapshot) -> None:
        self.snapshot = snapshot
        self._changes.put_nowait(snapshot)

    def close(self) -> None:
        """Stop observing the orchestrator."""
        self._unsubscribe()

    async def stream(self, run: Awaitable[WorkflowSnapshot]) -> AsyncIterator[WorkflowSnapshot]:
        """Run ``run`` and yield every snapshot published while it executes.

        Errors raised by the run itself (e.g. ValidationError) are re-raised
        after all published snapshots have been yielded.
        """
        task = asyncio.ensure_future(run)
        try:
            while True:
                if not self._changes.empty():
                    yield self._changes.get_nowait()
                    continue
                if task.done():
                    break
                getter = asyncio.ensure_future(self._changes.get())
                await asyncio.wait({task, getter}, return_when=asyncio.FIRST_COMPLETED)
                if getter.done():
                    yield getter.result()
                else:
                    getter.cancel()
        finally:
            self.close()
        task.result()
