"""Gradio event handlers for the Style Transfer and Prompt Studio tabs.

Run handlers are async generators: every snapshot published by the
orchestrator is rendered and yielded, so Gradio updates the page while a
run is in flight.
"""

import logging
from typing import Any

import gradio as gr

from restyle.core.intake import clear_image, select_image
from restyle.core.models import RunPhase, WorkflowSnapshot
from restyle.core.validation import ValidationError

from .models import PROMPT_LOADING, RESULT_CARDS, UPLOAD_SLOTS, UIState
from .state import PresentationState, initialize_ui_state

logger = logging.getLogger(__name__)

STYLE_IDLE_MESSAGE = "*Upload a style image and a source image, then press Generate.*"
STUDIO_IDLE_MESSAGE = "*Upload a reference image and a source image, then press Generate.*"


# ---------------------------------------------------------------------------
# Upload handlers
# ---------------------------------------------------------------------------


def _ready_updates(state: UIState) -> tuple[Any, Any]:
    return gr.update(interactive=state.style_ready()), gr.update(interactive=state.studio_ready())


def select_upload_image(slot: str, path: str | None, state: UIState) -> tuple[Any, UIState, Any, Any]:
    """Handle a file uploaded into one of the image slots.

    Unsupported files are ignored: the slot keeps its previous image and the
    preview is reverted to it.

    Args:
        slot: UIState attribute of the slot (see UPLOAD_SLOTS)
        path: Path of the uploaded file
        state: UI state

    Returns:
        Tuple of (preview_update, updated_state, style_button_update, studio_button_update)
    """
    if slot not in UPLOAD_SLOTS:
        raise ValueError(f"Unknown upload slot: {slot}")

    current = getattr(state, slot)
    selected = select_image(current, path)
    setattr(state, slot, selected)

    if selected is current:
        # Rejected (or nothing uploaded): show the previous selection again
        preview = current.to_pil() if current is not None else None
    else:
        preview = gr.update()

    return (preview, state, *_ready_updates(state))


def clear_upload_image(slot: str, state: UIState) -> tuple[UIState, Any, Any]:
    """Handle removal of the image in one slot.

    Returns:
        Tuple of (updated_state, style_button_update, studio_button_update)
    """
    if slot not in UPLOAD_SLOTS:
        raise ValueError(f"Unknown upload slot: {slot}")

    setattr(state, slot, clear_image(getattr(state, slot)))
    return (state, *_ready_updates(state))


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def format_status(snapshot: WorkflowSnapshot, idle_message: str) -> str:
    """Render the status line for a snapshot as Markdown."""
    phase = snapshot.phase
    if phase is RunPhase.DERIVING_PROMPTS:
        return "⏳ **Generating prompts...**"
    if phase is RunPhase.SYNTHESIZING_IMAGES:
        return "⏳ **Generating images...**"
    if phase is RunPhase.DONE:
        return "✅ **Generation Complete!**"
    if phase is RunPhase.FAILED:
        return f"❌ **Error:** {snapshot.error_message}"
    return idle_message


def render_style_snapshot(snapshot: WorkflowSnapshot) -> tuple[Any, str]:
    """Render a single-shot snapshot.

    Returns:
        Tuple of (output_image, status_markdown)
    """
    image = snapshot.image.to_pil() if snapshot.image is not None else None
    return image, format_status(snapshot, STYLE_IDLE_MESSAGE)


def render_studio_snapshot(snapshot: WorkflowSnapshot) -> tuple[Any, ...]:
    """Render a multi-prompt snapshot.

    Returns:
        Tuple of (status_markdown, prompt_1, image_1, prompt_2, image_2, prompt_3, image_3)
    """
    slots = {slot.kind: slot for slot in snapshot.slots}
    outputs: list[Any] = [format_status(snapshot, STUDIO_IDLE_MESSAGE)]

    for kind, _title in RESULT_CARDS:
        slot = slots.get(kind)
        if snapshot.phase is RunPhase.DERIVING_PROMPTS and (slot is None or slot.prompt is None):
            prompt = PROMPT_LOADING
        else:
            prompt = slot.prompt if slot is not None and slot.prompt else ""
        image = slot.image.to_pil() if slot is not None and slot.image is not None else None
        outputs.extend([prompt, image])

    return tuple(outputs)


# ---------------------------------------------------------------------------
# Run handlers
# ---------------------------------------------------------------------------


async def run_style_transfer(state: UIState):
    """Run the single-shot flow and stream its progress.

    Yields:
        Tuple of (output_image, status_markdown, updated_state)
    """
    try:
        state = initialize_ui_state(state)
        orchestrator = state.style_orchestrator
        presentation = PresentationState(orchestrator)
        run = orchestrator.run_single_shot(state.style_image, state.style_source_image)
        async for snapshot in presentation.stream(run):
            yield (*render_style_snapshot(snapshot), state)

    except ValidationError as e:
        logger.warning(f"Validation error: {e}")
        yield gr.update(), f"❌ **Validation Error**\n\n{e}", state

    except Exception as e:
        logger.error(f"Error running style transfer: {e}", exc_info=True)
        yield None, f"❌ **Error**\n\nAn unexpected error occurred. Check logs for details.\n\n`{e}`", state


async def run_prompt_studio(state: UIState):
    """Run the multi-prompt flow and stream its progress.

    Yields:
        Tuple of (status_markdown, prompt/image pairs..., updated_state)
    """
    try:
        state = initialize_ui_state(state)
        orchestrator = state.studio_orchestrator
        presentation = PresentationState(orchestrator)
        run = orchestrator.run_multi_prompt(state.reference_image, state.studio_source_image)
        async for snapshot in presentation.stream(run):
            yield (*render_studio_snapshot(snapshot), state)

    except ValidationError as e:
        logger.warning(f"Validation error: {e}")
        unchanged = [gr.update()] * (2 * len(RESULT_CARDS))
        yield (f"❌ **Validation Error**\n\n{e}", *unchanged, state)

    except Exception as e:
        logger.error(f"Error running prompt studio: {e}", exc_info=True)
        cleared = ["", None] * len(RESULT_CARDS)
        yield (
            f"❌ **Error**\n\nAn unexpected error occurred. Check logs for details.\n\n`{e}`",
            *cleared,
            state,
        )


def clear_style_results(state: UIState) -> tuple[Any, str, UIState]:
    """Reset the Style Transfer result to idle.

    Returns:
        Tuple of (output_image, status_markdown, updated_state)
    """
    if state.style_orchestrator is None:
        return None, STYLE_IDLE_MESSAGE, state
    snapshot = state.style_orchestrator.clear()
    return (*render_style_snapshot(snapshot), state)


def clear_studio_results(state: UIState) -> tuple[Any, ...]:
    """Reset the Prompt Studio results to idle.

    Returns:
        Tuple of (status_markdown, prompt/image pairs..., updated_state)
    """
    if state.studio_orchestrator is None:
        return (STUDIO_IDLE_MESSAGE, *(["", None] * len(RESULT_CARDS)), state)
    snapshot = state.studio_orchestrator.clear()
    return (*render_studio_snapshot(snapshot), state)
