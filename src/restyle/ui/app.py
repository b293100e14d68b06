"""Gradio UI for Restyle Image Generator."""

import logging

import gradio as gr

from .handlers import (
    STUDIO_IDLE_MESSAGE,
    STYLE_IDLE_MESSAGE,
    clear_studio_results,
    clear_style_results,
    clear_upload_image,
    run_prompt_studio,
    run_style_transfer,
    select_upload_image,
)
from .models import PROMPT_PLACEHOLDER, RESULT_CARDS, UPLOAD_SLOTS, UIState

logger = logging.getLogger(__name__)


def create_ui() -> gr.Blocks:
    """Create the Gradio UI.

    Returns:
        Gradio Blocks app
    """
    app = gr.Blocks(title="Restyle Image Generator")

    with app:
        # Session state - one instance per user
        ui_state = gr.State(UIState())

        gr.Markdown(
            """
            # Restyle Image Generator
            ### Place a person into any scene with Gemini
            """
        )

        with gr.Tabs():
            with gr.Tab("Style Transfer", id="style_tab"):
                style_components = create_style_tab(ui_state)

            with gr.Tab("Prompt Studio", id="studio_tab"):
                studio_components = create_studio_tab(ui_state)

        # Upload events are wired here because every upload changes the
        # enabled state of both Generate buttons
        buttons = [style_components["generate_btn"], studio_components["generate_btn"]]
        uploads = {**style_components["uploads"], **studio_components["uploads"]}
        for slot, component in uploads.items():
            _wire_upload(slot, component, ui_state, buttons)

    return app


def _upload_component(slot: str) -> gr.Image:
    # image_mode=None keeps the uploaded file untouched (no RGB re-encode)
    return gr.Image(
        label=UPLOAD_SLOTS[slot],
        type="filepath",
        image_mode=None,
        sources=["upload"],
        height=320,
    )


def _wire_upload(slot: str, component: gr.Image, ui_state: gr.State, buttons: list) -> None:
    component.upload(
        fn=lambda path, state: select_upload_image(slot, path, state),
        inputs=[component, ui_state],
        outputs=[component, ui_state, *buttons],
    )
    component.clear(
        fn=lambda state: clear_upload_image(slot, state),
        inputs=[ui_state],
        outputs=[ui_state, *buttons],
    )


def create_style_tab(ui_state: gr.State) -> dict:
    """Create the single-shot Style Transfer tab.

    Args:
        ui_state: UI state component

    Returns:
        Dictionary of components needed for cross-tab event wiring
    """
    gr.Markdown("Combine the scene of a style image with the person from a source image.")

    with gr.Row():
        with gr.Column(scale=1):
            style_input = _upload_component("style_image")
        with gr.Column(scale=1):
            source_input = _upload_component("style_source_image")
        with gr.Column(scale=1):
            output_image = gr.Image(
                label="Generated Image",
                type="pil",
                interactive=False,
                height=320,
            )

    with gr.Row():
        generate_btn = gr.Button("Generate Image", variant="primary", interactive=False)
        clear_btn = gr.Button("Clear Result", variant="secondary")

    status = gr.Markdown(value=STYLE_IDLE_MESSAGE)

    generate_btn.click(
        fn=run_style_transfer,
        inputs=[ui_state],
        outputs=[output_image, status, ui_state],
    )
    clear_btn.click(
        fn=clear_style_results,
        inputs=[ui_state],
        outputs=[output_image, status, ui_state],
    )

    return {
        "generate_btn": generate_btn,
        "uploads": {"style_image": style_input, "style_source_image": source_input},
    }


def create_studio_tab(ui_state: gr.State) -> dict:
    """Create the multi-prompt Prompt Studio tab.

    Three prompts are derived from the reference image; each one is then
    used to generate an image of the person from the source image.

    Args:
        ui_state: UI state component

    Returns:
        Dictionary of components needed for cross-tab event wiring
    """
    gr.Markdown(
        "Derive three prompts from a reference image, then generate one image per prompt."
    )

    with gr.Row():
        with gr.Column(scale=1):
            reference_input = _upload_component("reference_image")
        with gr.Column(scale=1):
            source_input = _upload_component("studio_source_image")

    with gr.Row():
        generate_btn = gr.Button("Generate", variant="primary", interactive=False)
        clear_btn = gr.Button("Clear Results", variant="secondary")

    status = gr.Markdown(value=STUDIO_IDLE_MESSAGE)

    card_outputs = []
    with gr.Row():
        for _kind, title in RESULT_CARDS:
            with gr.Column(scale=1):
                gr.Markdown(f"### {title}")
                image = gr.Image(label=title, type="pil", interactive=False, height=320)
                prompt = gr.Textbox(
                    label="Prompt",
                    placeholder=PROMPT_PLACEHOLDER,
                    lines=5,
                    interactive=False,
                )
                card_outputs.extend([prompt, image])

    generate_btn.click(
        fn=run_prompt_studio,
        inputs=[ui_state],
        outputs=[status, *card_outputs, ui_state],
    )
    clear_btn.click(
        fn=clear_studio_results,
        inputs=[ui_state],
        outputs=[status, *card_outputs, ui_state],
    )

    return {
        "generate_btn": generate_btn,
        "uploads": {"reference_image": reference_input, "studio_source_image": source_input},
    }
