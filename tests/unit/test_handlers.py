"""Unit tests for the Gradio event handlers.

Run handlers are async generators; async tests drain them against a
UIState initialized with ``stub_client``.
"""

import pytest
from PIL import Image

from restyle.core.errors import ImageSynthesisError
from restyle.core.models import (
    PromptKind,
    ResultSlot,
    RunPhase,
    RunState,
    WorkflowSnapshot,
    empty_slots,
)
from restyle.ui.handlers import (
    STUDIO_IDLE_MESSAGE,
    STYLE_IDLE_MESSAGE,
    clear_studio_results,
    clear_style_results,
    clear_upload_image,
    format_status,
    render_studio_snapshot,
    render_style_snapshot,
    run_prompt_studio,
    run_style_transfer,
    select_upload_image,
)
from restyle.ui.models import PROMPT_LOADING
from restyle.ui.state import initialize_ui_state


async def _drain(gen) -> list:
    return [item async for item in gen]


@pytest.fixture
def ready_state(ui_state, stub_client):
    return initialize_ui_state(ui_state, client=stub_client)


class TestUploadHandlers:
    """Tests for select_upload_image / clear_upload_image."""

    def test_select_stores_image(self, ui_state, png_file):
        preview, state, style_btn, studio_btn = select_upload_image(
            "style_source_image", str(png_file), ui_state
        )

        assert state.style_source_image.name == "face.png"
        assert preview == {"__type__": "update"}
        assert style_btn["interactive"] is False
        assert studio_btn["interactive"] is False

    def test_both_images_enable_generate(self, ui_state, png_file, jpeg_file):
        select_upload_image("style_image", str(jpeg_file), ui_state)
        _, state, style_btn, studio_btn = select_upload_image(
            "style_source_image", str(png_file), ui_state
        )

        assert state.style_ready()
        assert style_btn["interactive"] is True
        assert studio_btn["interactive"] is False

    def test_rejected_upload_keeps_previous_image(self, ui_state, jpeg_file, temp_dir):
        select_upload_image("reference_image", str(jpeg_file), ui_state)
        previous = ui_state.reference_image
        bad = temp_dir / "anim.gif"
        bad.write_bytes(b"GIF89a")

        preview, state, _, _ = select_upload_image("reference_image", str(bad), ui_state)

        assert state.reference_image is previous
        assert isinstance(preview, Image.Image)

    def test_rejected_upload_without_previous(self, ui_state, temp_dir):
        bad = temp_dir / "notes.txt"
        bad.write_text("hello")

        preview, state, _, _ = select_upload_image("reference_image", str(bad), ui_state)

        assert state.reference_image is None
        assert preview is None

    def test_clear_removes_only_that_slot(self, ui_state, png_file, jpeg_file):
        select_upload_image("reference_image", str(jpeg_file), ui_state)
        select_upload_image("studio_source_image", str(png_file), ui_state)

        state, style_btn, studio_btn = clear_upload_image("reference_image", ui_state)

        assert state.reference_image is None
        assert state.studio_source_image is not None
        assert studio_btn["interactive"] is False

    def test_unknown_slot(self, ui_state):
        with pytest.raises(ValueError):
            select_upload_image("nope", None, ui_state)
        with pytest.raises(ValueError):
            clear_upload_image("nope", ui_state)


class TestRendering:
    """Tests for status and snapshot rendering."""

    @pytest.mark.parametrize(
        "phase, expected",
        [
            (RunPhase.DERIVING_PROMPTS, "Generating prompts"),
            (RunPhase.SYNTHESIZING_IMAGES, "Generating images"),
        ],
    )
    def test_loading_status(self, phase, expected):
        snapshot = WorkflowSnapshot(run_id=1, state=RunState(phase=phase))
        assert expected in format_status(snapshot, "idle")

    def test_failed_status_shows_message(self):
        snapshot = WorkflowSnapshot(run_id=1, state=RunState(RunPhase.FAILED, "no image returned"))
        assert "no image returned" in format_status(snapshot, "idle")

    def test_idle_status(self):
        assert format_status(WorkflowSnapshot(), "idle text") == "idle text"

    def test_render_style_snapshot(self, generated_image):
        snapshot = WorkflowSnapshot(
            run_id=1, flow="single-shot", state=RunState(RunPhase.DONE), image=generated_image
        )
        image, status = render_style_snapshot(snapshot)
        assert isinstance(image, Image.Image)
        assert "Complete" in status

    def test_render_studio_loading_prompts(self):
        snapshot = WorkflowSnapshot(
            run_id=1,
            flow="multi-prompt",
            state=RunState(RunPhase.DERIVING_PROMPTS),
            slots=empty_slots(),
        )
        outputs = render_studio_snapshot(snapshot)

        assert len(outputs) == 7
        assert outputs[1::2] == (PROMPT_LOADING,) * 3
        assert outputs[2::2] == (None,) * 3

    def test_render_studio_prompts_while_images_load(self):
        slots = tuple(
            ResultSlot(kind=kind, title=kind.value, prompt=f"{kind.value} prompt") for kind in PromptKind
        )
        snapshot = WorkflowSnapshot(
            run_id=1,
            flow="multi-prompt",
            state=RunState(RunPhase.SYNTHESIZING_IMAGES),
            slots=slots,
        )
        outputs = render_studio_snapshot(snapshot)

        assert outputs[1::2] == ("simple prompt", "detailed prompt", "technical prompt")
        assert outputs[2::2] == (None,) * 3


class TestRunStyleTransfer:
    """Tests for the run_style_transfer handler."""

    @pytest.mark.asyncio
    async def test_success_streams_progress(self, ready_state, style_image, source_image):
        ready_state.style_image = style_image
        ready_state.style_source_image = source_image

        outputs = await _drain(run_style_transfer(ready_state))

        assert "Generating images" in outputs[0][1]
        image, status, state = outputs[-1]
        assert isinstance(image, Image.Image)
        assert "Complete" in status
        assert state is ready_state

    @pytest.mark.asyncio
    async def test_missing_image_shows_validation_error(self, ready_state, stub_client, source_image):
        ready_state.style_source_image = source_image

        outputs = await _drain(run_style_transfer(ready_state))

        assert len(outputs) == 1
        assert "Validation Error" in outputs[0][1]
        assert "style and a source image" in outputs[0][1]
        assert stub_client.synthesize_styled_image.await_count == 0

    @pytest.mark.asyncio
    async def test_failure_shows_error(self, ready_state, stub_client, style_image, source_image):
        stub_client.synthesize_styled_image.side_effect = ImageSynthesisError("no image returned")
        ready_state.style_image = style_image
        ready_state.style_source_image = source_image

        outputs = await _drain(run_style_transfer(ready_state))

        image, status, _ = outputs[-1]
        assert image is None
        assert "no image returned" in status


class TestRunPromptStudio:
    """Tests for the run_prompt_studio handler."""

    @pytest.mark.asyncio
    async def test_success(self, ready_state, style_image, source_image, sample_prompts):
        ready_state.reference_image = style_image
        ready_state.studio_source_image = source_image

        outputs = await _drain(run_prompt_studio(ready_state))

        final = outputs[-1]
        assert "Complete" in final[0]
        assert final[1] == sample_prompts.simple
        assert final[3] == sample_prompts.detailed
        assert final[5] == sample_prompts.technical
        assert all(isinstance(image, Image.Image) for image in final[2:7:2])
        assert final[-1] is ready_state

    @pytest.mark.asyncio
    async def test_missing_image_shows_validation_error(self, ready_state, source_image):
        ready_state.studio_source_image = source_image

        outputs = await _drain(run_prompt_studio(ready_state))

        assert len(outputs) == 1
        assert "reference and a source image" in outputs[0][0]


class TestClearResults:
    """Tests for clearing results."""

    def test_clear_style_before_any_run(self, ui_state):
        image, status, state = clear_style_results(ui_state)
        assert image is None
        assert status == STYLE_IDLE_MESSAGE

    @pytest.mark.asyncio
    async def test_clear_style_after_run(self, ready_state, style_image, source_image):
        ready_state.style_image = style_image
        ready_state.style_source_image = source_image
        await _drain(run_style_transfer(ready_state))

        image, status, state = clear_style_results(ready_state)

        assert image is None
        assert status == STYLE_IDLE_MESSAGE
        assert state.style_orchestrator.snapshot.phase is RunPhase.IDLE
        # Selections are kept
        assert state.style_image is style_image

    def test_clear_studio(self, ready_state):
        outputs = clear_studio_results(ready_state)
        assert outputs[0] == STUDIO_IDLE_MESSAGE
        assert outputs[1:7] == ("", None, "", None, "", None)
