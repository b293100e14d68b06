"""Data models for Restyle UI session state."""

import logging
from dataclasses import dataclass
from typing import Any

from restyle.core.models import SLOT_TITLES, EncodedImage, PromptKind

logger = logging.getLogger(__name__)


@dataclass
class UIState:
    """Session state for the Gradio UI.

    Each user gets their own UIState instance. The two tabs have separate
    orchestrators so that a run in one tab never supersedes a run in the
    other.

    Attributes
    ----------
    style_orchestrator : Any | None
        WorkflowOrchestrator for the Style Transfer tab
    studio_orchestrator : Any | None
        WorkflowOrchestrator for the Prompt Studio tab
    style_image : EncodedImage | None
        Style reference image (Style Transfer tab)
    style_source_image : EncodedImage | None
        Source face image (Style Transfer tab)
    reference_image : EncodedImage | None
        Reference image prompts are derived from (Prompt Studio tab)
    studio_source_image : EncodedImage | None
        Source face image (Prompt Studio tab)
    """

    # Orchestrators
    style_orchestrator: Any | None = None  # WorkflowOrchestrator instance
    studio_orchestrator: Any | None = None  # WorkflowOrchestrator instance

    # Style Transfer selections
    style_image: EncodedImage | None = None
    style_source_image: EncodedImage | None = None

    # Prompt Studio selections
    reference_image: EncodedImage | None = None
    studio_source_image: EncodedImage | None = None

    def is_initialized(self) -> bool:
        """Check if both orchestrators have been created."""
        return self.style_orchestrator is not None and self.studio_orchestrator is not None

    def style_ready(self) -> bool:
        return self.style_image is not None and self.style_source_image is not None

    def studio_ready(self) -> bool:
        return self.reference_image is not None and self.studio_source_image is not None

    def __repr__(self) -> str:
        """String representation for debugging."""
        selected = [name for name in UPLOAD_SLOTS if getattr(self, name) is not None]
        return f"UIState(initialized={self.is_initialized()}, selected={selected})"


# Upload slot attribute -> component label
UPLOAD_SLOTS: dict[str, str] = {
    "style_image": "Reference Style Image",
    "style_source_image": "Source Face Image",
    "reference_image": "Reference Image",
    "studio_source_image": "Source Face Image",
}

# Result cards in display order
RESULT_CARDS: list[tuple[PromptKind, str]] = [(kind, SLOT_TITLES[kind]) for kind in PromptKind]

PROMPT_PLACEHOLDER = "Prompt will appear here."
PROMPT_LOADING = "Generating prompt..."
