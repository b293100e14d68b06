"""Domain models shared by intake, the API client and the orchestrator.

All run-level values are immutable: the orchestrator never mutates a
snapshot in place, it builds a new one with :func:`dataclasses.replace` and
publishes it. This keeps the presentation layer free to hold on to any
snapshot it has been given.
"""

import base64
import io
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

# Declared media type -> file extension used for generated file names
SUPPORTED_MEDIA_TYPES: dict[str, str] = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
}

# Pillow format names accepted for each supported media type (camera JPEGs open as MPO)
PIL_FORMATS: dict[str, frozenset[str]] = {
    "image/png": frozenset({"PNG"}),
    "image/jpeg": frozenset({"JPEG", "MPO"}),
}

Flow = Literal["single-shot", "multi-prompt"]


@dataclass(frozen=True)
class EncodedImage:
    """Binary image data held as a self-describing data URL.

    Attributes:
        data: ``data:<media_type>;base64,<payload>``
        media_type: Declared media type (``image/png`` or ``image/jpeg``)
        name: Original (or generated) file name
    """

    data: str
    media_type: str
    name: str

    @classmethod
    def from_bytes(cls, raw: bytes, media_type: str, name: str) -> "EncodedImage":
        """Build an EncodedImage from raw bytes without further validation."""
        payload = base64.b64encode(raw).decode("ascii")
        return cls(data=f"data:{media_type};base64,{payload}", media_type=media_type, name=name)

    @property
    def base64_data(self) -> str:
        """Base64 payload with the data URL prefix removed."""
        return self.data.split(",", 1)[1]

    def to_bytes(self) -> bytes:
        """Decode the payload back to raw image bytes."""
        return base64.b64decode(self.base64_data)

    @property
    def byte_length(self) -> int:
        return len(self.to_bytes())

    def to_pil(self) -> Image.Image:
        """Open the image with Pillow for display."""
        image = Image.open(io.BytesIO(self.to_bytes()))
        image.load()
        return image

    def __repr__(self) -> str:
        return f"EncodedImage(name={self.name!r}, media_type={self.media_type!r}, chars={len(self.data)})"


class PromptKind(str, Enum):
    """The three prompt flavours derived from one reference image."""

    SIMPLE = "simple"
    DETAILED = "detailed"
    TECHNICAL = "technical"


SLOT_TITLES: dict[PromptKind, str] = {
    PromptKind.SIMPLE: "Simple Prompt",
    PromptKind.DETAILED: "Detailed Prompt",
    PromptKind.TECHNICAL: "Technical Prompt",
}


class PromptSet(BaseModel):
    """Three descriptive prompts derived atomically from a reference image.

    The remote service is asked for exactly this shape, but its answer is
    untyped text. Every field must be present, be a string and be non-empty
    after stripping; anything else fails validation.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    simple: str = Field(..., strict=True, description="Simple prompt (style, background, pose)")
    detailed: str = Field(..., strict=True, description="Detailed, moody prompt")
    technical: str = Field(..., strict=True, description="Technical, photographic prompt")

    @field_validator("simple", "detailed", "technical")
    @classmethod
    def _require_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("prompt must not be empty")
        return value

    @classmethod
    def from_model_text(cls, text: str) -> "PromptSet":
        """Parse the JSON text returned by the model.

        Raises:
            pydantic.ValidationError: If the text is not JSON or does not
                match the three-field shape
        """
        return cls.model_validate_json(text.strip())

    def get(self, kind: PromptKind) -> str:
        return getattr(self, kind.value)


class RunPhase(str, Enum):
    """Lifecycle phase of one run."""

    IDLE = "idle"
    DERIVING_PROMPTS = "deriving-prompts"
    SYNTHESIZING_IMAGES = "synthesizing-images"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_loading(self) -> bool:
        return self in (RunPhase.DERIVING_PROMPTS, RunPhase.SYNTHESIZING_IMAGES)

    @property
    def is_terminal(self) -> bool:
        return self in (RunPhase.DONE, RunPhase.FAILED)


# Forward-only transitions; the only way back is a fresh RunState (idle)
_ALLOWED_TRANSITIONS: dict[RunPhase, frozenset[RunPhase]] = {
    RunPhase.IDLE: frozenset({RunPhase.DERIVING_PROMPTS, RunPhase.SYNTHESIZING_IMAGES}),
    RunPhase.DERIVING_PROMPTS: frozenset({RunPhase.SYNTHESIZING_IMAGES, RunPhase.FAILED}),
    RunPhase.SYNTHESIZING_IMAGES: frozenset({RunPhase.DONE, RunPhase.FAILED}),
    RunPhase.DONE: frozenset(),
    RunPhase.FAILED: frozenset(),
}


@dataclass(frozen=True)
class RunState:
    """Phase of the current run plus the error message of a failed run."""

    phase: RunPhase = RunPhase.IDLE
    error_message: str | None = None

    def advance(self, phase: RunPhase, error_message: str | None = None) -> "RunState":
        """Return the state after moving to ``phase``.

        Args:
            phase: Target phase
            error_message: Required when moving to FAILED, ignored otherwise

        Returns:
            New RunState

        Raises:
            ValueError: If the transition is not a forward transition
        """
        if phase not in _ALLOWED_TRANSITIONS[self.phase]:
            raise ValueError(f"Invalid run transition: {self.phase.value} -> {phase.value}")
        if phase is RunPhase.FAILED:
            return RunState(phase=phase, error_message=error_message or "Run failed")
        return RunState(phase=phase)


@dataclass(frozen=True)
class ResultSlot:
    """One result card of a multi-prompt run."""

    kind: PromptKind
    title: str
    prompt: str | None = None
    image: EncodedImage | None = None

    @property
    def is_empty(self) -> bool:
        return self.prompt is None and self.image is None


def empty_slots() -> tuple[ResultSlot, ...]:
    """Create the three empty result slots, in display order."""
    return tuple(ResultSlot(kind=kind, title=SLOT_TITLES[kind]) for kind in PromptKind)


@dataclass(frozen=True)
class WorkflowSnapshot:
    """Everything the presentation layer needs to render one moment of a run.

    Attributes:
        run_id: Identifier of the run that produced this snapshot (0 = none)
        flow: Which flow the run belongs to, None before the first run
        state: Phase and error message
        slots: Result slots (multi-prompt flow only)
        image: Synthesized image (single-shot flow only)
    """

    run_id: int = 0
    flow: Flow | None = None
    state: RunState = field(default_factory=RunState)
    slots: tuple[ResultSlot, ...] = ()
    image: EncodedImage | None = None

    @property
    def phase(self) -> RunPhase:
        return self.state.phase

    @property
    def error_message(self) -> str | None:
        return self.state.error_message
