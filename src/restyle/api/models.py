"""Pydantic request and response models for the Restyle API.

These models define the JSON schema for every API endpoint.  FastAPI uses
them for automatic request validation, serialisation, and OpenAPI
documentation generation.

Models
------
ImagePayload
    One image as a base64 data URL plus its file name.
StyleRequest
    Payload for ``POST /api/style`` — style and source image.
PromptStudioRequest
    Payload for ``POST /api/prompts`` — reference and source image.
SlotResponse / RunResponse
    Final snapshot of a run, as returned by both generation endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from restyle.core.models import EncodedImage, ResultSlot, WorkflowSnapshot


class ImagePayload(BaseModel):
    """An image transported as a data URL.

    Attributes:
        data: ``data:<media type>;base64,<payload>``; only PNG and JPEG are
            accepted.
        name: Original file name.
    """

    data: str = Field(
        ...,
        description="Base64 data URL (data:image/png;base64,... or data:image/jpeg;base64,...).",
    )
    name: str = Field(
        default="image",
        description="Original file name.",
    )

    @classmethod
    def from_encoded(cls, image: EncodedImage) -> ImagePayload:
        return cls(data=image.data, name=image.name)


class StyleRequest(BaseModel):
    """Request body for the ``POST /api/style`` endpoint.

    Both images are optional in the schema so that a missing image is
    reported with the same user-facing message as in the UI (HTTP 400)
    rather than a schema error.

    Attributes:
        style_image: Image whose scene, lighting and pose are reused.
        source_image: Image of the person to place into the scene.
    """

    style_image: ImagePayload | None = Field(
        default=None,
        description="Style reference image.",
    )
    source_image: ImagePayload | None = Field(
        default=None,
        description="Source face image.",
    )


class PromptStudioRequest(BaseModel):
    """Request body for the ``POST /api/prompts`` endpoint.

    Attributes:
        reference_image: Image the three prompts are derived from.
        source_image: Image of the person to place into each scene.
    """

    reference_image: ImagePayload | None = Field(
        default=None,
        description="Reference image for prompt derivation.",
    )
    source_image: ImagePayload | None = Field(
        default=None,
        description="Source face image.",
    )


class SlotResponse(BaseModel):
    """One result card of a multi-prompt run."""

    kind: str
    title: str
    prompt: str | None = None
    image: ImagePayload | None = None

    @classmethod
    def from_slot(cls, slot: ResultSlot) -> SlotResponse:
        return cls(
            kind=slot.kind.value,
            title=slot.title,
            prompt=slot.prompt,
            image=ImagePayload.from_encoded(slot.image) if slot.image is not None else None,
        )


class RunResponse(BaseModel):
    """Final state of a run.

    Attributes:
        run_id: Identifier of the run.
        flow: ``"single-shot"`` or ``"multi-prompt"``.
        phase: ``"done"`` or ``"failed"``.
        error_message: Human-readable failure message (failed runs only).
        image: Generated image (single-shot runs only).
        slots: Result cards (multi-prompt runs only).
    """

    run_id: int
    flow: str | None
    phase: str
    error_message: str | None = None
    image: ImagePayload | None = None
    slots: list[SlotResponse] = Field(default_factory=list)

    @classmethod
    def from_snapshot(cls, snapshot: WorkflowSnapshot) -> RunResponse:
        return cls(
            run_id=snapshot.run_id,
            flow=snapshot.flow,
            phase=snapshot.phase.value,
            error_message=snapshot.error_message,
            image=ImagePayload.from_encoded(snapshot.image) if snapshot.image is not None else None,
            slots=[SlotResponse.from_slot(slot) for slot in snapshot.slots],
        )
