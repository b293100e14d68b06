"""Async client for the hosted Gemini image API.

The client wraps the two remote operations the application needs, plus the
paired-image call used by the single-shot flow:

- :meth:`GeminiClient.derive_prompts` — reference image -> three prompts
- :meth:`GeminiClient.synthesize_image` — prompt + source image -> image
- :meth:`GeminiClient.synthesize_styled_image` — style + source image -> image

Every call suspends the caller until the service answers. Failures are
normalized into :class:`PromptDerivationError` or
:class:`ImageSynthesisError` and propagate immediately; there are no retries
and no local timeouts.

Usage Example
-------------
    >>> from restyle.core.config import config
    >>> client = create_gemini_client(config)
    >>> prompts = await client.derive_prompts(reference_image)
    >>> image = await client.synthesize_image(prompts.simple, source_image)
"""

import base64
import logging
from pathlib import Path
from typing import Any

from google import genai
from google.genai import types
from pydantic import ValidationError as PydanticValidationError

from .config import RestyleConfig
from .errors import ImageSynthesisError, PromptDerivationError
from .instructions import (
    PROMPT_ANALYSIS_INSTRUCTION,
    PROMPT_RESPONSE_SCHEMA,
    PROMPT_SYSTEM_INSTRUCTION,
    STYLE_TRANSFER_INSTRUCTION,
    build_synthesis_instruction,
)
from .intake import sniff_format
from .models import PIL_FORMATS, SUPPORTED_MEDIA_TYPES, EncodedImage, PromptSet

logger = logging.getLogger(__name__)

DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image-preview"


def _image_part(image: EncodedImage) -> types.Part:
    return types.Part.from_bytes(data=image.to_bytes(), mime_type=image.media_type)


def _output_name(source_name: str, media_type: str) -> str:
    return f"restyled_{Path(source_name).stem}{SUPPORTED_MEDIA_TYPES[media_type]}"


def first_inline_image(response: Any) -> tuple[bytes, str] | None:
    """Return the first inline image (bytes, media type) in a response.

    Walks ``response.candidates[].content.parts[]`` and stops at the first
    part carrying inline data. Returns None when no part has image data.
    """
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is None or not getattr(inline, "data", None):
                continue
            data = inline.data
            if isinstance(data, str):
                data = base64.b64decode(data)
            return data, (inline.mime_type or "image/png").lower()
    return None


class GeminiClient:
    """Typed wrapper around ``google.genai.Client`` for this application.

    Args:
        api_key: Gemini API key (ignored when ``client`` is given)
        client: Pre-built ``genai.Client`` (or a test double)
        text_model: Model used for prompt derivation
        image_model: Model used for image synthesis
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        client: Any | None = None,
        text_model: str = DEFAULT_TEXT_MODEL,
        image_model: str = DEFAULT_IMAGE_MODEL,
    ):
        self._client = client if client is not None else genai.Client(api_key=api_key)
        self.text_model = text_model
        self.image_model = image_model

    async def derive_prompts(self, reference_image: EncodedImage) -> PromptSet:
        """Derive simple/detailed/technical prompts from a reference image.

        Args:
            reference_image: Image supplying scene, lighting and pose

        Returns:
            Validated PromptSet

        Raises:
            PromptDerivationError: If the call fails or the answer is malformed
        """
        logger.info(f"Deriving prompts from {reference_image.name} with {self.text_model}")
        try:
            response = await self._client.aio.models.generate_content(
                model=self.text_model,
                contents=[
                    types.Part.from_text(text=PROMPT_ANALYSIS_INSTRUCTION),
                    _image_part(reference_image),
                ],
                config=types.GenerateContentConfig(
                    system_instruction=PROMPT_SYSTEM_INSTRUCTION,
                    response_mime_type="application/json",
                    response_schema=PROMPT_RESPONSE_SCHEMA,
                ),
            )
        except Exception as e:
            logger.error(f"Error generating prompts with Gemini: {e}", exc_info=True)
            raise PromptDerivationError(f"Failed to generate prompts: {e}") from e

        try:
            text = response.text
            if not text:
                raise ValueError("empty response text")
            prompts = PromptSet.from_model_text(text)
        except (PydanticValidationError, ValueError, AttributeError) as e:
            logger.error(f"Prompt derivation returned malformed JSON: {e}")
            raise PromptDerivationError("malformed response") from e

        logger.info("Prompts derived successfully")
        return prompts

    async def synthesize_image(self, prompt: str, source_image: EncodedImage) -> EncodedImage:
        """Place the subject of ``source_image`` into the scene described by ``prompt``.

        Args:
            prompt: Scene/style description
            source_image: Image supplying the subject's identity

        Returns:
            Synthesized image

        Raises:
            ImageSynthesisError: If the call fails or no image is returned
        """
        return await self._synthesize(
            [_image_part(source_image), types.Part.from_text(text=build_synthesis_instruction(prompt))],
            source_image,
        )

    async def synthesize_styled_image(
        self, style_image: EncodedImage, source_image: EncodedImage
    ) -> EncodedImage:
        """Recreate the scene of ``style_image`` with the subject of ``source_image``.

        Raises:
            ImageSynthesisError: If the call fails or no image is returned
        """
        return await self._synthesize(
            [
                _image_part(style_image),
                _image_part(source_image),
                types.Part.from_text(text=STYLE_TRANSFER_INSTRUCTION),
            ],
            source_image,
        )

    async def _synthesize(self, parts: list[types.Part], source_image: EncodedImage) -> EncodedImage:
        logger.info(f"Synthesizing image for {source_image.name} with {self.image_model}")
        try:
            response = await self._client.aio.models.generate_content(
                model=self.image_model,
                contents=parts,
                config=types.GenerateContentConfig(
                    response_modalities=["IMAGE", "TEXT"],
                ),
            )
        except Exception as e:
            logger.error(f"Error generating image with Gemini: {e}", exc_info=True)
            raise ImageSynthesisError(f"Failed to generate image: {e}") from e

        found = first_inline_image(response)
        if found is None:
            logger.error("Image synthesis returned no image part")
            raise ImageSynthesisError("no image returned")

        data, media_type = found
        if media_type not in SUPPORTED_MEDIA_TYPES:
            logger.error(f"Image synthesis returned unsupported type {media_type}")
            raise ImageSynthesisError(f"unsupported image type returned: {media_type}")

        actual = sniff_format(data)
        if actual not in PIL_FORMATS[media_type]:
            logger.error(f"Image synthesis returned {actual or 'non-image'} data declared as {media_type}")
            raise ImageSynthesisError(f"returned image content does not match {media_type}")

        logger.info(f"Image synthesized ({media_type}, {len(data)} bytes)")
        return EncodedImage.from_bytes(data, media_type, _output_name(source_image.name, media_type))


def create_gemini_client(config: RestyleConfig) -> GeminiClient:
    """Build a client from configuration.

    Raises:
        MissingAPIKeyError: If no API key is configured
    """
    return GeminiClient(
        config.require_api_key(),
        text_model=config.text_model,
        image_model=config.image_model,
    )
