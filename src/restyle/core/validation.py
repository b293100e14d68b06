"""Validation of run inputs.

Validation happens before any network call and before any state change, so
a failed check never shows a loading state.
"""

import logging

from .errors import RestyleError
from .models import EncodedImage

logger = logging.getLogger(__name__)

STYLE_TRANSFER_MISSING_IMAGES = "Please upload both a style and a source image."
PROMPT_STUDIO_MISSING_IMAGES = "Please upload both a reference and a source image."


class ValidationError(RestyleError):
    """User-friendly validation error.

    This exception is raised when user input fails validation.
    The message is intended to be displayed directly to the user.
    """

    pass


def validate_run_inputs(
    first: EncodedImage | None,
    second: EncodedImage | None,
    message: str,
) -> tuple[EncodedImage, EncodedImage]:
    """Check that both images of a run are present.

    Args:
        first: Style or reference image
        second: Source image
        message: User-facing message used when either image is missing

    Returns:
        The two images, unchanged

    Raises:
        ValidationError: If either image is missing
    """
    if first is None or second is None:
        logger.warning(f"Validation error: {message}")
        raise ValidationError(message)
    return first, second
