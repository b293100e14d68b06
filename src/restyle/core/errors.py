"""Error taxonomy for Restyle Image Generator.

Every error that can end a run derives from :class:`RestyleError`, whose
message is meant to be shown to the user as-is. Input validation errors live
in :mod:`restyle.core.validation` because they never reach the remote API.
"""


class RestyleError(Exception):
    """Base class for all run-terminating errors."""

    pass


class MissingAPIKeyError(RestyleError):
    """Raised at startup when no Gemini API key is configured."""

    pass


class ImageRejectedError(RestyleError):
    """Raised by image intake when an uploaded file cannot be accepted.

    Attributes:
        reason: Machine-readable rejection reason
            ("unsupported-type", "empty-file", "content-mismatch", "invalid-data")
    """

    def __init__(self, reason: str, message: str | None = None):
        self.reason = reason
        super().__init__(message or f"Image rejected: {reason}")


class PromptDerivationError(RestyleError):
    """The remote prompt derivation failed or returned an unusable structure."""

    pass


class ImageSynthesisError(RestyleError):
    """The remote image synthesis failed or returned no image."""

    pass


class UnknownError(RestyleError):
    """Any failure not recognised as one of the errors above."""

    DEFAULT_MESSAGE = "An unexpected error occurred."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.DEFAULT_MESSAGE)
