"""Image intake: turn user-selected files into :class:`EncodedImage` values.

Only PNG and JPEG are accepted. The declared media type (given by the caller
or guessed from the file name) decides acceptance; the content is then
sniffed with Pillow so that a renamed file cannot slip through with the
wrong type.

Intake has no global state. :func:`select_image` is the boundary used by the
UI: a rejected file leaves the previous selection untouched and is only
logged.
"""

import base64
import binascii
import io
import logging
import mimetypes
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .errors import ImageRejectedError
from .models import PIL_FORMATS, SUPPORTED_MEDIA_TYPES, EncodedImage

logger = logging.getLogger(__name__)

# "image/jpg" is not registered but browsers and users send it anyway
_MEDIA_TYPE_ALIASES = {"image/jpg": "image/jpeg", "image/pjpeg": "image/jpeg"}


def normalize_media_type(media_type: str | None) -> str | None:
    """Lower-case a media type and map common aliases."""
    if not media_type:
        return None
    media_type = media_type.split(";", 1)[0].strip().lower()
    return _MEDIA_TYPE_ALIASES.get(media_type, media_type)


def guess_media_type(name: str) -> str | None:
    """Guess the declared media type from a file name."""
    media_type, _ = mimetypes.guess_type(name)
    return normalize_media_type(media_type)


def sniff_format(raw: bytes) -> str | None:
    """Return the Pillow format name of ``raw``, or None if it is not an image."""
    try:
        with Image.open(io.BytesIO(raw)) as image:
            return image.format
    except (UnidentifiedImageError, OSError):
        return None


def encode_image(
    source: str | Path | bytes,
    *,
    media_type: str | None = None,
    name: str | None = None,
) -> EncodedImage:
    """Encode an image file as a self-describing data URL.

    Args:
        source: Path to the file, or its raw bytes
        media_type: Declared media type (guessed from the name if omitted)
        name: Original file name (defaults to the path's name)

    Returns:
        EncodedImage for the full file content

    Raises:
        ImageRejectedError: If the type is unsupported, the file is empty,
            or the content does not match the declared type
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        name = name or path.name
    else:
        path = None
        name = name or "image"

    declared = normalize_media_type(media_type) or guess_media_type(name)
    if declared not in SUPPORTED_MEDIA_TYPES:
        raise ImageRejectedError(
            "unsupported-type",
            f"Unsupported image type {declared or 'unknown'} for {name}. "
            "Please upload a PNG or JPEG image.",
        )

    raw = path.read_bytes() if path is not None else bytes(source)
    if not raw:
        raise ImageRejectedError("empty-file", f"{name} is empty")

    actual = sniff_format(raw)
    if actual not in PIL_FORMATS[declared]:
        raise ImageRejectedError(
            "content-mismatch",
            f"{name} is declared as {declared} but its content is {actual or 'not an image'}",
        )

    return EncodedImage.from_bytes(raw, declared, name)


def decode_data_url(data_url: str, *, name: str) -> EncodedImage:
    """Validate an inbound data URL and return it as an EncodedImage.

    Args:
        data_url: ``data:<media_type>;base64,<payload>``
        name: File name to attach

    Raises:
        ImageRejectedError: If the URL is malformed or fails intake rules
    """
    header, sep, payload = data_url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ImageRejectedError("invalid-data", f"{name} is not a base64 data URL")

    media_type = header[len("data:") : -len(";base64")]
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageRejectedError("invalid-data", f"{name} has an invalid base64 payload") from e

    return encode_image(raw, media_type=media_type, name=name)


def select_image(
    current: EncodedImage | None,
    source: str | Path | bytes | None,
    *,
    media_type: str | None = None,
    name: str | None = None,
) -> EncodedImage | None:
    """Replace the current selection with a newly chosen file.

    Rejected files are dropped silently (logged only) and the existing
    selection is returned unchanged.

    Args:
        current: Currently held image, if any
        source: Newly selected file (path or bytes); None keeps ``current``
        media_type: Declared media type of the new file
        name: Original file name of the new file

    Returns:
        The new EncodedImage, or ``current`` if the file was rejected
    """
    if source is None:
        return current

    try:
        encoded = encode_image(source, media_type=media_type, name=name)
    except ImageRejectedError as e:
        logger.warning(f"Ignoring selected file ({e.reason}): {e}")
        return current
    except OSError as e:
        logger.warning(f"Could not read selected file: {e}")
        return current

    logger.info(f"Selected image {encoded.name} ({encoded.media_type})")
    return encoded


def clear_image(current: EncodedImage | None) -> None:
    """Drop a held image. Nothing else is touched."""
    if current is not None:
        logger.info(f"Cleared image {current.name}")
    return None
