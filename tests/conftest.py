"""Shared pytest fixtures for Restyle tests."""

import io
import shutil
import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import AsyncMock, Mock

import pytest
from PIL import Image

from restyle.core.config import RestyleConfig
from restyle.core.models import EncodedImage, PromptSet
from restyle.ui.models import UIState


def make_image_bytes(fmt: str = "PNG", color: str = "red", size: tuple[int, int] = (8, 8)) -> bytes:
    """Render a tiny solid-colour image in the given Pillow format."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config() -> RestyleConfig:
    """Create a test configuration that ignores any local .env file.

    Returns:
        RestyleConfig instance for testing
    """
    return RestyleConfig(
        api_key="test-key",
        text_model="test-text-model",
        image_model="test-image-model",
        _env_file=None,
    )


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG", color="blue")


@pytest.fixture
def png_file(temp_dir: Path, png_bytes: bytes) -> Path:
    """Write a PNG file named face.png."""
    path = temp_dir / "face.png"
    path.write_bytes(png_bytes)
    return path


@pytest.fixture
def jpeg_file(temp_dir: Path, jpeg_bytes: bytes) -> Path:
    """Write a JPEG file named style.jpg."""
    path = temp_dir / "style.jpg"
    path.write_bytes(jpeg_bytes)
    return path


@pytest.fixture
def style_image(jpeg_bytes: bytes) -> EncodedImage:
    return EncodedImage.from_bytes(jpeg_bytes, "image/jpeg", "style.jpg")


@pytest.fixture
def source_image(png_bytes: bytes) -> EncodedImage:
    return EncodedImage.from_bytes(png_bytes, "image/png", "face.png")


@pytest.fixture
def generated_image() -> EncodedImage:
    return EncodedImage.from_bytes(make_image_bytes("PNG", color="green"), "image/png", "restyled_face.png")


@pytest.fixture
def sample_prompts() -> PromptSet:
    """Prompt set as returned by a successful derivation."""
    return PromptSet(
        simple="A portrait on a sunny beach",
        detailed="A moody portrait in warm evening light on an empty beach",
        technical="85mm lens, f/1.8, golden hour backlight, shallow depth of field",
    )


@pytest.fixture
def stub_client(sample_prompts: PromptSet, generated_image: EncodedImage) -> Mock:
    """Stand-in for GeminiClient whose calls all succeed.

    Returns:
        Mock with AsyncMock derive_prompts / synthesize_image /
        synthesize_styled_image
    """
    client = Mock()
    client.derive_prompts = AsyncMock(return_value=sample_prompts)
    client.synthesize_image = AsyncMock(return_value=generated_image)
    client.synthesize_styled_image = AsyncMock(return_value=generated_image)
    return client


@pytest.fixture
def ui_state() -> UIState:
    """Create empty UI state for testing.

    Returns:
        UIState instance
    """
    return UIState()


@pytest.fixture
def test_client(stub_client: Mock):
    """FastAPI TestClient with the Gemini client replaced by ``stub_client``.

    The lifespan is not entered, so no API key is needed.
    """
    from fastapi.testclient import TestClient

    from restyle.api.main import app, get_client

    app.dependency_overrides[get_client] = lambda: stub_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def slot_images(sample_prompts: PromptSet) -> dict[str, EncodedImage]:
    """A distinct synthesized image for each prompt of ``sample_prompts``."""
    colors = {"simple": "red", "detailed": "green", "technical": "blue"}
    return {
        getattr(sample_prompts, kind): EncodedImage.from_bytes(
            make_image_bytes("PNG", color=color), "image/png", f"{kind}.png"
        )
        for kind, color in colors.items()
    }
