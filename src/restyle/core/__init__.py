"""Core functionality for Restyle Image Generator.

Architecture Overview
---------------------
The core module follows a layered architecture, leaf-first:

1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with RESTYLE_ (the API key also reads GEMINI_API_KEY)

2. **Domain Layer** (models.py, errors.py, validation.py):
   - Immutable EncodedImage / PromptSet / ResultSlot / RunState values
   - Error taxonomy shared by every layer

3. **Image Intake** (intake.py):
   - PNG/JPEG files -> EncodedImage data URLs

4. **API Client** (gemini_client.py, instructions.py):
   - Async wrapper around the Gemini API (prompt derivation, image synthesis)

5. **Workflow Orchestrator** (orchestrator.py):
   - Single-shot and multi-prompt flows, run ids, snapshot publishing
"""

from .config import RestyleConfig, config
from .errors import (
    ImageRejectedError,
    ImageSynthesisError,
    MissingAPIKeyError,
    PromptDerivationError,
    RestyleError,
    UnknownError,
)
from .gemini_client import GeminiClient, create_gemini_client
from .intake import clear_image, decode_data_url, encode_image, select_image
from .models import (
    EncodedImage,
    PromptKind,
    PromptSet,
    ResultSlot,
    RunPhase,
    RunState,
    WorkflowSnapshot,
)
from .orchestrator import WorkflowOrchestrator
from .validation import ValidationError

__all__ = [
    "RestyleConfig",
    "config",
    "RestyleError",
    "MissingAPIKeyError",
    "ImageRejectedError",
    "PromptDerivationError",
    "ImageSynthesisError",
    "UnknownError",
    "ValidationError",
    "GeminiClient",
    "create_gemini_client",
    "encode_image",
    "decode_data_url",
    "select_image",
    "clear_image",
    "EncodedImage",
    "PromptKind",
    "PromptSet",
    "ResultSlot",
    "RunPhase",
    "RunState",
    "WorkflowSnapshot",
    "WorkflowOrchestrator",
]
