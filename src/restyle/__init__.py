"""Restyle Image Generator - Gemini-powered style transfer and prompt studio."""

__version__ = "0.1.0"

from restyle.core.config import RestyleConfig, config
from restyle.core.gemini_client import GeminiClient
from restyle.core.orchestrator import WorkflowOrchestrator

__all__ = [
    "GeminiClient",
    "RestyleConfig",
    "WorkflowOrchestrator",
    "config",
]
