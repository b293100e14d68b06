"""Configuration management for Restyle Image Generator.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the RESTYLE_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (RESTYLE_* prefix)
2. .env file in the project root
3. Default values defined in RestyleConfig

The Gemini API key is the one exception to the prefix rule: it is read from
``RESTYLE_API_KEY``, ``GEMINI_API_KEY`` or ``API_KEY`` (first match wins).

Example .env file:
    GEMINI_API_KEY=your-key-here
    RESTYLE_TEXT_MODEL=gemini-2.5-flash
    RESTYLE_IMAGE_MODEL=gemini-2.5-flash-image-preview
    RESTYLE_SERVER_PORT=7860

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
A missing API key does not fail the import; it is checked once when the
application starts (see :meth:`RestyleConfig.require_api_key`), where its
absence is fatal.

Usage Example
-------------
    from restyle.core.config import config

    print(config.text_model)
    api_key = config.require_api_key()
"""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import MissingAPIKeyError


class RestyleConfig(BaseSettings):
    """Main configuration for Restyle Image Generator.

    Attributes
    ----------
    Remote API Settings:
        api_key : str | None
            Gemini API key (RESTYLE_API_KEY, GEMINI_API_KEY or API_KEY)
        text_model : str
            Model used to derive prompts from a reference image
        image_model : str
            Model used to synthesize images

    Server Settings:
        server_host : str
            Server bind address (0.0.0.0 for local network)
        server_port : int
            Server port (1024-65535)

    Logging:
        log_level : Literal["DEBUG", "INFO", "WARNING", "ERROR"]
            Root log level configured by the entry point

    Examples
    --------
    Create a custom configuration:

        >>> custom_config = RestyleConfig(api_key="test-key", server_port=8000)
        >>> custom_config.require_api_key()
        'test-key'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RESTYLE_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Remote API settings
    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("api_key", "RESTYLE_API_KEY", "GEMINI_API_KEY", "API_KEY"),
        description="Gemini API key",
    )
    text_model: str = Field(
        default="gemini-2.5-flash",
        description="Model used for prompt derivation",
    )
    image_model: str = Field(
        default="gemini-2.5-flash-image-preview",
        description="Model used for image synthesis",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level",
    )

    @property
    def has_api_key(self) -> bool:
        """Check whether a non-blank API key is configured."""
        return bool(self.api_key and self.api_key.strip())

    def require_api_key(self) -> str:
        """Return the configured API key.

        Returns:
            The API key with surrounding whitespace removed

        Raises:
            MissingAPIKeyError: If no API key is configured
        """
        if not self.has_api_key:
            raise MissingAPIKeyError(
                "API key is not set. Set GEMINI_API_KEY (or RESTYLE_API_KEY) "
                "in the environment or .env file."
            )
        return self.api_key.strip()


# Global configuration instance
config = RestyleConfig()
