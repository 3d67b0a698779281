"""
Switchyard configuration definition.

Loads configuration from environment variables and provides a Pydantic model.
Uses pydantic-settings for type safety and defaults.
"""

import os
import sys
from typing import Dict

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENVIRONMENT_PREFIX = "EAPI_"


class AppConfig(BaseSettings):
    """
    Configuration management for the orchestrator.
    """

    # Application identity
    EAPI_NAME: str = Field(default="switchyard", description="Application name")
    EAPI_ADDRESS: str = Field(default="localhost", description="Public address")
    EAPI_VERSION: str = Field(default="x.x.x", description="Application version")
    EAPI_MODE: str = Field(default="development", description="Run mode")

    # Cross-origin
    EAPI_CORS_LIST: str = Field(
        default="http://localhost,http://localhost:5173,http://localhost:4173",
        description="Comma separated list of allowed origins",
    )

    # Default verbosity for errors that do not declare their own
    EAPI_LOGGING: str = Field(default="all", description="all | error | warning | info | none")

    # Path rewriting applied before route matching
    EAPI_PATH_SHIFT: str = Field(default="", description="Prefix prepended to request paths")
    EAPI_PATH_UNSHIFT: str = Field(default="", description="Prefix stripped from request paths")

    # Routing and controllers
    EAPI_ROUTES_PATH: str = Field(default="config/routes.yml", description="Routes file path")
    EAPI_CONTROLLER_PACKAGE: str = Field(
        default="", description="Package searched for controllers by route name"
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Log level")
    LOG_CONFIG_PATH: str = Field(default="config/logging.yml", description="Logging config path")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    def environment(self) -> Dict[str, str]:
        """
        Build the environment mapping exposed to middleware and controllers.

        Every EAPI_ process variable is copied, then the declared settings are
        layered on top (they already reflect the process environment).
        """
        env = {k: v for k, v in os.environ.items() if k.startswith(ENVIRONMENT_PREFIX)}
        for name in type(self).model_fields:
            if name.startswith(ENVIRONMENT_PREFIX):
                env[name] = str(getattr(self, name))
        return env


# Load config as a singleton.
# pydantic-settings reads environment variables during instantiation.
try:
    config = AppConfig()
except Exception as e:
    sys.stderr.write(f"Failed to load configuration: {e}\n")
    raise
