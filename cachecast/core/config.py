"""
App Configuration.

This module defines the global application settings using Pydantic Settings.
It loads configuration variables from environment variables and/or a .env file,
ensuring typed and validated settings for every worker process.

Attributes:
    settings: The global instance of the Settings class, ready to be imported and used.
"""

import os
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application Settings.

    Attributes:
        PROJECT_NAME: The name of the project (default: "cachecast").
        APP_ROOT: Directory relative paths are resolved against.
        IPCM_MAILBOX_DIR: Where invalidation messages are staged between workers.
        IPCM_SIGNAL: Signal used to wake sibling workers (default: SIGALRM).
        IPCM_PID_SOURCE: How sibling worker pids are discovered.
        IPCM_PID_REGISTRY_DIR: Directory used by the "registry" pid source.
        TEMPLATES_DIR: Directory compiled templates are loaded from.
        LOG_LEVEL: Root log level.
        IPCM_LOG_LEVEL: Level for the IPCM loggers (default: same as LOG_LEVEL).
    """

    # Core
    PROJECT_NAME: str = "cachecast"
    APP_ROOT: str = os.getcwd()
    LOG_LEVEL: str = "INFO"

    # Inter-process cache invalidation
    IPCM_MAILBOX_DIR: str = "tmp/ipcm"
    IPCM_SIGNAL: str = "SIGALRM"
    IPCM_PID_SOURCE: Literal["registry", "siblings", "off"] = "registry"
    IPCM_PID_REGISTRY_DIR: str = "tmp/pids"
    IPCM_LOG_LEVEL: Optional[str] = None

    # Templates
    TEMPLATES_DIR: str = "templates"

    model_config = SettingsConfigDict(
        env_file=".env", env_ignore_empty=True, extra="ignore"
    )


settings = Settings()
