"""
Configuration settings for the unsubscribe link finder.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class Config:
    """Configuration settings."""

    # Generative model settings
    MODEL_MAX_NEW_TOKENS = 128
    MODEL_TIMEOUT = 60.0

    # Batch processing settings
    MAX_CONCURRENCY = 4

    # Logging settings
    LOG_LEVEL = 'WARNING'
    LOG_FORMAT = 'standard'

    @classmethod
    def reload(cls) -> None:
        """Re-read settings from the environment (after a .env file is loaded)."""
        cls.MODEL_MAX_NEW_TOKENS = int(os.getenv('MODEL_MAX_NEW_TOKENS', '128'))
        cls.MODEL_TIMEOUT = float(os.getenv('MODEL_TIMEOUT', '60'))
        cls.MAX_CONCURRENCY = int(os.getenv('MAX_CONCURRENCY', '4'))
        cls.LOG_LEVEL = os.getenv('LOG_LEVEL', 'WARNING')
        cls.LOG_FORMAT = os.getenv('LOG_FORMAT', 'standard')

    @classmethod
    def get_model_path(cls) -> Optional[Path]:
        """
        Get the path to the local generative model, if one is configured.

        Returns:
            Expanded path from UNSUBSCRIBE_MODEL_PATH, or None when unset.
            The path is not checked here; a missing directory only disables
            the model stage.
        """
        model_path = os.getenv('UNSUBSCRIBE_MODEL_PATH', '').strip()
        if not model_path:
            return None
        return Path(model_path).expanduser()


Config.reload()


def load_config_from_env_file(env_file: str = '.env') -> bool:
    """Load configuration from environment file. Returns True if a file was loaded."""
    env_path = Path(env_file)
    if not env_path.exists():
        return False
    loaded = load_dotenv(env_path)
    Config.reload()
    return loaded
