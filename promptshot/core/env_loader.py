"""
Credential loading for PromptShot.

The .env file is read once at process start-up (create_app calls
ensure_env_loaded), so the workflow engine never touches the environment.
Lookup order for the file: $PROMPTSHOT_ENV_FILE, ./.env, then the checkout root.
"""

import os
from pathlib import Path
from typing import Iterable, Optional

from dotenv import load_dotenv

from .constants import DEFAULT_API_KEY_ENV

ENV_FILE_VARIABLE = "PROMPTSHOT_ENV_FILE"

# Accepted alternatives to the configured key variable, in priority order
GOOGLE_KEY_FALLBACKS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")

_env_loaded = False


def get_project_root() -> Path:
    """Checkout root: promptshot/core/env_loader.py is two packages below it."""
    return Path(__file__).resolve().parent.parent.parent


def find_env_file() -> Optional[Path]:
    """First existing .env candidate, or None."""
    explicit = os.getenv(ENV_FILE_VARIABLE)
    candidates = [Path(explicit)] if explicit else []
    candidates += [Path.cwd() / ".env", get_project_root() / ".env"]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def ensure_env_loaded(override: bool = True) -> bool:
    """
    Load the .env file into the process environment, once.

    Args:
        override: .env values replace variables already set (including empty ones)

    Returns:
        True if a file was loaded by this call
    """
    global _env_loaded

    if _env_loaded:
        return False

    env_path = find_env_file()
    if env_path is None:
        return False

    load_dotenv(env_path, override=override)
    _env_loaded = True
    return True


def get_api_key(key_name: str, fallback_keys: Optional[Iterable[str]] = None) -> Optional[str]:
    """Value of `key_name`, else of the first non-empty fallback variable."""
    ensure_env_loaded()

    for name in [key_name, *(fallback_keys or [])]:
        value = os.getenv(name)
        if value:
            return value
    return None


def get_google_api_key(key_name: str = DEFAULT_API_KEY_ENV) -> Optional[str]:
    """Gemini API key from `key_name` or the usual Google variable names."""
    return get_api_key(key_name, [k for k in GOOGLE_KEY_FALLBACKS if k != key_name])
