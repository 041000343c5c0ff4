"""
Configuration & Path Management
===============================
Central registry for resource paths and runtime settings.

Why is this file needed?
------------------------
1. Abstraction: Asset paths (the forecast prompt template) are resolved in one
   place, both in development and when frozen with PyInstaller (sys._MEIPASS).
2. Secrets: The forecast service credentials and endpoint come from the
   environment, never from source code.

Exports:
    ASSETS_PATH (str): Absolute path to the assets directory.
    FORECAST_PROMPT_PATH (str): Absolute path to the forecast prompt template.
    ForecastSettings: Settings of the remote forecast call.
"""
from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


def get_resource_path(relative_path: str) -> str:
    """
    Get absolute path to resource, works for dev and for PyInstaller.
    """
    if hasattr(sys, '_MEIPASS'):
        # PyInstaller temp folder
        base_path: str = getattr(sys, '_MEIPASS')
        return os.path.join(base_path, relative_path)

    # config.py is in src/butterflyeffect/
    current_file_path: Path = Path(__file__)
    project_root: Path = current_file_path.parent.parent.parent
    return os.path.join(str(project_root), relative_path)


ASSETS_PATH: str = get_resource_path("assets")
FORECAST_PROMPT_PATH: str = os.path.join(ASSETS_PATH, "forecast_prompt.txt")

if not os.path.exists(ASSETS_PATH):
    logger.warning(f"Assets path not found at {ASSETS_PATH}")


DEFAULT_FORECAST_URL = "https://api.anthropic.com"
DEFAULT_FORECAST_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_FORECAST_TIMEOUT = 30.0


@dataclass(frozen=True)
class ForecastSettings:
    """Settings of the remote forecast (language model) call."""
    api_key: Optional[str] = None
    base_url: str = DEFAULT_FORECAST_URL
    model: str = DEFAULT_FORECAST_MODEL
    timeout: float = DEFAULT_FORECAST_TIMEOUT
    max_tokens: int = 1024
    temperature: float = 0.2  # low temperature keeps the JSON shape stable
    api_version: str = "2023-06-01"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> ForecastSettings:
        """
        Build settings from environment variables.

        CLAUDE_API_KEY (or ANTHROPIC_API_KEY), BUTTERFLY_FORECAST_URL,
        BUTTERFLY_FORECAST_MODEL and BUTTERFLY_FORECAST_TIMEOUT are honoured.
        """
        env = os.environ if env is None else env

        timeout = DEFAULT_FORECAST_TIMEOUT
        raw_timeout = env.get("BUTTERFLY_FORECAST_TIMEOUT")
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                logger.warning(f"Ignoring invalid BUTTERFLY_FORECAST_TIMEOUT={raw_timeout!r}")
            else:
                if timeout <= 0:
                    logger.warning(f"Ignoring non-positive BUTTERFLY_FORECAST_TIMEOUT={raw_timeout!r}")
                    timeout = DEFAULT_FORECAST_TIMEOUT

        return cls(
            api_key=env.get("CLAUDE_API_KEY") or env.get("ANTHROPIC_API_KEY") or None,
            base_url=(env.get("BUTTERFLY_FORECAST_URL") or DEFAULT_FORECAST_URL).rstrip("/"),
            model=env.get("BUTTERFLY_FORECAST_MODEL") or DEFAULT_FORECAST_MODEL,
            timeout=timeout,
        )
