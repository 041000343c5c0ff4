"""
Remote Forecast Client
======================
Asks a language model (Anthropic Messages API) to predict the three
parameters for months 3..15.

Why is this file needed?
------------------------
1. Isolation: HTTP, prompt rendering and response repair live here, the model
   layer only ever sees a plain {month: {field: value}} mapping.
2. Robustness: Model output is not guaranteed to be strict JSON (code fences,
   bare integer keys, trailing commas); it is repaired before decoding.

Classes:
    ForecastError: Any failure to obtain a usable response.
    ForecastClient: Thin synchronous client (run it off the GUI thread).
"""
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Optional

import requests

from butterflyeffect.config import FORECAST_PROMPT_PATH, ForecastSettings
from butterflyeffect.model.parameters import Parameters
from butterflyeffect.model.timeline import parse_forecast_payload

logger = logging.getLogger(__name__)


class ForecastError(RuntimeError):
    """The forecast could not be obtained or decoded."""


def strip_json_fences(raw: str) -> str:
    """Strip markdown code fences from LLM JSON output."""
    raw = raw.strip()
    if raw.startswith("```"):
        raw = re.sub(r"^```(?:json)?\s*", "", raw)
        raw = re.sub(r"\s*```$", "", raw)
    return raw


_BARE_INT_KEY = re.compile(r'([{,]\s*)(\d+)(\s*:)')
_TRAILING_COMMA = re.compile(r',(\s*[}\]])')


def decode_forecast_text(text: str) -> dict[int, dict[str, Any]]:
    """
    Decode the model's answer into {month: {field: value}}.

    Raises:
        ForecastError: If no JSON object can be recovered.
    """
    cleaned = strip_json_fences(text)

    # Tolerate leading/trailing prose around the object
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start == -1 or end <= start:
        raise ForecastError("Response contains no JSON object.")
    cleaned = cleaned[start:end + 1]

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        repaired = _TRAILING_COMMA.sub(r"\1", _BARE_INT_KEY.sub(r'\1"\2"\3', cleaned))
        try:
            data = json.loads(repaired)
        except json.JSONDecodeError as e:
            raise ForecastError(f"Response is not valid JSON: {e}") from e

    return parse_forecast_payload(data)


class ForecastClient:
    def __init__(
        self,
        settings: Optional[ForecastSettings] = None,
        prompt_path: str | Path = FORECAST_PROMPT_PATH,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.settings = settings or ForecastSettings.from_env()
        self.prompt_path = Path(prompt_path)
        self.http = session or requests.Session()

    def render_prompt(self, params: Parameters) -> str:
        try:
            template = self.prompt_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ForecastError(f"Cannot read prompt template {self.prompt_path}: {e}") from e
        return template.format(**params.as_dict())

    def request_text(self, params: Parameters) -> str:
        """POST the prompt and return the first text block of the reply."""
        if not self.settings.api_key:
            raise ForecastError("Missing CLAUDE_API_KEY; cannot request a forecast.")

        payload = {
            "model": self.settings.model,
            "max_tokens": self.settings.max_tokens,
            "temperature": self.settings.temperature,
            "messages": [{"role": "user", "content": self.render_prompt(params)}],
        }
        headers = {
            "x-api-key": self.settings.api_key,
            "anthropic-version": self.settings.api_version,
            "content-type": "application/json",
        }
        url = f"{self.settings.base_url}/v1/messages"

        logger.info(f"Requesting forecast from {self.settings.model} (timeout {self.settings.timeout:g}s).")
        try:
            resp = self.http.post(url, headers=headers, data=json.dumps(payload), timeout=self.settings.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.Timeout as e:
            raise ForecastError(f"Forecast request timed out after {self.settings.timeout:g}s.") from e
        except requests.RequestException as e:
            raise ForecastError(f"Forecast request failed: {e}") from e
        except ValueError as e:
            raise ForecastError(f"Forecast service returned non-JSON body: {e}") from e

        for block in data.get("content", []) if isinstance(data, dict) else []:
            if isinstance(block, dict) and block.get("type") == "text" and "text" in block:
                return block["text"]
        raise ForecastError("No text content found in response.")

    def forecast(self, params: Parameters) -> dict[int, dict[str, Any]]:
        """Request and decode a forecast for the given parameters."""
        forecast = decode_forecast_text(self.request_text(params))
        logger.info(f"Forecast received for months {sorted(forecast)}.")
        return forecast
