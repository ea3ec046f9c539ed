"""
OpenAI-compatible narration collaborator.

Sends the prompt digest of a FactsResult to a `/chat/completions` endpoint and
returns the generated prose. Facts are never modified by this step.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from payslip_explainer.facts import FactsResult
from payslip_explainer.narrator import (
    NarrationError,
    NarrationResult,
    NarrationUsage,
    NarratorConfig,
    build_system_prompt,
    build_user_prompt,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT_SECONDS = 30.0


class OpenAINarrator:
    """
    Narration collaborator backed by an OpenAI-compatible HTTP API.

    The API key and base URL default to OPENAI_API_KEY and OPENAI_BASE_URL.
    Any transport, status or payload problem is raised as NarrationError.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else os.environ.get("OPENAI_API_KEY", "")
        self.base_url = (base_url or os.environ.get("OPENAI_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def build_payload(self, facts: FactsResult, config: NarratorConfig) -> dict[str, Any]:
        return {
            "model": config.model,
            "messages": [
                {"role": "system", "content": build_system_prompt(config.language)},
                {"role": "user", "content": build_user_prompt(facts)},
            ],
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
        }

    def __call__(self, facts: FactsResult, config: NarratorConfig) -> NarrationResult:
        if not self.api_key:
            raise NarrationError("OPENAI_API_KEY is not set; LLM narration is unavailable.")

        payload = self.build_payload(facts, config)
        headers = {"Authorization": f"Bearer {self.api_key}"}
        logger.debug("Requesting narration from %s using model %s", self.base_url, config.model)

        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport) as client:
                response = client.post("/chat/completions", json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise NarrationError(f"Narration request to {self.base_url} timed out.") from e
        except httpx.HTTPStatusError as e:
            raise NarrationError(
                f"HTTP error from {self.base_url}: {e.response.status_code} - {e.response.text}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise NarrationError(f"Error calling narration service at {self.base_url}: {e}") from e

        return parse_completion(data, config.model)


def parse_completion(data: dict[str, Any], model: str) -> NarrationResult:
    try:
        text = str(data["choices"][0]["message"]["content"]).strip()
    except (KeyError, IndexError, TypeError) as e:
        raise NarrationError("Narration response did not contain a completion message.") from e

    if not text:
        raise NarrationError("Narration response was empty.")

    usage = None
    raw_usage = data.get("usage")
    if isinstance(raw_usage, dict):
        usage = NarrationUsage(
            prompt_tokens=int(raw_usage.get("prompt_tokens", 0)),
            completion_tokens=int(raw_usage.get("completion_tokens", 0)),
            total_tokens=int(raw_usage.get("total_tokens", 0)),
        )

    return NarrationResult(model=str(data.get("model", model)), explanation=text, usage=usage)
