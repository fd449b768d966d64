"""
LLM Service
Thin client for an OpenAI-compatible chat completions API
"""

import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional

import requests

from config import Settings, get_settings


logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
_BARE_OBJECT = re.compile(r"\{[\s\S]*\}")


class LLMServiceError(Exception):
    """Raised when the language model cannot be reached or answers with an error"""


class LLMService:
    """
    Chat-completions client used by the insight, translation and summary features.
    Requests are blocking and run in the default executor.
    """

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.api_key = settings.OPENAI_API_KEY
        self.base_url = settings.OPENAI_BASE_URL.rstrip("/")
        self.model_name = settings.LLM_MODEL
        self.temperature = settings.LLM_TEMPERATURE
        self.max_tokens = settings.LLM_MAX_TOKENS
        self.timeout = 30

        if not self.api_key:
            logger.warning("OPENAI_API_KEY not configured; LLM calls will fail")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _messages(self, prompt: str, system_prompt: Optional[str]) -> List[Dict[str, str]]:
        messages = [{"role": "user", "content": prompt}]
        if system_prompt:
            messages.insert(0, {"role": "system", "content": system_prompt})
        return messages

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False
    ) -> str:
        """
        Send one prompt and return the first choice's text.

        Temperature and max_tokens fall back to the configured defaults.
        With json_mode the endpoint is asked for a JSON object.
        Raises LLMServiceError when unconfigured, unreachable or non-200.
        """
        payload: Dict[str, Any] = {
            "model": self.model_name,
            "messages": self._messages(prompt, system_prompt),
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": self.max_tokens if max_tokens is None else max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        return await self._complete(payload)

    async def generate_json(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> Dict[str, Any]:
        instructions = f"{system_prompt or ''}\n\nRespond with a single valid JSON object and nothing else."
        text = await self.generate(
            prompt=prompt,
            system_prompt=instructions.strip(),
            json_mode=True,
            **kwargs
        )
        parsed = self.parse_json_response(text)
        if not isinstance(parsed, dict):
            raise LLMServiceError(f"Expected a JSON object from the model, got {type(parsed).__name__}")
        return parsed

    async def _complete(self, payload: Dict[str, Any]) -> str:
        if not self.configured:
            raise LLMServiceError("LLM is not configured. Set OPENAI_API_KEY.")

        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        loop = asyncio.get_running_loop()
        try:
            resp = await loop.run_in_executor(
                None,
                lambda: requests.post(url, headers=headers, json=payload, timeout=self.timeout),
            )
        except requests.RequestException as e:
            logger.error("LLM request to %s failed: %s", url, e)
            raise LLMServiceError(f"LLM request failed: {e}") from e

        if resp.status_code != 200:
            logger.error("LLM API returned %s: %s", resp.status_code, resp.text)
            raise LLMServiceError(f"LLM API error: {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as e:
            logger.error("LLM API returned a non-JSON body: %s", resp.text[:200])
            raise LLMServiceError("LLM API returned an invalid response") from e
        if not isinstance(body, dict):
            raise LLMServiceError("LLM API returned an invalid response")

        usage = body.get("usage") or {}
        logger.debug("LLM call used %s tokens", usage.get("total_tokens", 0))

        choices = body.get("choices") or []
        if not choices:
            return ""
        return choices[0].get("message", {}).get("content") or ""

    def parse_json_response(
        self,
        response: str,
        default: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Pull a JSON object out of model output.

        Tries the raw text, then a fenced code block, then the outermost
        braces. Returns `default` (or {}) when none of them parse.
        """
        fallback = {} if default is None else default
        text = (response or "").strip()
        if not text:
            return fallback

        candidates = [text]
        fenced = _FENCED_JSON.search(text)
        if fenced:
            candidates.append(fenced.group(1))
        bare = _BARE_OBJECT.search(text)
        if bare:
            candidates.append(bare.group(0))

        for candidate in candidates:
            try:
                return json.loads(candidate)
            except json.JSONDecodeError:
                continue

        logger.warning("Could not parse JSON from model output: %s", text[:200])
        return fallback
