"""Shared chat-completion client, the single entry point for all remote LLM calls."""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional

import aiohttp
from pydantic import BaseModel

from legal_contract_ai.utils.config import Settings, get_settings
from legal_contract_ai.utils.errors import (
    HttpError,
    MalformedResponseError,
    MissingCredentialError,
    NoContentReturnedError,
    RequestError,
    RequestTimeoutError,
)

logger = logging.getLogger(__name__)

BACKEND_FUNCTION_PATH = "/functions/v1/generate-contract"


class RequestOptions(BaseModel):
    """Per-call knobs for a chat completion"""
    temperature: float = 0.7
    max_tokens: int = 4000
    timeout: float = 120.0
    model: Optional[str] = None


def build_messages(system_role: str, prompt: str) -> list[dict]:
    """System + user message pair in chat-completion format."""
    return [
        {"role": "system", "content": system_role},
        {"role": "user", "content": prompt},
    ]


def _error_message(body: Any) -> Optional[str]:
    """Pull a human-readable message out of an error body.

    Understands both ``{"error": {"message": ...}}`` (OpenAI style) and
    ``{"error": "..."}`` (backend function style).
    """
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            return None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("message") or None
    if isinstance(error, str) and error:
        return error
    return body.get("message") or None


def _decode_body(status: int, reason: str, body: str) -> dict:
    """Raise on non-2xx status, otherwise parse the JSON payload."""
    if not 200 <= status < 300:
        raise HttpError(status, _error_message(body) or reason or None)
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        logger.warning(f"Unparseable response body: {body[:200]!r}")
        raise MalformedResponseError("Could not parse the response from the AI service.") from e
    if not isinstance(data, dict):
        raise MalformedResponseError("Unexpected response shape from the AI service.")
    return data


def extract_completion_text(data: dict) -> str:
    """Return ``choices[0].message.content`` or raise NoContentReturnedError."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        raise NoContentReturnedError() from None
    if not isinstance(content, str) or not content.strip():
        raise NoContentReturnedError()
    return content


class LLMClient:
    """Chat-completion client with credential, timeout and error policy.

    The API key is resolved through ``api_key_provider`` on every call so the
    credential lifecycle stays owned by the caller (see CredentialStore).
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        api_key_provider: Optional[Callable[[], Optional[str]]] = None,
    ):
        self.settings = settings or get_settings()
        self._api_key_provider = api_key_provider or self._configured_key

    def _configured_key(self) -> Optional[str]:
        if self.settings.llm_provider == "anthropic":
            return self.settings.anthropic_api_key
        return self.settings.openai_api_key

    def _require_key(self) -> str:
        api_key = self._api_key_provider()
        if not api_key:
            raise MissingCredentialError()
        return api_key

    async def call(
        self,
        prompt: str,
        system_role: str,
        options: Optional[RequestOptions] = None,
    ) -> str:
        """Send one prompt and return the raw completion text."""
        options = options or RequestOptions()
        api_key = self._require_key()
        messages = build_messages(system_role, prompt)

        if self.settings.llm_provider == "anthropic":
            request = self._call_anthropic(api_key, messages, options)
        else:
            request = self._call_chat_completion(api_key, messages, options)
        return await self._with_timeout(request, options.timeout)

    async def call_backend_function(
        self,
        contract_type: str,
        form_data: dict[str, str],
        template_sample: str,
        user_id: Optional[str],
        timeout: float,
    ) -> dict:
        """Generate through the backend function. Returns ``{content, contractId}``."""
        api_key = self._require_key()
        url = f"{self.settings.backend_url.rstrip('/')}{BACKEND_FUNCTION_PATH}"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        if self.settings.supabase_key:
            headers["apikey"] = self.settings.supabase_key
        payload = {
            "contractType": contract_type,
            "formData": form_data,
            "templateSample": template_sample,
            "userId": user_id,
        }

        status, reason, body = await self._with_timeout(
            self._post_json(url, payload, headers), timeout
        )
        data = _decode_body(status, reason, body)
        if data.get("error"):
            raise HttpError(status, str(data["error"]))
        content = data.get("content")
        if not isinstance(content, str) or not content.strip():
            raise NoContentReturnedError()
        return data

    async def _with_timeout(self, request: Awaitable, timeout: float):
        try:
            return await asyncio.wait_for(request, timeout)
        except asyncio.TimeoutError:
            logger.warning(f"LLM request aborted after {timeout:g}s")
            raise RequestTimeoutError(timeout) from None

    async def _call_chat_completion(
        self, api_key: str, messages: list[dict], options: RequestOptions
    ) -> str:
        url = f"{self.settings.llm_base_url.rstrip('/')}/chat/completions"
        payload = {
            "model": options.model or self.settings.llm_model,
            "messages": messages,
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        status, reason, body = await self._post_json(url, payload, headers)
        return extract_completion_text(_decode_body(status, reason, body))

    async def _post_json(self, url: str, payload: dict, headers: dict) -> tuple[int, str, str]:
        """POST JSON and return (status, reason, body text)."""
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(url, json=payload, headers=headers) as resp:
                    return resp.status, resp.reason or "", await resp.text()
        except aiohttp.ClientError as e:
            logger.error(f"Network error calling {url}: {e}")
            raise RequestError(f"Network error while contacting the AI service: {e}") from e

    async def _call_anthropic(
        self, api_key: str, messages: list[dict], options: RequestOptions
    ) -> str:
        """Anthropic Messages API with the same error mapping."""
        from anthropic import APIConnectionError, APIStatusError, AsyncAnthropic

        client = AsyncAnthropic(api_key=api_key)
        system = "\n".join(m["content"] for m in messages if m["role"] == "system")
        kwargs = {
            "model": options.model or self.settings.anthropic_model,
            "max_tokens": options.max_tokens,
            "messages": [m for m in messages if m["role"] != "system"],
        }
        if system:
            kwargs["system"] = system
        if options.temperature > 0:
            kwargs["temperature"] = options.temperature

        try:
            response = await client.messages.create(**kwargs)
        except APIStatusError as e:
            raise HttpError(e.status_code, _error_message(e.body) or e.message) from e
        except APIConnectionError as e:
            raise RequestError(f"Network error while contacting the AI service: {e}") from e

        text = "".join(block.text for block in response.content if hasattr(block, "text"))
        if not text.strip():
            raise NoContentReturnedError()
        return text
