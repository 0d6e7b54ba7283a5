"""Completion client for OpenAI-compatible ``/chat/completions`` endpoints.

Each call is attempted once. Every failure, including a timeout, is
raised as :class:`~context_chat.errors.UpstreamError`.
"""

import asyncio
import logging
from typing import Any

import httpx

from context_chat.config import AIConfig
from context_chat.errors import UpstreamError
from context_chat.models import ChatMessage

logger = logging.getLogger(__name__)

_COMPLETIONS_PATH = "/chat/completions"


def completions_url(api_base_url: str) -> str:
    """Append ``/chat/completions`` unless the URL already ends with it."""
    if api_base_url.endswith(_COMPLETIONS_PATH):
        return api_base_url
    return api_base_url.rstrip("/") + _COMPLETIONS_PATH


def _error_message(data: Any) -> str | None:
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        message = data["error"].get("message")
        if isinstance(message, str) and message:
            return message
    return None


def _reply_text(data: Any) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content.strip() if isinstance(content, str) else ""


class CompletionClient:
    """Sends a full message sequence and returns the assistant's reply."""

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self._owns_client = http_client is None
        self._client = http_client if http_client is not None else httpx.AsyncClient()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def complete(self, messages: list[ChatMessage], config: AIConfig) -> str:
        """Request one completion.

        Args:
            messages: Outbound sequence, system instruction first.
            config: Supplies endpoint, credential, model and sampling
                parameters, and the overall timeout.

        Returns:
            The stripped, non-empty reply text.

        Raises:
            UpstreamError: On timeout, transport failure, non-2xx status,
                malformed JSON, or blank content.
        """
        try:
            return await asyncio.wait_for(
                self._post(messages, config), timeout=config.timeout_s
            )
        except asyncio.TimeoutError:
            logger.warning("Completion request timed out after %ss", config.timeout_s)
            raise UpstreamError(f"AI request timed out after {config.timeout_s:g}s.")
        except httpx.HTTPError as exc:
            logger.warning("Completion request failed: %s", exc)
            raise UpstreamError("AI request failed.") from exc

    async def _post(self, messages: list[ChatMessage], config: AIConfig) -> str:
        response = await self._client.post(
            completions_url(config.api_base_url),
            headers={
                "Authorization": f"Bearer {config.api_key}",
                "Content-Type": "application/json",
                "Cache-Control": "no-cache",
                "Pragma": "no-cache",
            },
            json={
                "model": config.model,
                "max_tokens": config.max_tokens,
                "temperature": config.temperature,
                "messages": [m.to_dict() for m in messages],
            },
            timeout=config.timeout_s,
        )

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.is_success:
            message = _error_message(data) or (
                f"AI request failed with status {response.status_code} "
                f"{response.reason_phrase}".rstrip()
            )
            logger.warning("Completion endpoint returned %d", response.status_code)
            raise UpstreamError(message)

        if data is None:
            raise UpstreamError("AI returned malformed JSON.")

        text = _reply_text(data)
        if not text:
            raise UpstreamError("AI did not return text.")
        return text
