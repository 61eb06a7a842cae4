"""Vendor backends for the arbitrator panel.

Each backend sends the same (system, user) prompt pair and returns the raw
assistant text. Transport and API errors are raised, never retried here; the
panel turns them into CIRCUIT_BREAKER votes.
"""

from __future__ import annotations

from typing import Any, Protocol

import httpx
from anthropic import AsyncAnthropic

from .config import WorkflowConfig

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"
MISTRAL_CHAT_URL = "https://api.mistral.ai/v1/chat/completions"

MAX_TOKENS = 1024
TEMPERATURE = 0.3


class ArbitratorCallError(RuntimeError):
    """The vendor answered but reported an error or an unusable envelope."""


class Arbitrator(Protocol):
    model_id: str

    async def complete(self, system: str, user: str) -> str: ...


class AnthropicArbitrator:
    def __init__(
        self,
        model_id: str,
        api_key: str,
        *,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.model_id = model_id
        self._api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> AsyncAnthropic:
        http_client = httpx.AsyncClient(transport=self._transport, timeout=self.timeout) if self._transport else None
        return AsyncAnthropic(
            api_key=self._api_key,
            max_retries=0,
            timeout=self.timeout,
            http_client=http_client,
        )

    async def complete(self, system: str, user: str) -> str:
        async with self._client() as client:
            resp = await client.messages.create(
                model=self.model_id,
                max_tokens=MAX_TOKENS,
                system=system,
                messages=[{"role": "user", "content": user}],
            )
        return "".join(block.text for block in resp.content if getattr(block, "type", None) == "text")


class ChatCompletionsArbitrator:
    """OpenAI-style ``/chat/completions`` endpoint (OpenAI, Mistral)."""

    def __init__(
        self,
        model_id: str,
        api_key: str,
        url: str,
        *,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.model_id = model_id
        self._api_key = api_key
        self.url = url
        self.timeout = timeout
        self._transport = transport

    def _payload(self, system: str, user: str) -> dict[str, Any]:
        return {
            "model": self.model_id,
            "max_tokens": MAX_TOKENS,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "response_format": {"type": "json_object"},
            "temperature": TEMPERATURE,
        }

    async def complete(self, system: str, user: str) -> str:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "content-type": "application/json",
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.post(self.url, json=self._payload(system, user), headers=headers)
            resp.raise_for_status()
            data = resp.json()

        if data.get("error"):
            error = data["error"]
            raise ArbitratorCallError(error.get("message", str(error)) if isinstance(error, dict) else str(error))
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise ArbitratorCallError(f"unexpected completion envelope: {exc!r}") from exc


def build_panel(
    config: WorkflowConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[Arbitrator]:
    """Registration order is vote order in the committed verdict."""
    return [
        AnthropicArbitrator(
            config.anthropic_model,
            config.anthropic_api_key,
            timeout=config.model_timeout_sec,
            transport=transport,
        ),
        ChatCompletionsArbitrator(
            config.openai_model,
            config.openai_api_key,
            OPENAI_CHAT_URL,
            timeout=config.model_timeout_sec,
            transport=transport,
        ),
        ChatCompletionsArbitrator(
            config.mistral_model,
            config.mistral_api_key,
            MISTRAL_CHAT_URL,
            timeout=config.model_timeout_sec,
            transport=transport,
        ),
    ]
