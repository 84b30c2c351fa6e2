from __future__ import annotations

from typing import Any

from ..errors import ConnectorError
from ..purposes import Purpose
from .base import Connector, PromptResponse

_CHAT_MODELS = ("gpt-4o", "gpt-4o-mini", "gpt-4.1", "gpt-4.1-mini", "o4-mini")


class GenericOpenAIConnector(Connector):
    """Connector for any endpoint speaking the OpenAI chat-completions API."""

    connector_name = "genericopenai"

    MODELS_BY_PURPOSE = {
        Purpose.CHAT: _CHAT_MODELS,
        Purpose.FEEDBACK: _CHAT_MODELS,
        Purpose.SINGLEPROMPT: _CHAT_MODELS,
        Purpose.TRANSLATE: _CHAT_MODELS,
        Purpose.ITT: ("gpt-4o", "gpt-4o-mini", "gpt-4.1"),
        Purpose.QUESTIONGENERATION: _CHAT_MODELS,
        Purpose.AGENT: ("gpt-4o", "gpt-4.1", "o4-mini"),
    }

    LOW_TEMPERATURE_PURPOSES = frozenset({Purpose.TRANSLATE, Purpose.FEEDBACK})

    def get_prompt_data(self, prompt: str, purpose: Purpose, options: dict[str, Any]) -> dict[str, Any]:
        messages = list(options.get("conversationcontext") or [])
        messages.append({"role": "user", "content": prompt})

        payload: dict[str, Any] = {
            "model": self.get_instance().get_model(),
            "messages": messages,
        }
        if options.get("temperature") is not None:
            payload["temperature"] = float(options["temperature"])
        elif purpose in self.LOW_TEMPERATURE_PURPOSES:
            payload["temperature"] = 0.2
        if options.get("max_tokens") is not None:
            payload["max_tokens"] = int(options["max_tokens"])
        return payload

    def parse_response(self, data: dict[str, Any]) -> PromptResponse:
        try:
            content = data["choices"][0]["message"]["content"]
        except (IndexError, KeyError, TypeError) as exc:
            raise ConnectorError("Response missing assistant message content") from exc
        if not content:
            raise ConnectorError("Response returned empty output")

        usage = data.get("usage") or {}
        return PromptResponse(
            content=content,
            model=data.get("model"),
            prompt_tokens=usage.get("prompt_tokens"),
            completion_tokens=usage.get("completion_tokens"),
        )
