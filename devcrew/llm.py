"""Language-model calls for workers, via litellm."""

import json
from typing import List, Dict, Any, Optional
from dataclasses import dataclass

import litellm
litellm.suppress_debug_info = True


@dataclass
class ToolCall:
    id: str
    name: str
    arguments: Dict[str, Any]


@dataclass
class LLMResponse:
    content: Optional[str] = None
    tool_calls: Optional[List[ToolCall]] = None
    usage: Optional[Dict] = None
    # Thinking trace from reasoner models; echoed back on assistant turns.
    reasoning_content: Optional[str] = None

    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    @property
    def total_tokens(self) -> int:
        return (self.usage or {}).get("total_tokens", 0)


def _parse_tool_calls(raw_calls) -> Optional[List[ToolCall]]:
    if not raw_calls:
        return None
    calls = []
    for raw in raw_calls:
        try:
            arguments = json.loads(raw.function.arguments or "{}")
        except json.JSONDecodeError:
            # The worker reports the bad payload back to the model.
            arguments = {"_raw": raw.function.arguments}
        calls.append(ToolCall(id=raw.id, name=raw.function.name, arguments=arguments))
    return calls


def _usage_dict(usage) -> Optional[Dict[str, int]]:
    if not usage:
        return None
    return {
        "prompt_tokens": usage.prompt_tokens,
        "completion_tokens": usage.completion_tokens,
        "total_tokens": usage.total_tokens,
    }


class LLMAdapter:
    """One model endpoint as used by a single worker.

    Credentials are passed per call rather than through environment
    variables, so workers in one crew can talk to different providers.
    Every provider failure surfaces as ``ConnectionError``.
    """

    def __init__(self, model: str, temperature: float = 0.0,
                 max_tokens: int = 4096, api_base: Optional[str] = None,
                 api_key: Optional[str] = None):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.api_base = api_base
        self.api_key = api_key

    def _request(self, messages: List[Dict[str, Any]], tools: Optional[List[Dict]]) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if tools:
            request.update(tools=tools, tool_choice="auto")
        if self.api_base:
            request["api_base"] = self.api_base
        if self.api_key:
            request["api_key"] = self.api_key
        return request

    def chat(self, messages: List[Dict[str, Any]], tools: Optional[List[Dict]] = None) -> LLMResponse:
        """Send one chat turn and return the model's reply."""
        try:
            response = litellm.completion(**self._request(messages, tools))
        except litellm.exceptions.AuthenticationError as e:
            raise ConnectionError(f"Authentication failed for {self.model}; check the preset's API key.\n{e}") from e
        except litellm.exceptions.APIConnectionError as e:
            endpoint = self.api_base or "provider default"
            raise ConnectionError(f"Cannot reach {self.model} at {endpoint}\n{e}") from e
        except Exception as e:
            raise ConnectionError(f"LLM error: {type(e).__name__}: {e}") from e

        message = response.choices[0].message
        return LLMResponse(
            content=message.content,
            tool_calls=_parse_tool_calls(message.tool_calls),
            usage=_usage_dict(response.usage),
            reasoning_content=getattr(message, "reasoning_content", None),
        )
