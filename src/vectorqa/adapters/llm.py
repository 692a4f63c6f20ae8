from typing import Any, Iterator, Optional

from openai import OpenAI

from vectorqa.errors import ProviderAuthError
from .base import BaseLLM
from .utils import create_session_with_pooling, openai_client_kwargs

DEFAULT_TEMPERATURE = 0.0


class OpenAILLM(BaseLLM):
    """OpenAI chat-completions provider."""

    def __init__(
        self,
        model: str = "gpt-3.5-turbo",
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        client_kwargs = openai_client_kwargs(kwargs)

        self.client: Optional[OpenAI] = (
            OpenAI(**client_kwargs) if client_kwargs["api_key"] else None
        )
        self.temperature = float(temperature)
        self.max_tokens = int(max_tokens) if max_tokens else None

    @property
    def supports_streaming(self) -> bool:
        return True

    def _require_client(self) -> OpenAI:
        if self.client is None:
            raise ProviderAuthError(
                "No OpenAI API key configured (set OPENAI_API_KEY)", provider="llm"
            )
        return self.client

    def _get_completion_params(
        self, messages: list[dict[str, str]], **kwargs: Any
    ) -> dict[str, Any]:
        """Build parameters for chat completion."""
        return {
            "model": self.model,
            "messages": messages,
            "temperature": kwargs.get("temperature", self.temperature),
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
        }

    def generate(self, prompt: str, **kwargs: Any) -> str:
        return self.chat([{"role": "user", "content": prompt}], **kwargs)

    def chat(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        params = self._get_completion_params(messages, **kwargs)
        response = self._require_client().chat.completions.create(**params)
        return response.choices[0].message.content or ""

    def stream_chat(
        self, messages: list[dict[str, str]], **kwargs: Any
    ) -> Iterator[str]:
        params = self._get_completion_params(messages, **kwargs)
        stream = self._require_client().chat.completions.create(**params, stream=True)
        for part in stream:
            if part.choices:
                yield part.choices[0].delta.content or ""


class OllamaLLM(BaseLLM):
    """Ollama local LLM provider with connection pooling."""

    def __init__(
        self,
        model: str = "llama3",
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: Optional[int] = None,
        base_url: str = "http://localhost:11434",
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        self.base_url = base_url.rstrip("/")
        self.temperature = float(temperature)
        self.max_tokens = int(max_tokens) if max_tokens else None
        self.session = create_session_with_pooling()

    @property
    def supports_streaming(self) -> bool:
        return False

    def _build_payload(self, **kwargs: Any) -> dict[str, Any]:
        """Build request payload for Ollama API."""
        payload: dict[str, Any] = {
            "model": self.model,
            "stream": False,
            "options": {"temperature": kwargs.get("temperature", self.temperature)},
        }
        max_tokens = kwargs.get("max_tokens", self.max_tokens)
        if max_tokens:
            payload["options"]["num_predict"] = max_tokens
        return payload

    def generate(self, prompt: str, **kwargs: Any) -> str:
        payload = self._build_payload(**kwargs)
        payload["prompt"] = prompt

        response = self.session.post(
            f"{self.base_url}/api/generate",
            json=payload,
            timeout=120,
        )
        response.raise_for_status()
        return response.json()["response"]

    def chat(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        payload = self._build_payload(**kwargs)
        payload["messages"] = messages

        response = self.session.post(
            f"{self.base_url}/api/chat",
            json=payload,
            timeout=120,
        )
        response.raise_for_status()
        return response.json()["message"]["content"]
