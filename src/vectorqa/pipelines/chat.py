import logging
from typing import Any

from vectorqa.adapters import BaseLLM
from vectorqa.errors import provider_errors
from .base import create_llm_from_config

logger = logging.getLogger(__name__)


class ChatService:
    """Free-form chat over the configured chat model.

    The reply is streamed from the provider and returned once complete,
    so a provider failure mid-stream surfaces as a ProviderError instead
    of a truncated answer.
    """

    def __init__(self, llm: BaseLLM):
        self.llm = llm

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "ChatService":
        return cls(create_llm_from_config(config, section="chat"))

    def complete(self, messages: list[dict[str, str]]) -> str:
        logger.info(f"Chat completion over {len(messages)} messages")
        with provider_errors("llm"):
            return "".join(self.llm.stream_chat(messages))
