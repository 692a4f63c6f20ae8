"""Service container and FastAPI dependencies."""

from pathlib import Path
from typing import Any, Optional

from fastapi import Request

from vectorqa.config import find_config_path, load_config
from vectorqa.pipelines import ChatService, IngestionPipeline, RetrievalPipeline


class ServiceContainer:
    """Holds the long-lived pipelines shared by all requests.

    Pipelines not passed in are built from config on first use, so the
    server starts even when a provider is misconfigured and reports the
    problem on the request that needs it.
    """

    def __init__(
        self,
        config: Optional[dict[str, Any]] = None,
        config_path: Optional[Path] = None,
        retrieval: Optional[RetrievalPipeline] = None,
        ingestion: Optional[IngestionPipeline] = None,
        chat: Optional[ChatService] = None,
    ):
        self.config = config or {}
        self.config_path = config_path or Path("config.toml")
        self._retrieval = retrieval
        self._ingestion = ingestion
        self._chat = chat

    @classmethod
    def from_config_path(cls, config_path: Optional[Path] = None) -> "ServiceContainer":
        path = find_config_path(config_path)
        return cls(config=load_config(path), config_path=path)

    @property
    def retrieval(self) -> RetrievalPipeline:
        if self._retrieval is None:
            self._retrieval = RetrievalPipeline.from_config(self.config, self.config_path)
        return self._retrieval

    @property
    def ingestion(self) -> IngestionPipeline:
        if self._ingestion is None:
            self._ingestion = IngestionPipeline.from_config(self.config, self.config_path)
        return self._ingestion

    @property
    def chat(self) -> ChatService:
        if self._chat is None:
            self._chat = ChatService.from_config(self.config)
        return self._chat


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_retrieval_pipeline(request: Request) -> RetrievalPipeline:
    return get_services(request).retrieval


def get_ingestion_pipeline(request: Request) -> IngestionPipeline:
    return get_services(request).ingestion


def get_chat_service(request: Request) -> ChatService:
    return get_services(request).chat
