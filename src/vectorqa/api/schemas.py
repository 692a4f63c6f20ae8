"""Request and response models for the HTTP surface."""

from typing import Literal

from pydantic import BaseModel, Field

from vectorqa.models import IngestionReport


class HealthResponse(BaseModel):
    id: int
    message: str


class QueryRequest(BaseModel):
    query: str = Field(min_length=1)


class Source(BaseModel):
    id: str
    source: str
    score: float


class QueryResponse(BaseModel):
    data: str
    sources: list[Source] = Field(default_factory=list)


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(min_length=1)


class ChatResponse(BaseModel):
    content: str


class LoadVectorResponse(BaseModel):
    data: str
    report: IngestionReport


class ErrorDetail(BaseModel):
    type: str
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail
