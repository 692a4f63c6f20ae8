"""HTTP routes.

Routes:
- GET / - health check
- GET|POST /query - answer a question from the indexed documents
- POST /chat - free-form chat completion
- GET|POST /load-vector - index every document in the ingestion directory
"""

import logging

from fastapi import APIRouter, Depends, Response

from vectorqa.models import IngestionReport
from vectorqa.pipelines import ChatService, IngestionPipeline, RetrievalPipeline
from .deps import get_chat_service, get_ingestion_pipeline, get_retrieval_pipeline
from .schemas import (
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    HealthResponse,
    LoadVectorResponse,
    QueryRequest,
    QueryResponse,
    Source,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    404: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.get("/", response_model=HealthResponse)
def health_check() -> HealthResponse:
    return HealthResponse(id=1, message="Server Healthy")


@router.api_route(
    "/query",
    methods=["GET", "POST"],
    response_model=QueryResponse,
    responses=ERROR_RESPONSES,
)
def query(
    request: QueryRequest,
    pipeline: RetrievalPipeline = Depends(get_retrieval_pipeline),
) -> QueryResponse:
    """Answer a question with the top-k retrieved chunks as context."""
    result = pipeline.query(request.query)
    return QueryResponse(
        data=result.answer,
        sources=[
            Source(id=doc.id, source=doc.source, score=doc.score)
            for doc in result.context
        ],
    )


@router.post("/chat", response_model=ChatResponse, responses=ERROR_RESPONSES)
def chat(
    request: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """Stream a chat completion and return the concatenated reply."""
    messages = [message.model_dump() for message in request.messages]
    return ChatResponse(content=chat_service.complete(messages))


def _summarize(report: IngestionReport) -> str:
    summary = (
        f"Indexed {report.documents} documents ({report.chunks} chunks) "
        f"into {report.index_name}"
    )
    if report.failures:
        summary += f"; {len(report.failures)} documents failed"
    return summary


@router.api_route(
    "/load-vector",
    methods=["GET", "POST"],
    response_model=LoadVectorResponse,
    responses={207: {"model": LoadVectorResponse}, **ERROR_RESPONSES},
)
def load_vector(
    response: Response,
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
) -> LoadVectorResponse:
    """Index every document in the ingestion directory.

    Answers 207 when some documents failed; the report lists them.
    """
    report = pipeline.run()
    if not report.succeeded:
        response.status_code = 207
    return LoadVectorResponse(data=_summarize(report), report=report)
