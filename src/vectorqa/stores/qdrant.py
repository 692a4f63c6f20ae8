"""Qdrant-backed vector store for managed deployments."""

import uuid
from typing import Any, Optional

from qdrant_client import QdrantClient
from qdrant_client.http.exceptions import UnexpectedResponse
from qdrant_client.models import CollectionStatus, Distance, PointStruct, VectorParams

from vectorqa.errors import IndexAlreadyExistsRace, IndexNotFoundError
from vectorqa.models import RetrievalResult, VectorRecord
from .base import DEFAULT_METRIC, BaseVectorStore

DISTANCES = {
    "cosine": Distance.COSINE,
    "dotproduct": Distance.DOT,
    "euclidean": Distance.EUCLID,
}

# Qdrant point ids must be integers or UUIDs
POINT_ID_NAMESPACE = uuid.UUID("00000000-0000-0000-0000-000000000000")
RECORD_ID_KEY = "record_id"


def point_id(record_id: str) -> str:
    """Derive a deterministic UUID point id from a record id."""
    return str(uuid.uuid5(POINT_ID_NAMESPACE, record_id))


class QdrantVectorStore(BaseVectorStore):
    """Vector store on a Qdrant server, one collection per index.

    Args:
        url: Qdrant endpoint.
        api_key: Optional API key for Qdrant Cloud.
        timeout: Request timeout in seconds.
        client: Pre-built client, mainly for tests.
    """

    def __init__(
        self,
        url: str = "http://localhost:6333",
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[QdrantClient] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.client = client or QdrantClient(
            url=url, api_key=api_key or None, timeout=int(float(timeout))
        )

    def list_indexes(self) -> list[str]:
        return [c.name for c in self.client.get_collections().collections]

    def create_index(self, name: str, dimension: int, metric: str = DEFAULT_METRIC) -> None:
        if metric not in DISTANCES:
            raise ValueError(f"Unsupported metric: {metric}")
        try:
            self.client.create_collection(
                collection_name=name,
                vectors_config=VectorParams(size=dimension, distance=DISTANCES[metric]),
            )
        except UnexpectedResponse as e:
            if e.status_code == 409:
                raise IndexAlreadyExistsRace(f"Index already exists: {name}") from e
            raise

    def is_index_ready(self, name: str) -> bool:
        try:
            info = self.client.get_collection(collection_name=name)
        except UnexpectedResponse as e:
            if e.status_code == 404:
                return False
            raise
        # YELLOW collections are still optimizing but already serve requests
        return info.status in (CollectionStatus.GREEN, CollectionStatus.YELLOW)

    def _upsert(self, name: str, records: list[VectorRecord]) -> None:
        points = [
            PointStruct(
                id=point_id(record.id),
                vector=record.values,
                payload={RECORD_ID_KEY: record.id, **record.metadata},
            )
            for record in records
        ]
        self.client.upsert(collection_name=name, points=points, wait=True)

    def search(
        self,
        name: str,
        query_vector: list[float],
        k: int = 1,
    ) -> list[RetrievalResult]:
        try:
            response = self.client.query_points(
                collection_name=name,
                query=query_vector,
                limit=k,
                with_payload=True,
            )
        except UnexpectedResponse as e:
            if e.status_code == 404:
                raise IndexNotFoundError(f"Index not found: {name}") from e
            raise

        results = []
        for point in response.points:
            payload = dict(point.payload or {})
            results.append(
                RetrievalResult(
                    id=payload.pop(RECORD_ID_KEY, str(point.id)),
                    text=payload.pop("text", ""),
                    source=payload.pop("source", "unknown"),
                    score=point.score,
                    metadata=payload,
                )
            )
        return results

    def count(self, name: str) -> int:
        return self.client.count(collection_name=name, exact=True).count
