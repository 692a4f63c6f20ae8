import fcntl
import json
import re
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Optional

import faiss
import numpy as np

from vectorqa.errors import IndexAlreadyExistsRace, IndexNotFoundError
from vectorqa.models import RetrievalResult, VectorRecord
from .base import DEFAULT_METRIC, BaseVectorStore

INDEX_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


@dataclass
class _LocalIndex:
    dimension: int
    metric: str
    index: faiss.Index
    ids: list[str] = field(default_factory=list)
    metadata: list[dict[str, Any]] = field(default_factory=list)


class FAISSVectorStore(BaseVectorStore):
    """FAISS-backed store with one persisted index per name.

    Vectors are L2-normalized and searched by inner product, which ranks
    by cosine similarity. Each index is stored as ``<name>.faiss`` plus a
    ``<name>.json`` sidecar with record ids and metadata.
    """

    def __init__(self, directory: Optional[Path | str] = None, **kwargs: Any):
        super().__init__(**kwargs)
        self._directory = Path(directory) if directory else None
        self._indexes: dict[str, _LocalIndex] = {}
        self._lock = threading.RLock()

    def _index_path(self, name: str) -> Optional[Path]:
        return self._directory / f"{name}.faiss" if self._directory else None

    def _metadata_path(self, name: str) -> Optional[Path]:
        return self._directory / f"{name}.json" if self._directory else None

    @contextmanager
    def _locked(self, name: str) -> Iterator[None]:
        """Hold the in-process lock and, when persisted, the index file lock."""
        with self._lock:
            metadata_path = self._metadata_path(name)
            if not metadata_path:
                yield
                return

            metadata_path.parent.mkdir(parents=True, exist_ok=True)
            with open(metadata_path.with_suffix(".lock"), "w") as lock_file:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _load(self, name: str) -> _LocalIndex:
        if name in self._indexes:
            return self._indexes[name]

        metadata_path = self._metadata_path(name)
        if not metadata_path or not metadata_path.exists():
            raise IndexNotFoundError(f"Index not found: {name}")

        with open(metadata_path, "r") as f:
            sidecar = json.load(f)

        index_path = self._index_path(name)
        index = (
            faiss.read_index(str(index_path))
            if index_path.exists()
            else faiss.IndexFlatIP(sidecar["dimension"])
        )
        local = _LocalIndex(
            dimension=sidecar["dimension"],
            metric=sidecar.get("metric", DEFAULT_METRIC),
            index=index,
            ids=sidecar.get("ids", []),
            metadata=sidecar.get("metadata", []),
        )
        self._indexes[name] = local
        return local

    def _save(self, name: str) -> None:
        local = self._indexes[name]
        index_path = self._index_path(name)
        metadata_path = self._metadata_path(name)
        if not index_path or not metadata_path:
            return

        index_path.parent.mkdir(parents=True, exist_ok=True)
        faiss.write_index(local.index, str(index_path))
        with open(metadata_path, "w") as f:
            json.dump(
                {
                    "dimension": local.dimension,
                    "metric": local.metric,
                    "ids": local.ids,
                    "metadata": local.metadata,
                },
                f,
                indent=2,
            )

    def list_indexes(self) -> list[str]:
        names = set(self._indexes)
        if self._directory and self._directory.exists():
            names.update(path.stem for path in self._directory.glob("*.json"))
        return sorted(names)

    def create_index(self, name: str, dimension: int, metric: str = DEFAULT_METRIC) -> None:
        if not INDEX_NAME_PATTERN.match(name):
            raise ValueError(f"Invalid index name: {name!r}")
        if metric != DEFAULT_METRIC:
            raise ValueError(f"Unsupported metric for FAISS store: {metric}")

        with self._locked(name):
            if name in self.list_indexes():
                raise IndexAlreadyExistsRace(f"Index already exists: {name}")
            self._indexes[name] = _LocalIndex(
                dimension=dimension,
                metric=metric,
                index=faiss.IndexFlatIP(dimension),
            )
            self._save(name)

    def is_index_ready(self, name: str) -> bool:
        return name in self.list_indexes()

    def _remove_ids(self, local: _LocalIndex, ids: set[str]) -> int:
        """Drop records with the given ids, rebuilding the FAISS index."""
        positions = {i for i, record_id in enumerate(local.ids) if record_id in ids}
        if not positions:
            return 0

        kept = [i for i in range(len(local.ids)) if i not in positions]
        index = faiss.IndexFlatIP(local.dimension)
        if kept:
            index.add(
                np.array([local.index.reconstruct(i) for i in kept], dtype=np.float32)
            )
        local.index = index
        local.ids = [local.ids[i] for i in kept]
        local.metadata = [local.metadata[i] for i in kept]
        return len(positions)

    def _upsert(self, name: str, records: list[VectorRecord]) -> None:
        with self._locked(name):
            local = self._load(name)

            latest: dict[str, VectorRecord] = {}
            for record in records:
                latest[record.id] = record

            vectors = np.array([r.values for r in latest.values()], dtype=np.float32)
            if vectors.shape[1] != local.dimension:
                raise ValueError(
                    f"Vector dimension {vectors.shape[1]} does not match "
                    f"index {name} dimension {local.dimension}"
                )

            self._remove_ids(local, set(latest))
            faiss.normalize_L2(vectors)
            local.index.add(vectors)

            for record in latest.values():
                local.ids.append(record.id)
                local.metadata.append(dict(record.metadata))

            self._save(name)

    def search(
        self,
        name: str,
        query_vector: list[float],
        k: int = 1,
    ) -> list[RetrievalResult]:
        with self._lock:
            local = self._load(name)
            if local.index.ntotal == 0:
                return []

            query = np.array([query_vector], dtype=np.float32)
            faiss.normalize_L2(query)
            scores, positions = local.index.search(query, min(k, local.index.ntotal))
            ids = list(local.ids)
            metadata = list(local.metadata)

        results = []
        for score, position in zip(scores[0], positions[0]):
            if 0 <= position < len(ids):
                meta = metadata[position]
                results.append(
                    RetrievalResult(
                        id=ids[position],
                        text=meta.get("text", ""),
                        source=meta.get("source", "unknown"),
                        score=float(score),
                        metadata={
                            key: value
                            for key, value in meta.items()
                            if key not in ("text", "source")
                        },
                    )
                )
        return results

    def count(self, name: str) -> int:
        with self._lock:
            return self._load(name).index.ntotal
