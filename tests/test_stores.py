import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from qdrant_client.http.exceptions import UnexpectedResponse
from qdrant_client.models import CollectionStatus, Distance

from conftest import MemoryVectorStore, make_record
from vectorqa.errors import (
    IndexAlreadyExistsRace,
    IndexNotFoundError,
    IndexNotReadyError,
    InvalidBatchError,
)
from vectorqa.stores import (
    FAISSVectorStore,
    QdrantVectorStore,
    create_vector_store,
    list_vector_store_providers,
)
from vectorqa.stores.qdrant import point_id


class TestEnsureIndex:
    def test_creates_missing_index(self, memory_store: MemoryVectorStore) -> None:
        created = memory_store.ensure_index("docs", 8)

        assert created is True
        assert memory_store.created == ["docs"]
        assert memory_store.dimensions["docs"] == 8

    def test_second_call_is_noop(self, memory_store: MemoryVectorStore) -> None:
        memory_store.ensure_index("docs", 8)
        created = memory_store.ensure_index("docs", 8)

        assert created is False
        assert memory_store.created == ["docs"]

    def test_polls_with_exponential_backoff(self) -> None:
        store = MemoryVectorStore(
            ready_after=3, ready_initial_delay=0.5, ready_backoff=2.0
        )

        store.ensure_index("docs", 8)

        assert store.sleeps == [0.5, 1.0, 2.0]
        assert store.ready_checks == 4

    def test_raises_when_never_ready(self) -> None:
        store = MemoryVectorStore(ready_after=100, ready_max_attempts=3)

        with pytest.raises(IndexNotReadyError):
            store.ensure_index("docs", 8)

        assert store.ready_checks == 3
        assert len(store.sleeps) == 2

    def test_concurrent_creation_counts_as_existing(self) -> None:
        store = MemoryVectorStore()
        store.race_on_create = True

        created = store.ensure_index("docs", 8)

        assert created is False
        assert "docs" in store.list_indexes()


class TestUpsertBatchLimit:
    def test_rejects_more_than_100_records(self, memory_store: MemoryVectorStore) -> None:
        memory_store.ensure_index("docs", 2)
        records = [make_record(f"a_{i}", [0.1, 0.2]) for i in range(101)]

        with pytest.raises(InvalidBatchError):
            memory_store.upsert("docs", records)
        assert memory_store.upserts == []

    def test_accepts_exactly_100_records(self, memory_store: MemoryVectorStore) -> None:
        memory_store.ensure_index("docs", 2)
        records = [make_record(f"a_{i}", [0.1, 0.2]) for i in range(100)]

        memory_store.upsert("docs", records)

        assert memory_store.count("docs") == 100

    def test_empty_batch_is_noop(self, memory_store: MemoryVectorStore) -> None:
        memory_store.upsert("missing", [])
        assert memory_store.upserts == []


class TestFAISSVectorStore:
    def test_create_and_list(self, faiss_store: FAISSVectorStore) -> None:
        faiss_store.create_index("docs", 3)

        assert faiss_store.list_indexes() == ["docs"]
        assert faiss_store.is_index_ready("docs")
        assert faiss_store.count("docs") == 0

    def test_create_existing_raises_race(self, faiss_store: FAISSVectorStore) -> None:
        faiss_store.create_index("docs", 3)

        with pytest.raises(IndexAlreadyExistsRace):
            faiss_store.create_index("docs", 3)

    def test_rejects_invalid_name_and_metric(self, faiss_store: FAISSVectorStore) -> None:
        with pytest.raises(ValueError):
            faiss_store.create_index("../escape", 3)
        with pytest.raises(ValueError):
            faiss_store.create_index("docs", 3, metric="euclidean")

    def test_search_returns_closest_first(self, faiss_store: FAISSVectorStore) -> None:
        faiss_store.ensure_index("docs", 3)
        faiss_store.upsert(
            "docs",
            [
                make_record("a.txt_0", [1.0, 0.0, 0.0], text="apples"),
                make_record("b.txt_0", [0.0, 1.0, 0.0], text="bananas"),
                make_record("c.txt_0", [0.7, 0.7, 0.0], text="both"),
            ],
        )

        results = faiss_store.search("docs", [0.9, 0.1, 0.0], k=2)

        assert [r.id for r in results] == ["a.txt_0", "c.txt_0"]
        assert results[0].text == "apples"
        assert results[0].source == "doc.txt"
        assert results[0].score == pytest.approx(0.9 / (0.82 ** 0.5), rel=1e-4)
        assert results[0].score >= results[1].score

    def test_search_caps_k_at_index_size(self, faiss_store: FAISSVectorStore) -> None:
        faiss_store.ensure_index("docs", 2)
        faiss_store.upsert("docs", [make_record("a_0", [1.0, 0.0])])

        assert len(faiss_store.search("docs", [1.0, 0.0], k=5)) == 1

    def test_search_empty_index_returns_nothing(self, faiss_store: FAISSVectorStore) -> None:
        faiss_store.ensure_index("docs", 2)
        assert faiss_store.search("docs", [1.0, 0.0], k=3) == []

    def test_search_missing_index_raises(self, faiss_store: FAISSVectorStore) -> None:
        with pytest.raises(IndexNotFoundError):
            faiss_store.search("missing", [1.0, 0.0])

    def test_upsert_overwrites_by_id(self, faiss_store: FAISSVectorStore) -> None:
        faiss_store.ensure_index("docs", 2)
        faiss_store.upsert("docs", [make_record("a_0", [1.0, 0.0], text="old")])
        faiss_store.upsert(
            "docs",
            [
                make_record("a_0", [0.0, 1.0], text="new"),
                make_record("a_1", [1.0, 0.0], text="other"),
            ],
        )

        assert faiss_store.count("docs") == 2
        results = faiss_store.search("docs", [0.0, 1.0], k=1)
        assert results[0].id == "a_0"
        assert results[0].text == "new"

    def test_upsert_dimension_mismatch_raises(self, faiss_store: FAISSVectorStore) -> None:
        faiss_store.ensure_index("docs", 2)

        with pytest.raises(ValueError):
            faiss_store.upsert("docs", [make_record("a_0", [1.0, 0.0, 0.0])])
        assert faiss_store.count("docs") == 0

    def test_persists_between_instances(self, temp_storage_dir: Path) -> None:
        store = FAISSVectorStore(directory=temp_storage_dir)
        store.ensure_index("docs", 2)
        store.upsert("docs", [make_record("a_0", [1.0, 0.0], text="kept")])

        reopened = FAISSVectorStore(directory=temp_storage_dir)

        assert reopened.list_indexes() == ["docs"]
        assert reopened.count("docs") == 1
        assert reopened.search("docs", [1.0, 0.0])[0].text == "kept"
        assert (temp_storage_dir / "docs.faiss").exists()
        assert (temp_storage_dir / "docs.json").exists()

    def test_in_memory_without_directory(self) -> None:
        store = FAISSVectorStore()
        store.ensure_index("docs", 2)
        store.upsert("docs", [make_record("a_0", [1.0, 0.0])])

        assert store.count("docs") == 1

    def test_lock_blocks_other_threads(self, faiss_store: FAISSVectorStore) -> None:
        faiss_store.ensure_index("docs", 2)
        written = threading.Event()

        def writer() -> None:
            faiss_store.upsert("docs", [make_record("a_0", [1.0, 0.0])])
            written.set()

        with faiss_store._locked("docs"):
            thread = threading.Thread(target=writer)
            thread.start()
            assert not written.wait(0.2)
        thread.join(timeout=5)

        assert written.is_set()
        assert faiss_store.count("docs") == 1

    def test_file_lock_blocks_second_store(self, temp_storage_dir: Path) -> None:
        first = FAISSVectorStore(directory=temp_storage_dir)
        second = FAISSVectorStore(directory=temp_storage_dir)
        first.ensure_index("docs", 2)
        acquired = threading.Event()

        def hold() -> None:
            with second._locked("docs"):
                acquired.set()

        with first._locked("docs"):
            thread = threading.Thread(target=hold)
            thread.start()
            assert not acquired.wait(0.2)
        thread.join(timeout=5)

        assert acquired.is_set()

    def test_concurrent_upserts_keep_every_record(self, faiss_store: FAISSVectorStore) -> None:
        faiss_store.ensure_index("docs", 2)

        def writer(worker: int) -> None:
            for i in range(5):
                faiss_store.upsert(
                    "docs", [make_record(f"w{worker}_{i}", [1.0, float(worker)])]
                )

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert faiss_store.count("docs") == 40
        reopened = FAISSVectorStore(directory=faiss_store._directory)
        assert reopened.count("docs") == 40


def _unexpected(status_code: int) -> UnexpectedResponse:
    return UnexpectedResponse(
        status_code=status_code, reason_phrase="", content=b"", headers=None
    )


class TestQdrantVectorStore:
    def test_list_indexes(self) -> None:
        client = MagicMock()
        collection = MagicMock()
        collection.name = "docs"
        client.get_collections.return_value = MagicMock(collections=[collection])

        store = QdrantVectorStore(client=client)

        assert store.list_indexes() == ["docs"]

    def test_create_index_uses_cosine(self) -> None:
        client = MagicMock()
        store = QdrantVectorStore(client=client)

        store.create_index("docs", 1536)

        kwargs = client.create_collection.call_args.kwargs
        assert kwargs["collection_name"] == "docs"
        assert kwargs["vectors_config"].size == 1536
        assert kwargs["vectors_config"].distance == Distance.COSINE

    def test_create_index_conflict_is_race(self) -> None:
        client = MagicMock()
        client.create_collection.side_effect = _unexpected(409)
        store = QdrantVectorStore(client=client)

        with pytest.raises(IndexAlreadyExistsRace):
            store.create_index("docs", 8)

    def test_is_index_ready_checks_status(self) -> None:
        client = MagicMock()
        client.get_collection.return_value = MagicMock(status=CollectionStatus.RED)
        store = QdrantVectorStore(client=client)

        assert store.is_index_ready("docs") is False

        client.get_collection.return_value = MagicMock(status=CollectionStatus.YELLOW)
        assert store.is_index_ready("docs") is True

        client.get_collection.return_value = MagicMock(status=CollectionStatus.GREEN)
        assert store.is_index_ready("docs") is True

        client.get_collection.side_effect = _unexpected(404)
        assert store.is_index_ready("docs") is False

    def test_ensure_index_waits_until_serving(self) -> None:
        client = MagicMock()
        client.get_collections.return_value = MagicMock(collections=[])
        client.get_collection.side_effect = [
            MagicMock(status=CollectionStatus.RED),
            MagicMock(status=CollectionStatus.YELLOW),
        ]
        sleeps: list[float] = []
        store = QdrantVectorStore(client=client, sleep=sleeps.append)

        assert store.ensure_index("docs", 8) is True
        assert sleeps == [1.0]

    def test_upsert_maps_ids_to_uuids(self) -> None:
        client = MagicMock()
        store = QdrantVectorStore(client=client)

        store.upsert("docs", [make_record("notes/a.txt_0", [0.1, 0.2], text="hi")])

        kwargs = client.upsert.call_args.kwargs
        point = kwargs["points"][0]
        assert point.id == point_id("notes/a.txt_0")
        assert point.payload["record_id"] == "notes/a.txt_0"
        assert point.payload["text"] == "hi"
        assert kwargs["wait"] is True

    def test_point_id_is_deterministic(self) -> None:
        assert point_id("a.txt_0") == point_id("a.txt_0")
        assert point_id("a.txt_0") != point_id("a.txt_1")

    def test_search_returns_results(self) -> None:
        client = MagicMock()
        client.query_points.return_value = MagicMock(
            points=[
                MagicMock(
                    id="uuid",
                    score=0.93,
                    payload={
                        "record_id": "a.txt_0",
                        "text": "hello",
                        "source": "a.txt",
                        "chunk_index": 0,
                    },
                )
            ]
        )
        store = QdrantVectorStore(client=client)

        results = store.search("docs", [0.1, 0.2], k=3)

        assert client.query_points.call_args.kwargs["limit"] == 3
        assert results[0].id == "a.txt_0"
        assert results[0].text == "hello"
        assert results[0].source == "a.txt"
        assert results[0].score == 0.93
        assert results[0].metadata == {"chunk_index": 0}

    def test_search_missing_collection_raises(self) -> None:
        client = MagicMock()
        client.query_points.side_effect = _unexpected(404)
        store = QdrantVectorStore(client=client)

        with pytest.raises(IndexNotFoundError):
            store.search("docs", [0.1])

    def test_count_is_exact(self) -> None:
        client = MagicMock()
        client.count.return_value = MagicMock(count=42)
        store = QdrantVectorStore(client=client)

        assert store.count("docs") == 42
        client.count.assert_called_once_with(collection_name="docs", exact=True)


class TestCreateVectorStore:
    def test_registered_providers(self) -> None:
        assert set(list_vector_store_providers()) == {"qdrant", "faiss"}

    def test_creates_faiss(self, temp_storage_dir: Path) -> None:
        store = create_vector_store("faiss", directory=temp_storage_dir)
        assert isinstance(store, FAISSVectorStore)

    def test_unknown_provider_raises(self) -> None:
        with pytest.raises(ValueError):
            create_vector_store("pinecone")
