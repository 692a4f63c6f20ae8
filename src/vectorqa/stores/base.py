import logging
import time
from abc import ABC, abstractmethod
from typing import Callable

from vectorqa.errors import IndexAlreadyExistsRace, IndexNotReadyError, InvalidBatchError
from vectorqa.models import RetrievalResult, VectorRecord

logger = logging.getLogger(__name__)

MAX_UPSERT_BATCH = 100
DEFAULT_METRIC = "cosine"
DEFAULT_READY_MAX_ATTEMPTS = 6
DEFAULT_READY_INITIAL_DELAY = 1.0
DEFAULT_READY_BACKOFF = 2.0


class BaseVectorStore(ABC):
    """Abstract base class for vector stores holding named indexes.

    Subclasses provide the raw index operations; index lifecycle
    (check, create, wait for readiness) and upsert batch validation
    live here.
    """

    def __init__(
        self,
        ready_max_attempts: int = DEFAULT_READY_MAX_ATTEMPTS,
        ready_initial_delay: float = DEFAULT_READY_INITIAL_DELAY,
        ready_backoff: float = DEFAULT_READY_BACKOFF,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.ready_max_attempts = max(1, int(ready_max_attempts))
        self.ready_initial_delay = float(ready_initial_delay)
        self.ready_backoff = float(ready_backoff)
        self._sleep = sleep

    @abstractmethod
    def list_indexes(self) -> list[str]:
        """Return the names of all existing indexes."""
        pass

    @abstractmethod
    def create_index(self, name: str, dimension: int, metric: str = DEFAULT_METRIC) -> None:
        """Create an index. Raises IndexAlreadyExistsRace if it already exists."""
        pass

    @abstractmethod
    def is_index_ready(self, name: str) -> bool:
        """Return True once the index accepts reads and writes."""
        pass

    @abstractmethod
    def _upsert(self, name: str, records: list[VectorRecord]) -> None:
        pass

    @abstractmethod
    def search(
        self,
        name: str,
        query_vector: list[float],
        k: int = 1,
    ) -> list[RetrievalResult]:
        """Return the k records most similar to the query vector, closest first."""
        pass

    @abstractmethod
    def count(self, name: str) -> int:
        """Return the number of vectors in the index."""
        pass

    def upsert(self, name: str, records: list[VectorRecord]) -> None:
        """Insert or overwrite up to MAX_UPSERT_BATCH records by id."""
        if len(records) > MAX_UPSERT_BATCH:
            raise InvalidBatchError(
                f"Upsert batch of {len(records)} records exceeds the maximum "
                f"of {MAX_UPSERT_BATCH}"
            )
        if not records:
            return
        self._upsert(name, records)

    def ensure_index(self, name: str, dimension: int, metric: str = DEFAULT_METRIC) -> bool:
        """Create the index if it does not exist and wait until it is ready.

        Returns:
            True if this call created the index, False if it already existed.
        """
        logger.info(f"Checking {name}...")
        if name in self.list_indexes():
            logger.info(f"{name} already exists.")
            return False

        logger.info(f"Creating {name} (dimension={dimension}, metric={metric})...")
        try:
            self.create_index(name, dimension, metric)
        except IndexAlreadyExistsRace:
            logger.info(f"{name} was created concurrently, using it.")
            self.wait_until_ready(name)
            return False

        self.wait_until_ready(name)
        return True

    def wait_until_ready(self, name: str) -> None:
        """Poll index readiness with exponential backoff.

        Raises:
            IndexNotReadyError: If the index is still not ready after
                ready_max_attempts checks.
        """
        delay = self.ready_initial_delay
        for attempt in range(1, self.ready_max_attempts + 1):
            if self.is_index_ready(name):
                logger.info(f"Index {name} is ready.")
                return
            if attempt == self.ready_max_attempts:
                break
            logger.info(
                f"Index {name} not ready (attempt {attempt}/{self.ready_max_attempts}), "
                f"retrying in {delay:.1f}s"
            )
            self._sleep(delay)
            delay *= self.ready_backoff

        raise IndexNotReadyError(
            f"Index {name} not ready after {self.ready_max_attempts} checks"
        )
