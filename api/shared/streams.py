"""Lazy, restartable async sequences fetched in batches."""
from typing import (
    AsyncGenerator,
    AsyncIterator,
    Awaitable,
    Callable,
    Generic,
    List,
    Optional,
    Sequence,
    TypeVar,
)

T = TypeVar("T")
K = TypeVar("K")

PageFetcher = Callable[[Optional[K], int], Awaitable[Sequence[T]]]
KeySnapshot = Callable[[], Awaitable[Sequence[K]]]
BatchLoader = Callable[[Sequence[K]], Awaitable[Sequence[T]]]


class _BatchedStream(Generic[T]):
    """Shared iteration helpers; subclasses provide ``_iterate``."""

    def __init__(self, *, batch_size: int = 100):
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.batch_size = batch_size

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    def _iterate(self) -> AsyncGenerator[T, None]:
        raise NotImplementedError

    async def all(self) -> List[T]:
        """Collect the whole sequence into a list."""
        return [record async for record in self]

    async def first(self) -> Optional[T]:
        """Return the first record, or None for an empty sequence."""
        iterator = self._iterate()
        try:
            async for record in iterator:
                return record
            return None
        finally:
            await iterator.aclose()


class RecordStream(_BatchedStream[T], Generic[T, K]):
    """Async iterable over records fetched with a keyset cursor.

    Nothing is queried until iteration starts, and every ``async for`` starts
    again from the first record. ``fetch_page(cursor, limit)`` returns the
    next batch after ``cursor`` (``None`` for the first batch); ``key`` builds
    the cursor from the last record of a batch. Iteration stops at the first
    short batch.

    The cursor must be immutable for a record; a record whose sort key moves
    behind the cursor mid-iteration is not seen again in that pass.
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        key: Callable[[T], K],
        *,
        batch_size: int = 100,
    ):
        super().__init__(batch_size=batch_size)
        self._fetch_page = fetch_page
        self._key = key

    async def _iterate(self) -> AsyncGenerator[T, None]:
        cursor: Optional[K] = None
        while True:
            page = await self._fetch_page(cursor, self.batch_size)
            for record in page:
                yield record
            if len(page) < self.batch_size:
                return
            cursor = self._key(page[-1])


class SnapshotStream(_BatchedStream[T], Generic[T, K]):
    """Async iterable over a key list captured when iteration starts.

    ``snapshot()`` returns the ordered keys of the whole sequence in one
    query; ``load(keys)`` fetches the records for one batch of them. Records
    keep their snapshot position even if their sort key changes mid-pass,
    and are yielded with their current state. Records gone by the time their
    batch is loaded are skipped.
    """

    def __init__(
        self,
        snapshot: KeySnapshot,
        load: BatchLoader,
        key: Callable[[T], K],
        *,
        batch_size: int = 100,
    ):
        super().__init__(batch_size=batch_size)
        self._snapshot = snapshot
        self._load = load
        self._key = key

    async def _iterate(self) -> AsyncGenerator[T, None]:
        keys = list(await self._snapshot())
        for start in range(0, len(keys), self.batch_size):
            batch = keys[start:start + self.batch_size]
            loaded = {self._key(record): record for record in await self._load(batch)}
            for key in batch:
                if key in loaded:
                    yield loaded[key]
