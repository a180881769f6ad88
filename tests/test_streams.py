import pytest

from api.shared.streams import RecordStream, SnapshotStream


def make_source(records):
    calls = []

    async def fetch_page(after, limit):
        calls.append((after, limit))
        start = 0 if after is None else records.index(after) + 1
        return records[start:start + limit]

    return fetch_page, calls


async def test_stream_does_not_fetch_until_iterated():
    fetch_page, calls = make_source([1, 2, 3])

    RecordStream(fetch_page, key=lambda r: r, batch_size=2)

    assert calls == []


async def test_stream_walks_batches_with_cursor():
    fetch_page, calls = make_source([1, 2, 3, 4, 5])
    stream = RecordStream(fetch_page, key=lambda r: r, batch_size=2)

    assert await stream.all() == [1, 2, 3, 4, 5]
    assert calls == [(None, 2), (2, 2), (4, 2)]


async def test_stream_stops_after_empty_trailing_batch():
    fetch_page, calls = make_source([1, 2, 3, 4])
    stream = RecordStream(fetch_page, key=lambda r: r, batch_size=2)

    assert await stream.all() == [1, 2, 3, 4]
    assert calls[-1] == (4, 2)


async def test_stream_restarts_from_the_beginning():
    fetch_page, _ = make_source([1, 2, 3])
    stream = RecordStream(fetch_page, key=lambda r: r, batch_size=2)

    assert [r async for r in stream] == [1, 2, 3]
    assert [r async for r in stream] == [1, 2, 3]


async def test_first_reads_one_batch_only():
    fetch_page, calls = make_source([1, 2, 3, 4, 5])
    stream = RecordStream(fetch_page, key=lambda r: r, batch_size=2)

    assert await stream.first() == 1
    assert len(calls) == 1


async def test_first_of_empty_stream():
    fetch_page, _ = make_source([])

    assert await RecordStream(fetch_page, key=lambda r: r).first() is None


def test_batch_size_must_be_positive():
    fetch_page, _ = make_source([])

    with pytest.raises(ValueError):
        RecordStream(fetch_page, key=lambda r: r, batch_size=0)


def make_snapshot_source(records):
    calls = []

    async def snapshot():
        calls.append("snapshot")
        return list(records)

    async def load(keys):
        calls.append(tuple(keys))
        # Unordered, and only what still exists
        return [r for r in reversed(records) if r in keys]

    return snapshot, load, calls


async def test_snapshot_stream_is_lazy_and_batched():
    snapshot, load, calls = make_snapshot_source([1, 2, 3, 4, 5])
    stream = SnapshotStream(snapshot, load, key=lambda r: r, batch_size=2)

    assert calls == []
    assert await stream.all() == [1, 2, 3, 4, 5]
    assert calls == ["snapshot", (1, 2), (3, 4), (5,)]


async def test_snapshot_stream_keeps_snapshot_order_and_skips_missing():
    records = [1, 2, 3, 4]
    snapshot, load, _ = make_snapshot_source(records)
    stream = SnapshotStream(snapshot, load, key=lambda r: r, batch_size=2)
    seen = []

    async for record in stream:
        seen.append(record)
        if record == 1:
            records.remove(3)
            records.insert(0, 9)

    assert seen == [1, 2, 4]
    assert await stream.all() == [9, 1, 2, 4]


async def test_snapshot_stream_first_loads_one_batch():
    snapshot, load, calls = make_snapshot_source([1, 2, 3])
    stream = SnapshotStream(snapshot, load, key=lambda r: r, batch_size=2)

    assert await stream.first() == 1
    assert calls == ["snapshot", (1, 2)]


async def test_snapshot_stream_of_empty_sequence():
    snapshot, load, calls = make_snapshot_source([])

    assert await SnapshotStream(snapshot, load, key=lambda r: r).first() is None
    assert calls == ["snapshot"]
