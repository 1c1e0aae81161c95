from datetime import datetime, timezone
from typing import List, Sequence

import pytest

from apps.workers.action_queue import ActionBatchingQueue
from connectors.models import Action, ActionName


class RecordingSink:
    def __init__(self, fail_first: bool = False) -> None:
        self.batches: List[List[Action]] = []
        self.fail_first = fail_first

    async def send(self, actions: Sequence[Action]) -> None:
        if self.fail_first and not self.batches:
            self.batches.append([])
            raise ConnectionError("sink unavailable")
        self.batches.append(list(actions))


def action(index: int) -> Action:
    return Action(
        action_name=ActionName.CONTACT_UPDATED,
        action_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        properties_key="userProperties",
        properties={"n": index},
        identity=f"user{index}@example.com",
    )


@pytest.mark.asyncio
async def test_batches_flush_above_threshold_and_drain_sends_tail():
    sink = RecordingSink()
    queue = ActionBatchingQueue(sink, flush_threshold=2000)

    for index in range(4500):
        queue.push(action(index))
    assert len(queue) == 498
    await queue.drain()

    assert sorted(len(batch) for batch in sink.batches) == [498, 2001, 2001]
    delivered = [item.properties["n"] for batch in sink.batches for item in batch]
    assert sorted(delivered) == list(range(4500))
    assert len(queue) == 0
    assert queue.outstanding == 0


@pytest.mark.asyncio
async def test_threshold_is_exclusive():
    sink = RecordingSink()
    queue = ActionBatchingQueue(sink, flush_threshold=3)

    for index in range(3):
        queue.push(action(index))
    assert queue.outstanding == 0

    queue.push(action(3))
    await queue.drain()
    assert [len(batch) for batch in sink.batches] == [4]


@pytest.mark.asyncio
async def test_single_leftover_action_is_flushed():
    sink = RecordingSink()
    queue = ActionBatchingQueue(sink)
    queue.push(action(1))

    await queue.drain()

    assert [len(batch) for batch in sink.batches] == [1]


@pytest.mark.asyncio
async def test_drain_with_nothing_queued_sends_nothing():
    sink = RecordingSink()
    await ActionBatchingQueue(sink).drain()

    assert sink.batches == []


@pytest.mark.asyncio
async def test_sink_failure_is_logged_not_raised(caplog):
    sink = RecordingSink(fail_first=True)
    queue = ActionBatchingQueue(sink, flush_threshold=2)

    for index in range(5):
        queue.push(action(index))
    await queue.drain()

    assert [len(batch) for batch in sink.batches] == [0, 2]
    assert "Sink rejected action batch" in caplog.text
