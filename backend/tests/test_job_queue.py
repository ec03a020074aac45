import asyncio

from pim_sync.services.job_queue import JobQueue


def test_push_reports_position_and_length():
    queue = JobQueue()

    assert queue.push("a") == (1, 1)
    assert queue.push("b") == (2, 2)
    assert queue.position("b") == 2
    assert queue.position("zzz") == 0
    assert len(queue) == 2


def test_remove_shifts_positions():
    queue = JobQueue()
    for job_id in ("a", "b", "c"):
        queue.push(job_id)

    queue.remove("a")
    queue.remove("missing")

    assert queue.snapshot() == ["b", "c"]
    assert queue.position("c") == 2
    assert "a" not in queue


async def test_head_waits_for_first_push():
    queue = JobQueue()
    waiter = asyncio.create_task(queue.head())
    await asyncio.sleep(0.01)
    assert not waiter.done()

    queue.push("a")

    assert await asyncio.wait_for(waiter, timeout=1) == "a"


async def test_head_does_not_pop():
    queue = JobQueue()
    queue.push("a")

    assert await queue.head() == "a"
    assert await queue.head() == "a"
    assert len(queue) == 1
