"""Single-lane FIFO of pending/running job ids."""

from __future__ import annotations

import asyncio


class JobQueue:
    """Ordered job ids; the head is the job being (or about to be) run.

    An id stays at the head while its job runs and is removed only once the
    job reaches a terminal state, so positions reported to pollers count the
    running job as position 1.
    """

    def __init__(self) -> None:
        self._ids: list[str] = []
        self._changed = asyncio.Event()

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._ids

    def push(self, job_id: str) -> tuple[int, int]:
        """Append an id; return its 1-based position and the queue length."""
        self._ids.append(job_id)
        self._changed.set()
        return len(self._ids), len(self._ids)

    def position(self, job_id: str) -> int:
        """1-based position, 0 when the id is not queued."""
        try:
            return self._ids.index(job_id) + 1
        except ValueError:
            return 0

    def snapshot(self) -> list[str]:
        return list(self._ids)

    def remove(self, job_id: str) -> None:
        if job_id in self._ids:
            self._ids.remove(job_id)

    async def head(self) -> str:
        """Wait until something is queued and return the head id."""
        while not self._ids:
            self._changed.clear()
            await self._changed.wait()
        return self._ids[0]
