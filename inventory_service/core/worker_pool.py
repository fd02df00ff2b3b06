"""
Inventory Service — Bounded asyncio worker pool

Fixed number of workers, each draining its own bounded FIFO queue. Jobs are
routed by key (hash(key) % workers), so jobs sharing a key run one after the
other in submission order. When the target queue is full the submitter waits
for that shard to empty and then runs the job on its own path (caller-runs
policy): latency degrades, nothing is dropped and per-key order holds. A
pool that is not running executes every job inline.
"""
import asyncio
import logging
from collections.abc import Hashable
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[None]]


class BoundedWorkerPool:
    def __init__(self, workers: int, queue_capacity: int, name: str = "worker",
                 shutdown_timeout: float = 10.0):
        if workers < 1 or queue_capacity < 1:
            raise ValueError("workers and queue_capacity must be >= 1")
        self.name = name
        self.workers = workers
        self.queue_capacity = queue_capacity
        self.shutdown_timeout = shutdown_timeout
        self._queues: list[asyncio.Queue] = []
        # one gate per shard serialises submitters while a caller-run is pending
        self._gates: list[asyncio.Lock] = []
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    async def start(self) -> None:
        if self._tasks:
            return
        self._queues = [asyncio.Queue(maxsize=self.queue_capacity) for _ in range(self.workers)]
        self._gates = [asyncio.Lock() for _ in range(self.workers)]
        self._tasks = [
            asyncio.create_task(self._work(queue), name=f"{self.name}-{i}")
            for i, queue in enumerate(self._queues)
        ]
        logger.info("Started %s pool: %d workers, queue capacity %d",
                    self.name, self.workers, self.queue_capacity)

    async def submit(self, key: Hashable, job: Job) -> bool:
        """Queue `job` on the shard for `key`. Returns False if it ran inline instead."""
        if not self._tasks:
            await self._run(job)
            return False
        shard = hash(key) % len(self._queues)
        queue = self._queues[shard]
        async with self._gates[shard]:
            try:
                queue.put_nowait(job)
                return True
            except asyncio.QueueFull:
                logger.warning("%s pool saturated (key=%s), running job on caller path",
                               self.name, key)
                await queue.join()
                await self._run(job)
                return False

    async def drain(self) -> None:
        await asyncio.gather(*(queue.join() for queue in self._queues))

    async def stop(self) -> None:
        if not self._tasks:
            return
        try:
            await asyncio.wait_for(self.drain(), timeout=self.shutdown_timeout)
        except asyncio.TimeoutError:
            logger.warning("%s pool did not drain within %.1fs, cancelling workers",
                           self.name, self.shutdown_timeout)
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self._queues = []
        self._gates = []
        logger.info("Stopped %s pool", self.name)

    async def _work(self, queue: asyncio.Queue) -> None:
        while True:
            job = await queue.get()
            try:
                await self._run(job)
            finally:
                queue.task_done()

    async def _run(self, job: Job) -> None:
        try:
            await job()
        except Exception:
            logger.exception("%s job failed", self.name)
