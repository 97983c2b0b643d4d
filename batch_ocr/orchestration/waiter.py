from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from batch_ocr.errors import JobTimeoutError
from batch_ocr.providers.base import JobInvoker
from batch_ocr.types import JobHandle, JobState

logger = logging.getLogger(__name__)


class PollingWaiter:
    """Fixed-interval polling with a hard deadline.

    Bounds on ``interval_s`` / ``deadline_s`` are enforced by the options
    layer; this class trusts what it is given.
    """

    def __init__(
        self,
        invoker: JobInvoker,
        *,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._invoker = invoker
        self._sleep = sleep
        self._clock = clock

    async def wait_until_terminal(self, handle: JobHandle, *, interval_s: float, deadline_s: float) -> JobState:
        start = self._clock()
        polls = 0
        while True:
            state = await asyncio.to_thread(self._invoker.poll_status, handle)
            polls += 1
            if state.status.is_terminal:
                logger.info(
                    "Job %s reached %s after %d poll(s), %.1fs",
                    handle.job_id,
                    state.status.value,
                    polls,
                    self._clock() - start,
                    extra={"job_id": handle.job_id, "provider": self._invoker.name},
                )
                return state

            logger.debug("Job %s is %s; sleeping %.1fs", handle.job_id, state.status.value, interval_s)
            await self._sleep(interval_s)

            elapsed = self._clock() - start
            if elapsed >= deadline_s:
                raise JobTimeoutError(
                    f"Job {handle.job_id} did not finish within {deadline_s:.0f}s "
                    f"(last status: {state.status.value}, polls: {polls})"
                )
