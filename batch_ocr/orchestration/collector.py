from __future__ import annotations

import asyncio
import logging
import re

from batch_ocr.errors import NoOutputFoundError
from batch_ocr.providers.base import JobInvoker
from batch_ocr.storage.base import ObjectStore
from batch_ocr.types import ResultPart, StagingLocation

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"(\d+)")


def natural_key(name: str) -> list[object]:
    # "shard-10.json" sorts after "shard-9.json"
    return [int(tok) if tok.isdigit() else tok for tok in _DIGITS.split(name)]


class ResultCollector:
    def __init__(self, *, store: ObjectStore, invoker: JobInvoker, max_workers: int = 4) -> None:
        self._store = store
        self._invoker = invoker
        self._max_workers = max(1, max_workers)

    def _list_result_names(self, output: StagingLocation) -> list[str]:
        names = [n for n in self._store.list(output.bucket, output.key) if self._invoker.is_result_object(n)]
        return sorted(names, key=natural_key)

    async def collect(self, output: StagingLocation) -> list[ResultPart]:
        names = await asyncio.to_thread(self._list_result_names, output)
        if not names:
            raise NoOutputFoundError(f"Job succeeded but no result files were found under {output.uri}")

        logger.info("Downloading %d result file(s) from %s", len(names), output.uri)
        sem = asyncio.Semaphore(self._max_workers)

        async def _fetch(name: str) -> ResultPart:
            async with sem:
                raw = await asyncio.to_thread(self._store.get, output.bucket, name)
            return self._invoker.parse_result(raw)

        # gather keeps input order regardless of completion order
        return list(await asyncio.gather(*(_fetch(n) for n in names)))
