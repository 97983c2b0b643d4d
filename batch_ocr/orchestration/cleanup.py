"""Scoped ownership of staged artifacts.

Artifacts are registered as they come into existence (input after upload,
output prefix after the job has been accepted). On exit from the ``async
with`` block, whatever was registered and not retained is deleted, once.
Deletion failures become warnings; they never replace the primary outcome.
"""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType

from batch_ocr.errors import CLEANUP_WARNING
from batch_ocr.storage.base import ObjectStore
from batch_ocr.types import StagingLocation

logger = logging.getLogger(__name__)


class CleanupGuard:
    def __init__(self, store: ObjectStore, *, keep_staged_file: bool = False, keep_output_files: bool = False) -> None:
        self._store = store
        self._keep_input = keep_staged_file
        self._keep_output = keep_output_files
        self._input: StagingLocation | None = None
        self._output: StagingLocation | None = None
        self._released = False
        self.warnings: list[str] = []

    def acquire_input(self, location: StagingLocation) -> None:
        self._input = location

    def acquire_output(self, prefix: StagingLocation) -> None:
        self._output = prefix

    @property
    def released(self) -> bool:
        return self._released

    async def __aenter__(self) -> CleanupGuard:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        await self.release()
        return False

    async def release(self) -> None:
        if self._released:
            return
        self._released = True

        if self._output is not None:
            if self._keep_output:
                logger.info("Keeping output files under %s", self._output.uri)
            else:
                await self._delete_output(self._output)

        if self._input is not None:
            if self._keep_input:
                logger.info("Keeping staged file %s", self._input.uri)
            else:
                await self._delete_one(self._input.bucket, self._input.key, self._input.uri)

    async def _delete_output(self, prefix: StagingLocation) -> None:
        logger.info("Cleaning up output files with prefix: %s", prefix.uri)
        try:
            names = await asyncio.to_thread(lambda: list(self._store.list(prefix.bucket, prefix.key)))
        except Exception as e:
            self._warn(f"Failed to list output files under {prefix.uri}: {e}")
            return
        await asyncio.gather(
            *(self._delete_one(prefix.bucket, n, self._store.uri(prefix.bucket, n)) for n in names)
        )

    async def _delete_one(self, bucket: str, name: str, uri: str) -> None:
        try:
            await asyncio.to_thread(self._store.delete, bucket, name)
            logger.debug("Deleted %s", uri)
        except Exception as e:
            self._warn(f"Failed to clean up {uri}: {e}")

    def _warn(self, message: str) -> None:
        logger.warning("%s: %s", CLEANUP_WARNING, message)
        self.warnings.append(f"{CLEANUP_WARNING}: {message}")
