"""End-to-end batch job orchestration.

One call drives one document through:

    CREATED -> STAGED -> SUBMITTED -> POLLING -> COLLECTING -> COMBINING
            -> CLEANING_UP -> DONE

Any failure jumps to CLEANING_UP and then DONE with the originating error.
Pre-flight validation failures return before anything is created, so there
is nothing to clean up.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from batch_ocr.errors import BatchOcrError, JobTimeoutError, MissingStagingBucketError, ProviderError
from batch_ocr.keys import staging_keys
from batch_ocr.models import AsyncRecognizeOptions, ResultEnvelope
from batch_ocr.orchestration.cleanup import CleanupGuard
from batch_ocr.orchestration.collector import ResultCollector
from batch_ocr.orchestration.combiner import combine_responses
from batch_ocr.orchestration.waiter import PollingWaiter
from batch_ocr.providers.base import JobInvoker
from batch_ocr.storage.base import ObjectStore
from batch_ocr.types import AnalysisRequest, JobHandle, JobState, JobStatus, StagingLocation

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    CREATED = "created"
    STAGED = "staged"
    SUBMITTED = "submitted"
    POLLING = "polling"
    COLLECTING = "collecting"
    COMBINING = "combining"
    CLEANING_UP = "cleaning_up"
    DONE = "done"


class RunTrace:
    """Stage history of a single run."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        self.stage = Stage.CREATED
        self.history: list[Stage] = [Stage.CREATED]

    def enter(self, stage: Stage) -> None:
        logger.debug("[%s] %s -> %s", self.provider, self.stage.value, stage.value)
        self.stage = stage
        self.history.append(stage)


class BatchOrchestrator:
    def __init__(
        self,
        *,
        invoker: JobInvoker,
        store: ObjectStore,
        waiter: PollingWaiter | None = None,
        max_download_workers: int = 4,
    ) -> None:
        self._invoker = invoker
        self._store = store
        self._waiter = waiter or PollingWaiter(invoker)
        self._collector = ResultCollector(store=store, invoker=invoker, max_workers=max_download_workers)

    def preflight(self, request: AnalysisRequest, options: AsyncRecognizeOptions) -> None:
        # format, then bucket, then provider identifiers
        self._invoker.check_format(request)
        if not options.staging_bucket:
            raise MissingStagingBucketError("A staging bucket is required for batch processing")
        self._invoker.check_request(request)

    async def run(self, request: AnalysisRequest, options: AsyncRecognizeOptions) -> ResultEnvelope:
        envelope, _ = await self.run_traced(request, options)
        return envelope

    async def run_traced(
        self, request: AnalysisRequest, options: AsyncRecognizeOptions
    ) -> tuple[ResultEnvelope, RunTrace]:
        """Like ``run``, also returning this run's stage history."""
        trace = RunTrace(self._invoker.name)
        try:
            self.preflight(request, options)
        except BatchOcrError as e:
            logger.info("Rejected before staging: %s", e)
            trace.enter(Stage.DONE)
            return ResultEnvelope.fail(e, stage=Stage.CREATED.value), trace

        assert options.staging_bucket is not None
        bucket = options.staging_bucket
        input_key, output_key = staging_keys(
            staging_prefix=self._invoker.staging_prefix,
            output_prefix_root=self._invoker.output_prefix_root,
            file_extension=request.file_extension,
            explicit_key=options.staging_key,
        )
        output = StagingLocation(bucket=bucket, key=output_key, uri=self._store.uri(bucket, output_key))

        guard = CleanupGuard(
            self._store,
            keep_staged_file=options.keep_staged_file,
            keep_output_files=options.keep_output_files,
        )
        handle: JobHandle | None = None
        failed_in: Stage | None = None
        error: BaseException | None = None
        data = None

        try:
            async with guard:
                try:
                    staged_uri = self._store.uri(bucket, input_key)
                    # Owned before the upload: a put that fails after the object
                    # was written must still remove it.
                    guard.acquire_input(StagingLocation(bucket=bucket, key=input_key, uri=staged_uri))
                    logger.info("Uploading file to %s", staged_uri)
                    staged = await asyncio.to_thread(
                        self._store.put, bucket, input_key, request.document, content_type=request.mime_type
                    )
                    trace.enter(Stage.STAGED)

                    logger.info("Starting %s batch processing (output %s)", self._invoker.name, output.uri)
                    handle = await asyncio.to_thread(self._invoker.submit, request, staged, output)
                    guard.acquire_output(handle.output)
                    trace.enter(Stage.SUBMITTED)

                    trace.enter(Stage.POLLING)
                    state = await self._wait(handle, options)
                    if state.status is JobStatus.FAILED:
                        raise ProviderError(f"Job {handle.job_id} failed: {state.detail or 'no detail provided'}")

                    trace.enter(Stage.COLLECTING)
                    parts = await self._collector.collect(handle.output)

                    if options.combine:
                        trace.enter(Stage.COMBINING)
                        data = combine_responses(parts, self._invoker.merge_rule)
                    else:
                        data = parts
                except Exception:
                    failed_in = trace.stage
                    trace.enter(Stage.CLEANING_UP)
                    raise
                trace.enter(Stage.CLEANING_UP)
        except Exception as e:
            error = e
        finally:
            if handle is not None:
                self._invoker.forget(handle)

        trace.enter(Stage.DONE)
        job_id = handle.job_id if handle is not None else None

        if error is not None:
            stage = failed_in.value if failed_in else None
            ctx = {"job_id": job_id, "provider": self._invoker.name}
            if isinstance(error, BatchOcrError):
                logger.warning("Batch processing failed during %s: %s", stage, error, extra=ctx)
            else:
                logger.error("Unexpected error during batch processing", exc_info=error, extra=ctx)
            envelope = ResultEnvelope.fail(
                error,
                job_id=job_id,
                stage=stage,
                warnings=guard.warnings,
            )
            return envelope, trace

        assert data is not None
        return ResultEnvelope.ok(data, job_id=job_id, warnings=guard.warnings), trace

    async def _wait(self, handle: JobHandle, options: AsyncRecognizeOptions) -> JobState:
        logger.info(
            "Waiting for batch processing to complete (job %s)",
            handle.job_id,
            extra=self._log_ctx(handle),
        )
        try:
            return await self._waiter.wait_until_terminal(
                handle,
                interval_s=options.polling_interval_s,
                deadline_s=options.max_wait_time_s,
            )
        except JobTimeoutError:
            await self._cancel_quietly(handle)
            raise

    def _log_ctx(self, handle: JobHandle) -> dict[str, str]:
        return {"job_id": handle.job_id, "provider": self._invoker.name}

    async def _cancel_quietly(self, handle: JobHandle) -> None:
        try:
            issued = await asyncio.to_thread(self._invoker.cancel, handle)
        except Exception as e:
            logger.warning("Cancel of timed-out job %s failed: %s", handle.job_id, e, extra=self._log_ctx(handle))
            return
        if issued:
            logger.info("Requested cancellation of timed-out job %s", handle.job_id, extra=self._log_ctx(handle))
        else:
            logger.warning(
                "Job %s timed out and cannot be cancelled; its output may appear after cleanup",
                handle.job_id,
                extra=self._log_ctx(handle),
            )
