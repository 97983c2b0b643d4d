"""Top-level entry points.

Every ``recognize_*`` call returns a ``ResultEnvelope``; callers branch on
``envelope.success`` instead of catching exceptions.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from batch_ocr.config import BatchOcrConfig
from batch_ocr.errors import BatchOcrError, FileReadError, InvalidOptionsError
from batch_ocr.mime import file_extension, mime_type_for
from batch_ocr.models import AsyncRecognizeOptions, ResultEnvelope
from batch_ocr.orchestration.combiner import DOCUMENT_AI_MERGE, TEXTRACT_MERGE, MergeRule, combine_responses
from batch_ocr.orchestration.orchestrator import BatchOrchestrator, Stage
from batch_ocr.orchestration.waiter import PollingWaiter
from batch_ocr.providers.base import JobInvoker
from batch_ocr.providers.document_ai import DocumentAIJobInvoker
from batch_ocr.providers.textract import TextractJobInvoker, resolve_region
from batch_ocr.storage.base import ObjectStore
from batch_ocr.storage.gcs import GcsObjectStore
from batch_ocr.storage.s3 import S3ObjectStore
from batch_ocr.types import AnalysisRequest, ResultPart

logger = logging.getLogger(__name__)

_MERGE_RULES: dict[str, MergeRule] = {
    "document_ai": DOCUMENT_AI_MERGE,
    "textract": TEXTRACT_MERGE,
}


def build_adapters(provider: str, *, cfg: BatchOcrConfig | None = None) -> tuple[JobInvoker, ObjectStore]:
    """Default (invoker, store) pair for a provider, using ambient credentials."""
    if provider == "document_ai":
        return DocumentAIJobInvoker(), GcsObjectStore()
    if provider == "textract":
        region = cfg.aws_region if cfg is not None else resolve_region({})
        return TextractJobInvoker(), S3ObjectStore(region=region)
    raise ValueError(f"Unknown provider: {provider}")


def _coerce_options(options: AsyncRecognizeOptions | Mapping[str, Any] | None) -> AsyncRecognizeOptions:
    if isinstance(options, AsyncRecognizeOptions):
        return options
    try:
        return AsyncRecognizeOptions.model_validate(dict(options or {}))
    except ValidationError as e:
        raise InvalidOptionsError(str(e)) from e


async def recognize_document_async(
    document: bytes,
    options: AsyncRecognizeOptions | Mapping[str, Any] | None = None,
    *,
    file_extension: str,
    invoker: JobInvoker,
    store: ObjectStore,
    waiter: PollingWaiter | None = None,
    max_download_workers: int = 4,
) -> ResultEnvelope:
    try:
        opts = _coerce_options(options)
    except InvalidOptionsError as e:
        return ResultEnvelope.fail(e, stage=Stage.CREATED.value)

    request = AnalysisRequest(
        document=document,
        mime_type=mime_type_for(file_extension),
        provider_config=opts.effective_provider_config(),
        file_extension=file_extension.lower(),
    )
    orchestrator = BatchOrchestrator(
        invoker=invoker, store=store, waiter=waiter, max_download_workers=max_download_workers
    )
    return await orchestrator.run(request, opts)


async def recognize_file_async(
    file_path: str | Path,
    options: AsyncRecognizeOptions | Mapping[str, Any] | None = None,
    *,
    invoker: JobInvoker,
    store: ObjectStore,
    waiter: PollingWaiter | None = None,
    max_download_workers: int = 4,
) -> ResultEnvelope:
    """Submit a file for batch analysis and return its result parts (or the combined response)."""
    path = Path(file_path)
    ext = file_extension(path)
    try:
        opts = _coerce_options(options)
        # Reject ineligible input before touching the file or the network.
        preflight_request = AnalysisRequest(
            document=b"",
            mime_type=mime_type_for(ext),
            provider_config=opts.effective_provider_config(),
            file_extension=ext,
        )
        BatchOrchestrator(invoker=invoker, store=store).preflight(preflight_request, opts)
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise FileReadError(f"Could not read {path}: {e}") from e
    except BatchOcrError as e:
        logger.info("Rejected %s: %s", path, e)
        return ResultEnvelope.fail(e, stage=Stage.CREATED.value)

    return await recognize_document_async(
        data,
        opts,
        file_extension=ext,
        invoker=invoker,
        store=store,
        waiter=waiter,
        max_download_workers=max_download_workers,
    )


def combine_async_responses(parts: Sequence[ResultPart], *, provider: str = "document_ai") -> ResultPart:
    """Merge the parts of a batch result into one response. Raises EmptyInputError on ``[]``."""
    rule = _MERGE_RULES.get(provider)
    if rule is None:
        raise ValueError(f"Unknown provider: {provider}")
    return combine_responses(parts, rule)
