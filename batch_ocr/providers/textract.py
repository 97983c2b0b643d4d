from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from typing import Any

import boto3
from botocore.config import Config

from batch_ocr.orchestration.combiner import TEXTRACT_MERGE
from batch_ocr.providers.base import JobInvoker
from batch_ocr.types import AnalysisRequest, JobHandle, JobState, JobStatus, StagingLocation

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"

# API family is recorded on the handle so polling hits the matching Get* call.
_ANALYSIS = "analysis"
_TEXT_DETECTION = "text_detection"

_STATUS_MAP = {
    "IN_PROGRESS": JobStatus.RUNNING,
    "SUCCEEDED": JobStatus.SUCCEEDED,
    "PARTIAL_SUCCESS": JobStatus.SUCCEEDED,
    "FAILED": JobStatus.FAILED,
}


def resolve_region(provider_config: Mapping[str, Any]) -> str:
    return str(provider_config.get("region") or os.getenv("AWS_REGION") or DEFAULT_REGION)


def _default_client(region: str) -> Any:
    return boto3.client(
        "textract",
        region_name=region,
        config=Config(retries={"max_attempts": 5, "mode": "standard"}),
    )


def feature_types(provider_config: Mapping[str, Any]) -> list[str]:
    tables = bool(provider_config.get("analyze_layout_tables"))
    layout = bool(provider_config.get("analyze_layout")) or tables
    if not layout:
        return []
    return ["LAYOUT", "TABLES"] if tables else ["LAYOUT"]


class TextractJobInvoker(JobInvoker):
    """Textract asynchronous jobs (S3 in -> S3 out via OutputConfig)."""

    name = "textract"
    batch_mime_types = frozenset({"application/pdf", "image/tiff"})
    merge_rule = TEXTRACT_MERGE
    staging_prefix = "textract-temp/"
    output_prefix_root = "textract-output/"

    def __init__(self, *, client_factory: Callable[[str], Any] = _default_client) -> None:
        super().__init__()
        self._client_factory = client_factory
        self._clients: dict[str, Any] = {}

    def _client(self, region: str) -> Any:
        client = self._clients.get(region)
        if client is None:
            client = self._client_factory(region)
            self._clients[region] = client
        return client

    def _submit(self, request: AnalysisRequest, staged: StagingLocation, output: StagingLocation) -> JobHandle:
        region = resolve_region(request.provider_config)
        client = self._client(region)

        params: dict[str, Any] = {
            "DocumentLocation": {"S3Object": {"Bucket": staged.bucket, "Name": staged.key}},
            # Textract appends "/{JobId}/{n}" to the prefix itself
            "OutputConfig": {"S3Bucket": output.bucket, "S3Prefix": output.key.rstrip("/")},
        }
        features = feature_types(request.provider_config)
        if features:
            resp = client.start_document_analysis(FeatureTypes=features, **params)
            api = _ANALYSIS
        else:
            resp = client.start_document_text_detection(**params)
            api = _TEXT_DETECTION

        job_id = resp["JobId"]
        logger.info("Textract %s job %s started for %s", api, job_id, staged.uri)
        return JobHandle(job_id=job_id, output=output, provider_ref=(region, api))

    def _fetch_status(self, handle: JobHandle) -> JobState:
        region, api = handle.provider_ref
        client = self._client(region)
        if api == _ANALYSIS:
            resp = client.get_document_analysis(JobId=handle.job_id, MaxResults=1)
        else:
            resp = client.get_document_text_detection(JobId=handle.job_id, MaxResults=1)

        raw = resp.get("JobStatus", "IN_PROGRESS")
        status = _STATUS_MAP.get(raw, JobStatus.RUNNING)
        detail = resp.get("StatusMessage")
        if raw == "PARTIAL_SUCCESS":
            logger.warning("Textract job %s partially succeeded: %s", handle.job_id, detail)
        return JobState(status, detail=detail)

    def is_result_object(self, name: str) -> bool:
        # {prefix}/{JobId}/1, /2, ...; skips the ".s3_access_check" marker
        return name.rsplit("/", 1)[-1].isdigit()
