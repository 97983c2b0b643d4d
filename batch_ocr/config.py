"""Environment-variable-driven configuration for batch OCR runs."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from batch_ocr.models import MIN_MAX_WAIT_TIME_MS, MIN_POLLING_INTERVAL_MS

PROVIDERS = ("document_ai", "textract")


def _get_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "t", "yes", "y", "on")


def _get_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {v!r}") from e


@dataclass(frozen=True)
class BatchOcrConfig:
    provider: str
    staging_bucket: str | None

    # Document AI
    docai_project: str | None
    docai_location: str
    docai_processor_id: str | None

    # Textract / S3
    aws_region: str

    # Job control
    polling_interval_ms: int
    max_wait_time_ms: int
    max_download_workers: int
    keep_staged_file: bool
    keep_output_files: bool

    @classmethod
    def from_env(cls) -> BatchOcrConfig:
        return cls(
            provider=os.getenv("BATCH_OCR_PROVIDER", "document_ai").strip().lower(),
            staging_bucket=os.getenv("BATCH_OCR_STAGING_BUCKET") or None,
            docai_project=os.getenv("GOOGLE_CLOUD_PROJECT") or None,
            docai_location=os.getenv("DOCUMENT_AI_LOCATION", "us"),
            docai_processor_id=os.getenv("DOCUMENT_AI_PROCESSOR_ID") or None,
            aws_region=os.getenv("AWS_REGION", "us-east-1"),
            polling_interval_ms=_get_int("BATCH_OCR_POLLING_INTERVAL_MS", 5_000),
            max_wait_time_ms=_get_int("BATCH_OCR_MAX_WAIT_TIME_MS", 300_000),
            max_download_workers=_get_int("BATCH_OCR_MAX_DOWNLOAD_WORKERS", 4),
            keep_staged_file=_get_bool("BATCH_OCR_KEEP_STAGED_FILE", False),
            keep_output_files=_get_bool("BATCH_OCR_KEEP_OUTPUT_FILES", False),
        )

    def validate(self) -> None:
        if self.provider not in PROVIDERS:
            raise ValueError(f"BATCH_OCR_PROVIDER must be one of {', '.join(PROVIDERS)}, got {self.provider!r}")
        if self.polling_interval_ms < MIN_POLLING_INTERVAL_MS:
            raise ValueError(f"BATCH_OCR_POLLING_INTERVAL_MS must be >= {MIN_POLLING_INTERVAL_MS}")
        if self.max_wait_time_ms < MIN_MAX_WAIT_TIME_MS:
            raise ValueError(f"BATCH_OCR_MAX_WAIT_TIME_MS must be >= {MIN_MAX_WAIT_TIME_MS}")
        if self.max_download_workers < 1:
            raise ValueError("BATCH_OCR_MAX_DOWNLOAD_WORKERS must be >= 1")

    def provider_config(self) -> dict[str, Any]:
        if self.provider == "textract":
            return {"region": self.aws_region}
        return {
            "project_id": self.docai_project,
            "location": self.docai_location,
            "processor_id": self.docai_processor_id,
        }
