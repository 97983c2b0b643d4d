"""Pydantic schemas for the caller-facing surface: options in, envelope out."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from batch_ocr.errors import BatchOcrError, ProviderError

MIN_POLLING_INTERVAL_MS = 1_000
MIN_MAX_WAIT_TIME_MS = 10_000

# -- Options ------------------------------------------------------------------


class AsyncRecognizeOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    staging_bucket: str | None = Field(None, description="Bucket used for input and output staging")
    staging_key: str | None = Field(None, description="Explicit key for the staged input (auto-generated if unset)")
    analyze_layout: bool = False
    analyze_layout_tables: bool = Field(False, description="Implies analyze_layout")
    keep_staged_file: bool = False
    keep_output_files: bool = False
    polling_interval_ms: int = Field(5_000, ge=MIN_POLLING_INTERVAL_MS)
    max_wait_time_ms: int = Field(300_000, ge=MIN_MAX_WAIT_TIME_MS)
    combine: bool = Field(False, description="Return one combined response instead of the part list")
    provider_config: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _tables_imply_layout(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("analyze_layout_tables"):
            data = {**data, "analyze_layout": True}
        return data

    @property
    def polling_interval_s(self) -> float:
        return self.polling_interval_ms / 1000.0

    @property
    def max_wait_time_s(self) -> float:
        return self.max_wait_time_ms / 1000.0

    def effective_provider_config(self) -> dict[str, Any]:
        return {
            **self.provider_config,
            "analyze_layout": self.analyze_layout,
            "analyze_layout_tables": self.analyze_layout_tables,
        }


# -- Envelope -----------------------------------------------------------------


class ResultEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    data: list[dict[str, Any]] | dict[str, Any] | None = None
    error: str | None = None
    error_code: str | None = None
    warnings: list[str] = Field(default_factory=list)
    job_id: str | None = None
    failed_stage: str | None = None

    @classmethod
    def ok(
        cls,
        data: list[dict[str, Any]] | dict[str, Any],
        *,
        job_id: str | None = None,
        warnings: list[str] | None = None,
    ) -> ResultEnvelope:
        return cls(success=True, data=data, job_id=job_id, warnings=list(warnings or []))

    @classmethod
    def fail(
        cls,
        exc: BaseException,
        *,
        job_id: str | None = None,
        stage: str | None = None,
        warnings: list[str] | None = None,
    ) -> ResultEnvelope:
        if isinstance(exc, BatchOcrError):
            code = exc.error_code
            message = str(exc) or code
        else:
            code = ProviderError.error_code
            message = f"{type(exc).__name__}: {exc}"
        return cls(
            success=False,
            error=message,
            error_code=code,
            job_id=job_id,
            failed_stage=stage,
            warnings=list(warnings or []),
        )
