from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

# One downloaded output document (parsed JSON).
ResultPart = dict[str, Any]


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


@dataclass(frozen=True)
class AnalysisRequest:
    document: bytes
    mime_type: str
    provider_config: Mapping[str, Any] = field(default_factory=dict)
    file_extension: str = ""  # e.g. ".pdf", used for staged key naming

    def __post_init__(self) -> None:
        # Freeze the caller's mapping so later mutation can't leak in.
        object.__setattr__(self, "provider_config", MappingProxyType(dict(self.provider_config)))


@dataclass(frozen=True)
class StagingLocation:
    bucket: str
    key: str
    uri: str  # gs://bucket/key or s3://bucket/key


@dataclass(frozen=True)
class JobHandle:
    job_id: str
    output: StagingLocation
    provider_ref: Any = None  # SDK operation object / API kind


@dataclass(frozen=True)
class JobState:
    status: JobStatus
    detail: str | None = None
