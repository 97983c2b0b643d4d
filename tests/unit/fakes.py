"""In-memory stand-ins for the object store, the remote job service and time."""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from typing import Any

from batch_ocr.errors import MissingConfigurationError, ProviderError
from batch_ocr.orchestration.combiner import DOCUMENT_AI_MERGE
from batch_ocr.providers.base import JobInvoker
from batch_ocr.storage.base import ObjectStore
from batch_ocr.types import AnalysisRequest, JobHandle, JobState, JobStatus, StagingLocation


class InMemoryObjectStore(ObjectStore):
    scheme = "mem"

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.put_calls: list[tuple[str, str]] = []
        self.delete_calls: list[tuple[str, str]] = []
        self.list_calls: list[tuple[str, str]] = []
        self.fail_put = False
        # write the object, then raise as if the response were lost
        self.fail_put_after_write = False
        self.fail_delete = False

    def put(self, bucket: str, key: str, data: bytes, *, content_type: str) -> StagingLocation:
        self.put_calls.append((bucket, key))
        if self.fail_put:
            raise ConnectionError("upload refused")
        self.objects[(bucket, key)] = data
        if self.fail_put_after_write:
            raise TimeoutError("upload response lost")
        return StagingLocation(bucket=bucket, key=key, uri=self.uri(bucket, key))

    def list(self, bucket: str, prefix: str) -> Iterator[str]:
        self.list_calls.append((bucket, prefix))
        for b, k in sorted(self.objects):
            if b == bucket and k.startswith(prefix):
                yield k

    def get(self, bucket: str, name: str) -> bytes:
        return self.objects[(bucket, name)]

    def delete(self, bucket: str, name: str) -> None:
        self.delete_calls.append((bucket, name))
        if self.fail_delete:
            raise PermissionError("delete denied")
        self.objects.pop((bucket, name), None)

    def names(self, bucket: str = "bucket") -> list[str]:
        return sorted(k for b, k in self.objects if b == bucket)


class ScriptedInvoker(JobInvoker):
    """Replays a fixed status script; on submit, writes ``outputs`` under the job's output prefix."""

    name = "scripted"
    batch_mime_types = frozenset({"application/pdf", "image/tiff"})
    merge_rule = DOCUMENT_AI_MERGE
    staging_prefix = "scripted-temp/"
    output_prefix_root = "scripted-output/"

    def __init__(
        self,
        store: InMemoryObjectStore,
        *,
        statuses: list[JobState] | None = None,
        outputs: Mapping[str, Any] | None = None,
        submit_error: Exception | None = None,
        required_config: tuple[str, ...] = (),
        cancellable: bool = False,
    ) -> None:
        super().__init__()
        self._store = store
        self._statuses = list(statuses or [JobState(JobStatus.SUCCEEDED)])
        self._outputs = dict(outputs or {})
        self._submit_error = submit_error
        self._required = required_config
        self._cancellable = cancellable
        self.submit_calls = 0
        self.fetch_calls = 0
        self.cancel_calls = 0

    def _check_config(self, provider_config: Mapping[str, Any]) -> None:
        missing = [k for k in self._required if not provider_config.get(k)]
        if missing:
            raise MissingConfigurationError(f"missing: {', '.join(missing)}")

    def _submit(self, request: AnalysisRequest, staged: StagingLocation, output: StagingLocation) -> JobHandle:
        self.submit_calls += 1
        if self._submit_error is not None:
            raise self._submit_error
        for name, doc in self._outputs.items():
            raw = doc if isinstance(doc, bytes) else json.dumps(doc).encode()
            self._store.objects[(output.bucket, output.key + name)] = raw
        return JobHandle(job_id=f"job-{self.submit_calls}", output=output)

    def _fetch_status(self, handle: JobHandle) -> JobState:
        self.fetch_calls += 1
        if len(self._statuses) > 1:
            return self._statuses.pop(0)
        return self._statuses[0]

    def cancel(self, handle: JobHandle) -> bool:
        self.cancel_calls += 1
        return self._cancellable

    def is_result_object(self, name: str) -> bool:
        return name.endswith(".json")


class ExplodingStatusInvoker(ScriptedInvoker):
    def _fetch_status(self, handle: JobHandle) -> JobState:
        raise ProviderError("status endpoint unavailable")


class FakeClock:
    """Monotonic clock that only advances when ``sleep`` is awaited."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def running(n: int) -> list[JobState]:
    return [JobState(JobStatus.RUNNING)] * n


def docai_part(*pages: int, entities: list[str] | None = None) -> dict[str, Any]:
    doc: dict[str, Any] = {"text": "t", "pages": [{"pageNumber": p} for p in pages]}
    if entities is not None:
        doc["entities"] = [{"type": e} for e in entities]
    return {"document": doc}
