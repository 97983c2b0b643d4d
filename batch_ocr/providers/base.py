from __future__ import annotations

import json
import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar

from batch_ocr.errors import ProviderError, UnsupportedFormatError
from batch_ocr.orchestration.combiner import MergeRule
from batch_ocr.types import AnalysisRequest, JobHandle, JobState, ResultPart, StagingLocation


class JobInvoker(ABC):
    """Adapter over one remote batch-analysis service.

    All methods are blocking; the orchestrator runs them in a worker thread.
    ``poll_status`` caches terminal states per job so a job that has been
    observed Succeeded or Failed never reports another status.
    Callers release that cache entry with ``forget`` once they are done with the job.
    """

    name: ClassVar[str]
    batch_mime_types: ClassVar[frozenset[str]]
    merge_rule: ClassVar[MergeRule]
    staging_prefix: ClassVar[str]
    output_prefix_root: ClassVar[str]

    def __init__(self) -> None:
        self._terminal: dict[str, JobState] = {}
        self._terminal_lock = threading.Lock()

    # -- validation -----------------------------------------------------------

    def check_format(self, request: AnalysisRequest) -> None:
        if request.mime_type not in self.batch_mime_types:
            shown = request.file_extension or request.mime_type
            raise UnsupportedFormatError(f"Unsupported file format for batch processing: {shown}")

    def check_request(self, request: AnalysisRequest) -> None:
        """Pre-flight checks. No network I/O."""
        self.check_format(request)
        self._check_config(request.provider_config)

    def _check_config(self, provider_config: Mapping[str, Any]) -> None:  # noqa: B027
        pass

    # -- job lifecycle --------------------------------------------------------

    def submit(self, request: AnalysisRequest, staged: StagingLocation, output: StagingLocation) -> JobHandle:
        self.check_request(request)
        return self._submit(request, staged, output)

    @abstractmethod
    def _submit(self, request: AnalysisRequest, staged: StagingLocation, output: StagingLocation) -> JobHandle: ...

    def poll_status(self, handle: JobHandle) -> JobState:
        with self._terminal_lock:
            cached = self._terminal.get(handle.job_id)
        if cached is not None:
            return cached

        state = self._fetch_status(handle)
        if state.status.is_terminal:
            with self._terminal_lock:
                state = self._terminal.setdefault(handle.job_id, state)
        return state

    def forget(self, handle: JobHandle) -> None:
        """Drop the cached terminal state of a job the caller is done with."""
        with self._terminal_lock:
            self._terminal.pop(handle.job_id, None)

    @abstractmethod
    def _fetch_status(self, handle: JobHandle) -> JobState: ...

    def cancel(self, handle: JobHandle) -> bool:
        """Best-effort remote cancellation. Returns True if a cancel was issued."""
        return False

    # -- output ---------------------------------------------------------------

    @abstractmethod
    def is_result_object(self, name: str) -> bool: ...

    def parse_result(self, raw: bytes) -> ResultPart:
        try:
            obj = json.loads(raw)
        except ValueError as e:
            raise ProviderError(f"{self.name} produced an unreadable result file: {e}") from e
        if not isinstance(obj, dict):
            raise ProviderError(f"{self.name} result file is not a JSON object")
        return obj
