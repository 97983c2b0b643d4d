from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, cast

from google.api_core.client_options import ClientOptions
from google.cloud import documentai_v1 as documentai

from batch_ocr.errors import MissingConfigurationError
from batch_ocr.orchestration.combiner import DOCUMENT_AI_MERGE
from batch_ocr.providers.base import JobInvoker
from batch_ocr.types import AnalysisRequest, JobHandle, JobState, JobStatus, StagingLocation

logger = logging.getLogger(__name__)


class _Operation(Protocol):
    """The slice of google.api_core.operation.Operation used here."""

    @property
    def operation(self) -> Any: ...

    @property
    def metadata(self) -> Any: ...

    def done(self) -> bool: ...

    def exception(self, timeout: float | None = None) -> BaseException | None: ...

    def cancel(self) -> bool: ...


@dataclass(frozen=True)
class DocAIConfig:
    project: str
    location: str
    processor_id: str

    @property
    def processor_name(self) -> str:
        return f"projects/{self.project}/locations/{self.location}/processors/{self.processor_id}"

    @property
    def api_endpoint(self) -> str:
        return f"{self.location}-documentai.googleapis.com"

    @classmethod
    def from_provider_config(cls, provider_config: Mapping[str, Any]) -> DocAIConfig:
        project = provider_config.get("project_id")
        location = provider_config.get("location")
        processor_id = provider_config.get("processor_id")
        if not project or not location or not processor_id:
            raise MissingConfigurationError("project_id, location, and processor_id are required")
        return cls(project=str(project), location=str(location), processor_id=str(processor_id))


def _default_client(cfg: DocAIConfig) -> documentai.DocumentProcessorServiceClient:
    return documentai.DocumentProcessorServiceClient(client_options=ClientOptions(api_endpoint=cfg.api_endpoint))


class DocumentAIJobInvoker(JobInvoker):
    """Document AI batch processing (GCS in -> GCS out)."""

    name = "document_ai"
    batch_mime_types = frozenset({"application/pdf", "image/tiff", "image/gif"})
    merge_rule = DOCUMENT_AI_MERGE
    staging_prefix = "documentai-temp/"
    output_prefix_root = "documentai-output/"

    def __init__(
        self,
        *,
        client_factory: Callable[[DocAIConfig], Any] = _default_client,
    ) -> None:
        super().__init__()
        self._client_factory = client_factory
        self._clients: dict[str, Any] = {}

    def _client(self, cfg: DocAIConfig) -> Any:
        # One client per regional endpoint
        client = self._clients.get(cfg.api_endpoint)
        if client is None:
            client = self._client_factory(cfg)
            self._clients[cfg.api_endpoint] = client
        return client

    def _check_config(self, provider_config: Mapping[str, Any]) -> None:
        DocAIConfig.from_provider_config(provider_config)

    def _submit(self, request: AnalysisRequest, staged: StagingLocation, output: StagingLocation) -> JobHandle:
        cfg = DocAIConfig.from_provider_config(request.provider_config)
        if request.provider_config.get("analyze_layout"):
            logger.debug("analyze_layout is decided by the processor type for Document AI; ignoring")

        # BatchProcessRequest wants gcs_output_config.gcs_uri = "gs://bucket/prefix/"
        output_uri = output.uri if output.uri.endswith("/") else output.uri + "/"

        gcs_doc = documentai.GcsDocument(gcs_uri=staged.uri, mime_type=request.mime_type)
        input_docs = documentai.BatchDocumentsInputConfig(gcs_documents=documentai.GcsDocuments(documents=[gcs_doc]))
        output_cfg = documentai.DocumentOutputConfig(
            gcs_output_config=documentai.DocumentOutputConfig.GcsOutputConfig(gcs_uri=output_uri)
        )
        req = documentai.BatchProcessRequest(
            name=cfg.processor_name,
            input_documents=input_docs,
            document_output_config=output_cfg,
        )
        op = cast(_Operation, self._client(cfg).batch_process_documents(request=req))
        job_id = str(getattr(op.operation, "name", "") or output.key)
        logger.info("Document AI operation %s started for %s", job_id, staged.uri)
        return JobHandle(job_id=job_id, output=output, provider_ref=op)

    def _fetch_status(self, handle: JobHandle) -> JobState:
        op = cast(_Operation, handle.provider_ref)
        # done() refreshes the operation from the server
        if not op.done():
            state = getattr(op.metadata, "state", None)
            if state == documentai.BatchProcessMetadata.State.WAITING:
                return JobState(JobStatus.PENDING)
            return JobState(JobStatus.RUNNING)

        err = op.exception()
        if err is not None:
            return JobState(JobStatus.FAILED, detail=str(err))
        return JobState(JobStatus.SUCCEEDED)

    def cancel(self, handle: JobHandle) -> bool:
        op = cast(_Operation, handle.provider_ref)
        return bool(op.cancel())

    def is_result_object(self, name: str) -> bool:
        return name.lower().endswith(".json")
