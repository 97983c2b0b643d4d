from __future__ import annotations

from collections.abc import Iterator

from google.api_core.exceptions import NotFound
from google.cloud import storage

from batch_ocr.storage.base import ObjectStore
from batch_ocr.types import StagingLocation


class GcsObjectStore(ObjectStore):
    scheme = "gs"

    def __init__(self, client: storage.Client | None = None) -> None:
        self._client = client if client is not None else storage.Client()

    def put(self, bucket: str, key: str, data: bytes, *, content_type: str) -> StagingLocation:
        blob = self._client.bucket(bucket).blob(key)
        blob.upload_from_string(data, content_type=content_type)
        return StagingLocation(bucket=bucket, key=key, uri=self.uri(bucket, key))

    def list(self, bucket: str, prefix: str) -> Iterator[str]:
        for blob in self._client.list_blobs(bucket, prefix=prefix):
            if blob.name.endswith("/"):
                continue
            yield blob.name

    def get(self, bucket: str, name: str) -> bytes:
        return self._client.bucket(bucket).blob(name).download_as_bytes()

    def delete(self, bucket: str, name: str) -> None:
        try:
            self._client.bucket(bucket).blob(name).delete()
        except NotFound:
            pass
