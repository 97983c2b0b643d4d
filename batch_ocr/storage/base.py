from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from batch_ocr.types import StagingLocation


class ObjectStore(ABC):
    """Blocking bucket/blob operations. Callers run these off the event loop."""

    scheme: str = ""

    def uri(self, bucket: str, name: str) -> str:
        return f"{self.scheme}://{bucket}/{name}"

    @abstractmethod
    def put(self, bucket: str, key: str, data: bytes, *, content_type: str) -> StagingLocation: ...

    @abstractmethod
    def list(self, bucket: str, prefix: str) -> Iterable[str]:
        """Object names under ``prefix``, lazily, in the store's listing order."""

    @abstractmethod
    def get(self, bucket: str, name: str) -> bytes: ...

    @abstractmethod
    def delete(self, bucket: str, name: str) -> None:
        """Delete one object. Deleting a missing object is not an error."""
