from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import boto3
from botocore.config import Config

from batch_ocr.storage.base import ObjectStore
from batch_ocr.types import StagingLocation


def create_s3_client(region: str) -> Any:
    return boto3.client(
        "s3",
        region_name=region,
        config=Config(retries={"max_attempts": 5, "mode": "standard"}),
    )


class S3ObjectStore(ObjectStore):
    scheme = "s3"

    def __init__(self, *, region: str, client: Any = None) -> None:
        self._client = client if client is not None else create_s3_client(region)

    def put(self, bucket: str, key: str, data: bytes, *, content_type: str) -> StagingLocation:
        self._client.put_object(Bucket=bucket, Key=key, Body=data, ContentType=content_type)
        return StagingLocation(bucket=bucket, key=key, uri=self.uri(bucket, key))

    def list(self, bucket: str, prefix: str) -> Iterator[str]:
        paginator = self._client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            for obj in page.get("Contents", []):
                key = obj["Key"]
                if key.endswith("/"):
                    continue
                yield key

    def get(self, bucket: str, name: str) -> bytes:
        resp = self._client.get_object(Bucket=bucket, Key=name)
        return resp["Body"].read()

    def delete(self, bucket: str, name: str) -> None:
        # S3 DeleteObject already succeeds for missing keys.
        self._client.delete_object(Bucket=bucket, Key=name)
