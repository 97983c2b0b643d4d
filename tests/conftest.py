"""Shared test fixtures for the batch-ocr test suite."""

from __future__ import annotations

import pytest


@pytest.fixture
def staging_bucket() -> str:
    return "bucket"


@pytest.fixture
def docai_provider_config() -> dict[str, str]:
    return {"project_id": "proj", "location": "us", "processor_id": "pid"}
