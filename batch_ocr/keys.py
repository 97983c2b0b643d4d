from __future__ import annotations

import time
import uuid


def unique_token() -> str:
    """``{epoch_ms}-{random}``; distinct per call even within one millisecond."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}"


def _dir(prefix: str) -> str:
    p = prefix.strip("/")
    return f"{p}/" if p else ""


def staging_keys(
    *,
    staging_prefix: str,
    output_prefix_root: str,
    file_extension: str,
    explicit_key: str | None = None,
) -> tuple[str, str]:
    """Return ``(input_key, output_prefix)`` for one submission.

    The output prefix always carries a fresh token, even when the caller
    pins the input key, so concurrent jobs never share an output location.
    """
    token = unique_token()
    input_key = explicit_key or f"{_dir(staging_prefix)}{token}{file_extension}"
    output_prefix = f"{_dir(output_prefix_root)}{token}/"
    return input_key, output_prefix
