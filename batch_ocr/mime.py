from __future__ import annotations

from pathlib import PurePath

DEFAULT_MIME_TYPE = "application/octet-stream"

_MIME_TYPES: dict[str, str] = {
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".webp": "image/webp",
    ".tiff": "image/tiff",
    ".tif": "image/tiff",
}


def file_extension(path: str | PurePath) -> str:
    return PurePath(path).suffix.lower()


def mime_type_for(path_or_ext: str | PurePath) -> str:
    """Map a file name (or bare extension like ``.pdf``) to its MIME type."""
    s = str(path_or_ext)
    is_bare_ext = s.startswith(".") and s.count(".") == 1 and "/" not in s
    ext = s.lower() if is_bare_ext else file_extension(s)
    return _MIME_TYPES.get(ext, DEFAULT_MIME_TYPE)
