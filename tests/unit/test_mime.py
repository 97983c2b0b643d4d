"""Unit tests for extension / MIME type mapping."""

from __future__ import annotations

from pathlib import Path

import pytest

from batch_ocr.mime import DEFAULT_MIME_TYPE, file_extension, mime_type_for


@pytest.mark.parametrize(
    "name, expected",
    [
        ("scan.pdf", "application/pdf"),
        ("SCAN.PDF", "application/pdf"),
        ("page.tif", "image/tiff"),
        ("page.tiff", "image/tiff"),
        ("photo.jpeg", "image/jpeg"),
        ("photo.jpg", "image/jpeg"),
        ("anim.gif", "image/gif"),
        ("dir.with.dots/img.png", "image/png"),
        (".pdf", "application/pdf"),
        (".TIFF", "image/tiff"),
    ],
)
def test_known_types(name, expected):
    assert mime_type_for(name) == expected


@pytest.mark.parametrize("name", ["notes.txt", "README", "archive.tar.gz", ""])
def test_unknown_types_fall_back(name):
    assert mime_type_for(name) == DEFAULT_MIME_TYPE


def test_file_extension_is_lowercased():
    assert file_extension(Path("/tmp/Report.PDF")) == ".pdf"
    assert file_extension("noext") == ""
