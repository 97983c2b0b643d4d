"""Unit tests for the batch-ocr command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from batch_ocr import main as cli_main
from batch_ocr.cli import build_parser
from batch_ocr.main import EXIT_BAD_INPUT, EXIT_FAILED, EXIT_OK, result_file_names
from tests.unit.fakes import ScriptedInvoker, docai_part


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args(["doc.pdf"])
        assert args.file == "doc.pdf"
        assert args.provider is None
        assert args.bucket is None
        assert args.layout is False
        assert args.combine is False
        assert args.polling_interval is None

    def test_flags(self):
        args = build_parser().parse_args(
            ["doc.pdf", "--provider", "textract", "--bucket", "b", "--tables", "--polling-interval", "2000"]
        )
        assert args.provider == "textract"
        assert args.bucket == "b"
        assert args.tables is True
        assert args.polling_interval == 2000

    def test_rejects_unknown_provider(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["doc.pdf", "--provider", "azure"])


class TestResultFileNames:
    def test_document_ai_parts(self):
        names = result_file_names(Path("in/scan.pdf"), provider="document_ai", layout=False, combined=False, parts=2)
        assert names == ["scan-p0-GoogleDocumentAI.json", "scan-p1-GoogleDocumentAI.json"]

    def test_textract_layout_combined(self):
        names = result_file_names(Path("scan.pdf"), provider="textract", layout=True, combined=True, parts=1)
        assert names == ["scan-AwsTextractLayout.json"]

    def test_textract_plain(self):
        names = result_file_names(Path("scan.pdf"), provider="textract", layout=False, combined=True, parts=1)
        assert names == ["scan-AwsTextract.json"]


@pytest.fixture
def cli_env(monkeypatch, store):
    for name in (
        "BATCH_OCR_PROVIDER",
        "BATCH_OCR_STAGING_BUCKET",
        "BATCH_OCR_POLLING_INTERVAL_MS",
        "BATCH_OCR_MAX_WAIT_TIME_MS",
        "K_SERVICE",
    ):
        monkeypatch.delenv(name, raising=False)
    invoker = ScriptedInvoker(store, outputs={"0.json": docai_part(1), "1.json": docai_part(2)})
    monkeypatch.setattr(cli_main, "build_adapters", lambda provider, cfg=None: (invoker, store))
    return monkeypatch


class TestAmain:
    async def test_writes_one_file_per_part(self, tmp_path, store, cli_env):
        pdf = tmp_path / "scan.pdf"
        pdf.write_bytes(b"%PDF-1.7")

        code = await cli_main._amain([str(pdf), "--bucket", "bucket"])

        assert code == EXIT_OK
        written = sorted(p.name for p in tmp_path.glob("*.json"))
        assert written == ["scan-p0-GoogleDocumentAI.json", "scan-p1-GoogleDocumentAI.json"]
        assert store.names() == []

    async def test_combined_into_output_dir(self, tmp_path, cli_env):
        pdf = tmp_path / "scan.pdf"
        pdf.write_bytes(b"%PDF-1.7")
        out = tmp_path / "results"
        cli_env.setenv("BATCH_OCR_STAGING_BUCKET", "bucket")

        code = await cli_main._amain([str(pdf), "--combine", "--output-dir", str(out)])

        assert code == EXIT_OK
        doc = json.loads((out / "scan-GoogleDocumentAI.json").read_text(encoding="utf-8"))
        assert [p["pageNumber"] for p in doc["document"]["pages"]] == [1, 2]

    async def test_missing_bucket_fails(self, tmp_path, cli_env):
        pdf = tmp_path / "scan.pdf"
        pdf.write_bytes(b"%PDF-1.7")

        assert await cli_main._amain([str(pdf)]) == EXIT_FAILED
        assert list(tmp_path.glob("*.json")) == []

    async def test_invalid_polling_interval(self, tmp_path, cli_env):
        code = await cli_main._amain([str(tmp_path / "scan.pdf"), "--bucket", "b", "--polling-interval", "10"])
        assert code == EXIT_BAD_INPUT

    async def test_invalid_provider_env(self, tmp_path, cli_env):
        cli_env.setenv("BATCH_OCR_PROVIDER", "azure")
        assert await cli_main._amain([str(tmp_path / "scan.pdf"), "--bucket", "b"]) == EXIT_BAD_INPUT

    @pytest.mark.parametrize("flag", ["--polling-interval", "--max-wait-time"])
    async def test_zero_interval_is_rejected_not_defaulted(self, tmp_path, store, cli_env, flag):
        pdf = tmp_path / "scan.pdf"
        pdf.write_bytes(b"%PDF-1.7")

        code = await cli_main._amain([str(pdf), "--bucket", "bucket", flag, "0"])

        assert code == EXIT_BAD_INPUT
        assert store.put_calls == []

    async def test_non_numeric_env_value(self, tmp_path, cli_env):
        cli_env.setenv("BATCH_OCR_MAX_WAIT_TIME_MS", "soon")
        assert await cli_main._amain([str(tmp_path / "scan.pdf"), "--bucket", "b"]) == EXIT_BAD_INPUT
