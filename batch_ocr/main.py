from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from batch_ocr.cli import build_parser
from batch_ocr.config import BatchOcrConfig
from batch_ocr.engine import build_adapters, recognize_file_async
from batch_ocr.logging_config import setup_logging
from batch_ocr.models import AsyncRecognizeOptions, ResultEnvelope

_SUFFIXES = {
    "document_ai": "GoogleDocumentAI.json",
    "textract": "AwsTextract.json",
}

EXIT_OK = 0
EXIT_BAD_INPUT = 1
EXIT_FAILED = 2


def result_file_names(file_path: Path, *, provider: str, layout: bool, combined: bool, parts: int) -> list[str]:
    suffix = _SUFFIXES[provider]
    if provider == "textract" and layout:
        suffix = "AwsTextractLayout.json"
    if combined:
        return [f"{file_path.stem}-{suffix}"]
    return [f"{file_path.stem}-p{i}-{suffix}" for i in range(parts)]


def write_results(envelope: ResultEnvelope, *, file_path: Path, out_dir: Path, provider: str, layout: bool) -> list[Path]:
    data: Any = envelope.data
    combined = isinstance(data, dict)
    docs: list[Any] = [data] if combined else list(data or [])
    names = result_file_names(file_path, provider=provider, layout=layout, combined=combined, parts=len(docs))

    out_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for name, doc in zip(names, docs, strict=True):
        path = out_dir / name
        path.write_text(json.dumps(doc, indent=2), encoding="utf-8")
        written.append(path)
    return written


async def _amain(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level.upper())
    logger = logging.getLogger("batch_ocr")

    try:
        cfg = BatchOcrConfig.from_env()
        if args.provider:
            cfg = replace(cfg, provider=args.provider)
        cfg.validate()
        options = AsyncRecognizeOptions(
            staging_bucket=args.bucket or cfg.staging_bucket,
            staging_key=args.key,
            analyze_layout=bool(args.layout or args.tables),
            analyze_layout_tables=bool(args.tables),
            keep_staged_file=bool(args.keep_staged_file) or cfg.keep_staged_file,
            keep_output_files=bool(args.keep_output_files) or cfg.keep_output_files,
            polling_interval_ms=(
                args.polling_interval if args.polling_interval is not None else cfg.polling_interval_ms
            ),
            max_wait_time_ms=args.max_wait_time if args.max_wait_time is not None else cfg.max_wait_time_ms,
            combine=bool(args.combine),
            provider_config=cfg.provider_config(),
        )
    except (ValueError, ValidationError) as e:
        logger.error("Invalid configuration: %s", e)
        return EXIT_BAD_INPUT

    file_path = Path(args.file)
    logger.info("Processing file: %s", file_path)
    if options.staging_bucket:
        logger.info("Using staging bucket: %s", options.staging_bucket)

    invoker, store = build_adapters(cfg.provider, cfg=cfg)
    envelope = await recognize_file_async(
        file_path,
        options,
        invoker=invoker,
        store=store,
        max_download_workers=cfg.max_download_workers,
    )

    for w in envelope.warnings:
        logger.warning("%s", w)

    if not envelope.success:
        logger.error("Error (%s): %s", envelope.error_code or "Unknown", envelope.error or "Failed")
        return EXIT_FAILED

    out_dir = Path(args.output_dir) if args.output_dir else file_path.parent
    for path in write_results(
        envelope,
        file_path=file_path,
        out_dir=out_dir,
        provider=cfg.provider,
        layout=options.analyze_layout,
    ):
        logger.info("Wrote result to %s", path)
    return EXIT_OK


def main() -> None:
    raise SystemExit(asyncio.run(_amain()))


if __name__ == "__main__":
    main()
