from __future__ import annotations

import argparse

from batch_ocr.config import PROVIDERS


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="batch-ocr",
        description="Run a document through a batch OCR job (Document AI or Textract) and write the JSON result",
    )
    p.add_argument("file", help="Path to the PDF/TIFF document to process")
    p.add_argument(
        "--provider",
        choices=PROVIDERS,
        default=None,
        help="Remote analysis service (default from env BATCH_OCR_PROVIDER)",
    )
    p.add_argument("--bucket", default=None, help="Staging bucket (default from env BATCH_OCR_STAGING_BUCKET)")
    p.add_argument("--key", default=None, help="Staging key for the input (auto-generated if not provided)")

    p.add_argument("--layout", action="store_true", help="Analyze layout structure")
    p.add_argument("--tables", action="store_true", help="Analyze layout and tables")

    p.add_argument("--keep-staged-file", action="store_true", help="Keep the uploaded input after processing")
    p.add_argument("--keep-output-files", action="store_true", help="Keep the job output files after processing")
    p.add_argument(
        "--polling-interval",
        type=int,
        default=None,
        metavar="MS",
        help="Polling interval in milliseconds (default: 5000, min 1000)",
    )
    p.add_argument(
        "--max-wait-time",
        type=int,
        default=None,
        metavar="MS",
        help="Maximum wait time in milliseconds (default: 300000, min 10000)",
    )

    p.add_argument("--combine", action="store_true", help="Write one combined response instead of one file per part")
    p.add_argument("--output-dir", default=None, help="Directory for result files (default: next to the input)")
    p.add_argument("--log-level", default="INFO", help="Python logging level (INFO, DEBUG, ...)")
    return p
