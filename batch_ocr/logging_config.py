"""Logging setup: Cloud Logging-compatible JSON on Cloud Run, plain text locally.

Orchestration log calls pass ``extra={"job_id": ..., "provider": ...}``;
the JSON formatter emits those as top-level fields so a job's progress can
be filtered in Cloud Logging.
"""

from __future__ import annotations

import logging
import os

from pythonjsonlogger.json import JsonFormatter

_QUIET_LOGGERS = ("google.auth", "urllib3", "botocore", "s3transfer")


class GCPJsonFormatter(JsonFormatter):
    def add_fields(
        self,
        log_record: dict[str, object],
        record: logging.LogRecord,
        message_dict: dict[str, object],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        # Cloud Logging reads "severity"; its names match Python's level names
        log_record["severity"] = record.levelname
        log_record.pop("levelname", None)


class _JobContextFilter(logging.Filter):
    """Appends ``[provider job_id]`` to plain-text records that carry job context."""

    def filter(self, record: logging.LogRecord) -> bool:
        job_id = getattr(record, "job_id", None)
        provider = getattr(record, "provider", None)
        record.job_ctx = f" [{provider or '-'} {job_id}]" if job_id else ""
        return True


def setup_logging(*, level: str = "INFO", json_output: bool | None = None) -> None:
    """Configure the root logger. ``json_output`` defaults to "running on Cloud Run"."""
    if json_output is None:
        json_output = bool(os.getenv("K_SERVICE"))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler()
    if json_output:
        handler.setFormatter(
            GCPJsonFormatter(
                fmt="%(message)s %(name)s %(funcName)s %(lineno)d",
                rename_fields={"name": "logger"},
            )
        )
    else:
        handler.addFilter(_JobContextFilter())
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)-8s %(name)s%(job_ctx)s  %(message)s",
                datefmt="%H:%M:%S",
            )
        )
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
