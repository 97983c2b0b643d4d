"""Error kinds raised inside the orchestration.

Each kind carries a stable ``error_code`` that is copied into the
``ResultEnvelope`` returned to callers.
"""

from __future__ import annotations


class BatchOcrError(Exception):
    error_code = "BatchOcrError"


class UnsupportedFormatError(BatchOcrError):
    error_code = "UnsupportedFormat"


class MissingConfigurationError(BatchOcrError):
    error_code = "MissingConfiguration"


class MissingStagingBucketError(BatchOcrError):
    error_code = "MissingStagingBucket"


class JobTimeoutError(BatchOcrError):
    error_code = "Timeout"


class NoOutputFoundError(BatchOcrError):
    error_code = "NoOutputFound"


class EmptyInputError(BatchOcrError):
    error_code = "EmptyInput"


class ProviderError(BatchOcrError):
    error_code = "ProviderError"


class InvalidOptionsError(BatchOcrError):
    error_code = "InvalidOptions"


class FileReadError(BatchOcrError):
    error_code = "FileReadError"


# Not raised: cleanup failures are reported as envelope warnings with this code.
CLEANUP_WARNING = "CleanupWarning"
