# recon_engine/exceptions.py

"""
Typed failures raised by the reconciliation engine.

"No match found" is not an error: rank() returns an empty result instead.
"""


class ReconciliationError(Exception):
    """Base class for every error the engine raises."""


class ConfigurationError(ReconciliationError):
    """Matching preferences are invalid (bad weights, tolerances or thresholds)."""


class MalformedRecordError(ReconciliationError):
    """A specific record cannot be scored."""

    def __init__(self, record_id: str, reason: str):
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"Record {record_id!r} is malformed: {reason}")
