from __future__ import annotations

from typing import Optional

from .steps import WriteSequence


class WorkflowError(Exception):
    """A workflow operation failed and should be reported to the operator.

    ``sequence`` is set for multi-write operations and records the writes that
    were applied before the failure.
    """

    def __init__(self, message: str, sequence: Optional[WriteSequence] = None):
        super().__init__(message)
        self.message = message
        self.sequence = sequence

    @property
    def is_partial(self) -> bool:
        return self.sequence is not None and self.sequence.is_partial
