from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


class StepState(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class StepRecord:
    name: str
    state: StepState = StepState.PENDING
    detail: Dict[str, Any] = field(default_factory=dict)


@dataclass
class WriteSequence:
    """Log of the independent writes one workflow operation has issued.

    The writes are not atomic. When an operation fails part way, the sequence
    tells the caller which writes already landed in the store and which one
    broke, since nothing is rolled back.
    """

    operation: str
    steps: List[StepRecord] = field(default_factory=list)

    @contextmanager
    def step(self, name: str, **detail: Any) -> Iterator[StepRecord]:
        record = StepRecord(name=name, detail=dict(detail))
        self.steps.append(record)
        try:
            yield record
        except Exception:
            record.state = StepState.FAILED
            raise
        record.state = StepState.COMPLETED

    @property
    def applied(self) -> List[StepRecord]:
        return [record for record in self.steps if record.state == StepState.COMPLETED]

    @property
    def failed_step(self) -> Optional[StepRecord]:
        for record in self.steps:
            if record.state == StepState.FAILED:
                return record
        return None

    @property
    def is_partial(self) -> bool:
        return bool(self.applied) and self.failed_step is not None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "steps": [
                {"name": record.name, "state": record.state.value, **record.detail}
                for record in self.steps
            ],
        }
