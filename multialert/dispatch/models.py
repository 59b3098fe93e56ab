"""
Result types produced by a fan-out dispatch.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class AlertKind(Enum):
    """Alert kinds. The kind selects formatting tone only."""
    ERROR = "error"
    INFO = "info"
    WARN = "warn"
    SUCCESS = "success"

    @classmethod
    def parse(cls, value: Any) -> 'AlertKind':
        """Parse a kind from an AlertKind or a case-insensitive string ('warning' is accepted)."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if text == "warning":
            text = "warn"
        return cls(text)


@dataclass
class DispatchResult:
    """Outcome of one channel within a dispatch."""
    type: str
    success: bool
    result: Any = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'type': self.type, 'success': self.success}
        if self.success:
            data['result'] = self.result
        else:
            data['error'] = self.error
        return data


@dataclass
class DispatchSummary:
    """Counts for a dispatch."""
    total: int = 0
    successful: int = 0
    failed: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {'total': self.total, 'successful': self.successful, 'failed': self.failed}


@dataclass
class AggregateReport:
    """
    Aggregated outcome of a fan-out dispatch.

    ``results`` holds one entry per channel in registration order;
    ``errors`` is the failed subset.
    """
    kind: AlertKind
    results: List[DispatchResult] = field(default_factory=list)

    @property
    def errors(self) -> List[DispatchResult]:
        return [result for result in self.results if not result.success]

    @property
    def summary(self) -> DispatchSummary:
        successful = sum(1 for result in self.results if result.success)
        return DispatchSummary(
            total=len(self.results),
            successful=successful,
            failed=len(self.results) - successful
        )

    @property
    def success(self) -> bool:
        """True iff at least one channel succeeded."""
        return any(result.success for result in self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'success': self.success,
            'results': [result.to_dict() for result in self.results],
            'errors': [error.to_dict() for error in self.errors],
            'summary': self.summary.to_dict(),
        }
