"""
Processing error types for explicit failure tracking during valuation.

Valuation never raises for a single bad token. Instead, each degraded lookup
(unknown decimals, missing price, failed bucket fetch) is captured as a
ProcessingError so callers can inspect what was assumed to be zero.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorSeverity(Enum):
    """Severity levels for processing errors."""

    WARNING = "warning"  # Value degraded to zero, token still recorded
    ERROR = "error"  # Token or bucket failed, recorded with zero value


@dataclass
class ProcessingError:
    """
    Represents a single processing error with context.

    Attributes:
        source: Component that generated the error (e.g., "valuation", "prices")
        message: Human-readable error description
        severity: How severe the error is
        context: Additional context like identifier, chain, symbol
        exception: Original exception if available
    """

    source: str
    message: str
    severity: ErrorSeverity
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source": self.source,
            "message": self.message,
            "severity": self.severity.value,
            "context": self.context,
        }


def count_by_severity(
    errors: List[ProcessingError], severity: ErrorSeverity
) -> int:
    """Count errors of a given severity."""
    return sum(1 for e in errors if e.severity == severity)
