"""
Data models for the bridge
"""

from dataclasses import dataclass, field
from typing import Any, Tuple


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a single facade operation.

    ``payload`` holds the operation-specific values on success and exactly one
    error message on failure. ``rejected`` marks calls that were refused before
    the database was contacted (facade not connected, malformed params).
    """

    success: bool
    payload: Tuple[Any, ...] = field(default_factory=tuple)
    rejected: bool = False

    @classmethod
    def ok(cls, *payload: Any) -> 'OperationResult':
        return cls(success=True, payload=tuple(payload))

    @classmethod
    def failure(cls, message: str) -> 'OperationResult':
        return cls(success=False, payload=(str(message),))

    @classmethod
    def reject(cls, message: str) -> 'OperationResult':
        return cls(success=False, payload=(str(message),), rejected=True)

    @property
    def error(self) -> str:
        """Error message, empty on success"""
        if self.success or not self.payload:
            return ""
        return self.payload[0]

    def as_tuple(self) -> Tuple[Any, ...]:
        """Flatten into the ``(success, *payload)`` shape"""
        return (self.success,) + self.payload
