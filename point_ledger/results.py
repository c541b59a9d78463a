"""
Invocation result returned to the hosting runtime.

Failures are reported as values so the runtime can relay them to whoever
issued the invocation.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import LedgerError


OK = 200
ERROR = 500


@dataclass(frozen=True)
class InvocationResult:
    status: int
    payload: Optional[bytes] = None
    message: str = ""
    error: Optional[str] = None

    @classmethod
    def success(cls, payload: Optional[bytes] = None) -> 'InvocationResult':
        return cls(status=OK, payload=payload)

    @classmethod
    def failure(cls, exc: LedgerError) -> 'InvocationResult':
        return cls(status=ERROR, message=exc.message, error=exc.code)

    @property
    def ok(self) -> bool:
        return self.status == OK
