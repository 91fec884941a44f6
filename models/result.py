"""
models/result.py
----------------
The (data, error) pair every service operation returns.
"""

from dataclasses import dataclass
from typing import Any, Optional

from utils.errors import ServiceError


@dataclass(frozen=True)
class ServiceResult:
    """
    Outcome of a service call. Exactly one of ``data``/``error`` is meaningful:
    callers must check ``error`` (or ``ok``) before using ``data``.
    """
    data: Any = None
    error: Optional[ServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Any) -> "ServiceResult":
        return cls(data=data, error=None)

    @classmethod
    def failure(cls, error: ServiceError) -> "ServiceResult":
        return cls(data=None, error=error)
