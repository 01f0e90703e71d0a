from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult:
    success: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "OperationResult":
        return cls(success=True)

    @classmethod
    def fail(cls, error: str) -> "OperationResult":
        return cls(success=False, error=error)


@dataclass(frozen=True)
class MutationResult(Generic[T]):
    """Outcome of a task mutation; `value` is the affected record when there is one."""
    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    changed: bool = True

    @classmethod
    def ok(cls, value: Optional[T] = None, changed: bool = True) -> "MutationResult[T]":
        return cls(success=True, value=value, changed=changed)

    @classmethod
    def fail(cls, error: str) -> "MutationResult[T]":
        return cls(success=False, error=error, changed=False)
