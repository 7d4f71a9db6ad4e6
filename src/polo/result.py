"""
Request outcomes for the Polo bridge client.

The dispatcher never raises across its boundary. Every call produces a
Result holding either a parsed value or a Failure describing what went wrong.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar('T')


class FailureKind(Enum):
    """Ways a bridge request can fail."""
    INVALID_ENDPOINT = "invalid_endpoint"      # HTTP 404, routing bug
    UNREACHABLE = "unreachable"                # connection refused / host down
    TIMEOUT = "timeout"                        # connect or read timeout
    MALFORMED_RESPONSE = "malformed_response"  # body doesn't match expected shape
    REJECTED = "rejected"                      # non-2xx under strict status policy
    UNEXPECTED = "unexpected"                  # anything else

    @property
    def transient(self) -> bool:
        """True for failures expected while the bridge is offline."""
        return self in (FailureKind.UNREACHABLE, FailureKind.TIMEOUT)


@dataclass(frozen=True)
class Failure:
    """Description of a failed request."""
    kind: FailureKind
    message: str = ""
    status_code: Optional[int] = None

    def __str__(self):
        if self.status_code is not None:
            return f"{self.kind.value} (HTTP {self.status_code}): {self.message}"
        return f"{self.kind.value}: {self.message}"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a Failure, never both."""
    value: Optional[T] = None
    failure: Optional[Failure] = None

    @classmethod
    def success(cls, value: Any = None) -> 'Result':
        return cls(value=value)

    @classmethod
    def fail(cls, failure: Failure) -> 'Result':
        return cls(failure=failure)

    @property
    def ok(self) -> bool:
        return self.failure is None

    def unwrap_or(self, default: T) -> T:
        """Return the value, or default if the request failed."""
        if self.failure is not None or self.value is None:
            return default
        return self.value

    def __bool__(self):
        return self.ok
