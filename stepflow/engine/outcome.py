"""
Outcome of a single handler invocation.

Handlers report what happened by returning an Outcome. The status either
classifies the run (success / fail) or names the transition to follow
explicitly (onRetry, onPending, ...). The two are separate axes: an Outcome
built with ``Status.ON_SUCCESS`` is an explicit transition, not a success.
"""

from typing import Any, Dict, Optional, Union
from dataclasses import dataclass, field
from enum import Enum


class Status(str, Enum):
    """Reserved status and transition tokens."""
    # Plain statuses, routed through onSuccess / onFail
    SUCCESS = "success"
    FAIL = "fail"

    # Named transitions
    ON_SUCCESS = "onSuccess"
    ON_FAIL = "onFail"
    ON_ERROR = "onError"
    ON_TIMEOUT = "onTimeout"
    ON_RETRY = "onRetry"
    ON_SKIP = "onSkip"
    ON_PENDING = "onPending"
    ON_CANCEL = "onCancel"

    @property
    def is_transition(self) -> bool:
        return self not in (Status.SUCCESS, Status.FAIL)


TRANSITIONS = tuple(s for s in Status if s.is_transition)


@dataclass(frozen=True)
class Outcome:
    """
    Immutable result of a handler.

    Attributes:
        status: A Status member (or its token string)
        data: Arbitrary payload, forwarded as-is
        transition: The explicit transition key, or None for status routing
    """

    status: Status
    data: Any = None
    transition: Optional[Status] = field(init=False, default=None, compare=False)

    def __post_init__(self):
        status = Status(self.status)
        object.__setattr__(self, "status", status)
        object.__setattr__(self, "transition", status if status.is_transition else None)

    @classmethod
    def success(cls, data: Any = None) -> "Outcome":
        return cls(Status.SUCCESS, data)

    @classmethod
    def fail(cls, data: Any = None) -> "Outcome":
        return cls(Status.FAIL, data)

    @classmethod
    def to(cls, transition: Union[Status, str], data: Any = None) -> "Outcome":
        """Create an Outcome that follows a named transition."""
        outcome = cls(transition, data)
        if not outcome.has_explicit_transition():
            raise ValueError(f"'{outcome.status.value}' is not a transition")
        return outcome

    def is_success(self) -> bool:
        return self.status is Status.SUCCESS

    def is_fail(self) -> bool:
        return self.status is Status.FAIL

    def has_explicit_transition(self) -> bool:
        return self.transition is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "transition": self.transition.value if self.transition else None,
            "data": self.data,
        }

    def __repr__(self) -> str:
        return f"Outcome(status='{self.status.value}', data={self.data!r})"
