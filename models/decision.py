"""
Operation outcomes for the Banker's Allocation Simulator.

Requests and releases never raise for caller mistakes; they return a
Decision describing whether the tables changed and why not.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class DenialReason(Enum):
    """Why a request or release was refused."""
    INVALID_CUSTOMER = "InvalidCustomer"
    INVALID_QUANTITY = "InvalidQuantity"
    UNSAFE_STATE = "UnsafeState"


@dataclass
class Decision:
    """
    Result of a request or release.

    Attributes:
        granted: True if the operation was applied to the tables
        message: Human-readable description of the outcome
        reason: Denial kind when granted is False
        resource: Index of the first resource that failed validation, if any
        safe_sequence: Completion order proving safety after a granted request
    """
    granted: bool
    message: str
    reason: Optional[DenialReason] = None
    resource: Optional[int] = None
    safe_sequence: List[int] = field(default_factory=list)

    @classmethod
    def denied(cls, reason: DenialReason, message: str, resource: Optional[int] = None) -> "Decision":
        return cls(granted=False, message=message, reason=reason, resource=resource)

    def __bool__(self) -> bool:
        return self.granted


@dataclass
class Resolution:
    """
    Result of deadlock resolution.

    Attributes:
        resolved: True if no deadlock remains
        preempted: Customers whose allocation was reclaimed, in order
        actions: Log of actions taken
    """
    resolved: bool
    preempted: List[int] = field(default_factory=list)
    actions: List[str] = field(default_factory=list)
