"""
Allocation State model for the Banker's Allocation Simulator.

Holds the Total, Available, Maximum, Allocation and Need tables shared by the
safety check, the request/release protocol and deadlock handling.
"""

import numpy as np
from typing import List, Dict, Optional, Sequence
from dataclasses import dataclass, field


# Largest unit count the int64 tables can hold
MAX_UNITS = int(np.iinfo(np.int64).max)


class InvalidConfiguration(Exception):
    """Exception raised when initial tables violate the allocation invariants."""
    pass


def _as_int_array(values, name: str, ndim: int) -> np.ndarray:
    """Convert input to an integer numpy array of the given rank."""
    try:
        array = np.asarray(values)
    except ValueError as e:
        raise InvalidConfiguration(f"{name}: rows must all have the same length ({e})")

    if array.size == 0:
        array = array.astype(int)

    if array.ndim != ndim:
        raise InvalidConfiguration(
            f"{name}: expected a {ndim}-dimensional table, got shape {array.shape}"
        )
    if not np.issubdtype(array.dtype, np.integer):
        raise InvalidConfiguration(f"{name}: all entries must be integers")
    if np.any(array < 0):
        raise InvalidConfiguration(f"{name}: entries cannot be negative")
    if array.size and int(array.max()) > MAX_UNITS:
        raise InvalidConfiguration(f"{name}: entries cannot exceed {MAX_UNITS}")

    return array.astype(int)


def _column_sums(table: np.ndarray) -> List[int]:
    """Per-resource totals of a [C][R] table as Python ints, which cannot overflow."""
    return [sum(int(v) for v in table[:, r]) for r in range(table.shape[1])]


def default_resource_names(num_resources: int) -> List[str]:
    """Letters A, B, C, ... for resource types without an explicit name."""
    names = []
    for i in range(num_resources):
        if i < 26:
            names.append(chr(ord('A') + i))
        else:
            names.append(f"R{i}")
    return names


@dataclass
class AllocationState:
    """
    Resource tables for one Banker's algorithm session.

    All tables are created together by initialize() and mutated in lockstep
    by the request, release and preemption operations only.

    Attributes:
        total: [R] Units of each resource type supplied at initialization
        available: [R] Units currently unallocated
        maximum: [C][R] Lifetime maximum claim of each customer
        allocation: [C][R] Units currently held by each customer
        need: [C][R] Remaining claim, Maximum - Allocation
        resource_names: [R] Display labels for resource types
        clamp_negative_need: Need was clamped to zero where Allocation > Maximum

    Invariants:
        Available + sum(Allocation, axis=customers) == Total
        Allocation + Need == Maximum
        0 <= Allocation <= Maximum, Available >= 0
    """
    total: np.ndarray
    available: np.ndarray
    maximum: np.ndarray
    allocation: np.ndarray
    need: np.ndarray
    resource_names: List[str] = field(default_factory=list)
    clamp_negative_need: bool = False

    def __post_init__(self):
        if not self.resource_names:
            self.resource_names = default_resource_names(self.num_resources)

    @classmethod
    def initialize(
        cls,
        total_available: Sequence[int],
        maximum: Sequence[Sequence[int]],
        allocation: Sequence[Sequence[int]],
        resource_names: Optional[List[str]] = None,
        clamp_negative_need: bool = False
    ) -> "AllocationState":
        """
        Build the tables from externally supplied values.

        Args:
            total_available: [R] Total units of each resource type
            maximum: [C][R] Maximum claim per customer
            allocation: [C][R] Initial allocation per customer
            resource_names: Optional [R] display labels
            clamp_negative_need: Clamp Need to zero where Allocation exceeds
                Maximum instead of rejecting the configuration

        Returns:
            New AllocationState with Available = Total - sum(Allocation)

        Raises:
            InvalidConfiguration: If shapes disagree, any value is negative,
                an allocation exceeds its maximum claim (unless clamping), or
                aggregate allocations exceed the total units
        """
        total = _as_int_array(total_available, "total_available", 1)
        max_table = _as_int_array(maximum, "maximum", 2)
        alloc_table = _as_int_array(allocation, "allocation", 2)

        num_resources = total.shape[0]
        if num_resources == 0:
            raise InvalidConfiguration("At least one resource type is required")
        if max_table.shape[0] == 0:
            raise InvalidConfiguration("At least one customer is required")
        if max_table.shape[1] != num_resources:
            raise InvalidConfiguration(
                f"maximum: rows have {max_table.shape[1]} entries, "
                f"expected {num_resources} (one per resource type)"
            )
        if alloc_table.shape != max_table.shape:
            raise InvalidConfiguration(
                f"allocation: shape {alloc_table.shape} does not match "
                f"maximum shape {max_table.shape}"
            )

        if resource_names is not None and len(resource_names) != num_resources:
            raise InvalidConfiguration(
                f"resource_names: got {len(resource_names)} names for {num_resources} resource types"
            )

        need = max_table - alloc_table
        if np.any(need < 0):
            customer, resource = (int(i) for i in np.argwhere(need < 0)[0])
            if not clamp_negative_need:
                raise InvalidConfiguration(
                    f"Customer {customer}: allocation[{resource}] ({alloc_table[customer][resource]}) "
                    f"exceeds maximum[{resource}] ({max_table[customer][resource]})"
                )
            need = np.clip(need, 0, None)

        allocated = _column_sums(alloc_table)
        for r in range(num_resources):
            if allocated[r] > int(total[r]):
                raise InvalidConfiguration(
                    f"Resource {r}: initial allocations ({allocated[r]}) "
                    f"exceed total units ({total[r]})"
                )

        return cls(
            total=total,
            available=total - np.array(allocated, dtype=total.dtype),
            maximum=max_table,
            allocation=alloc_table,
            need=need,
            resource_names=list(resource_names) if resource_names else [],
            clamp_negative_need=clamp_negative_need
        )

    @classmethod
    def from_available(
        cls,
        available: Sequence[int],
        maximum: Sequence[Sequence[int]],
        allocation: Sequence[Sequence[int]],
        resource_names: Optional[List[str]] = None,
        clamp_negative_need: bool = False
    ) -> "AllocationState":
        """
        Build the tables from currently free units instead of totals.

        Total is derived as available + sum(allocation) for each resource type.
        """
        free = _as_int_array(available, "available", 1)
        alloc_table = _as_int_array(allocation, "allocation", 2)
        if alloc_table.shape[1] != free.shape[0]:
            raise InvalidConfiguration(
                f"allocation: rows have {alloc_table.shape[1]} entries, "
                f"expected {free.shape[0]} (one per resource type)"
            )
        total = [int(f) + a for f, a in zip(free, _column_sums(alloc_table))]
        if any(t > MAX_UNITS for t in total):
            raise InvalidConfiguration(
                f"available: total units (available + allocated) cannot exceed {MAX_UNITS}"
            )
        return cls.initialize(total, maximum, alloc_table, resource_names, clamp_negative_need)

    @property
    def num_customers(self) -> int:
        """Number of customers in the system."""
        return self.maximum.shape[0]

    @property
    def num_resources(self) -> int:
        """Number of resource types in the system."""
        return self.total.shape[0]

    def is_valid_customer(self, customer) -> bool:
        """True if customer is an integer index in [0, C)."""
        if isinstance(customer, (bool, np.bool_)):
            return False
        if not isinstance(customer, (int, np.integer)):
            return False
        return 0 <= customer < self.num_customers

    def snapshot(self) -> Dict[str, np.ndarray]:
        """
        Read-only copy of every table for display or comparison.

        Returns:
            Dictionary of numpy arrays that cannot be written to
        """
        tables = {
            'total': self.total.copy(),
            'available': self.available.copy(),
            'maximum': self.maximum.copy(),
            'allocation': self.allocation.copy(),
            'need': self.need.copy(),
        }
        for table in tables.values():
            table.flags.writeable = False
        return tables

    def check_invariants(self, context: str = "") -> None:
        """Verify conservation and bounds for every resource type.

        Args:
            context: Description of when this check is being run (for error messages)

        Raises:
            AssertionError: If any invariant is violated
        """
        allocated = self.allocation.sum(axis=0)

        for r in range(self.num_resources):
            assert self.available[r] + allocated[r] == self.total[r], (
                f"Resource conservation violated for {self.resource_names[r]} {context}\n"
                f"  Allocated: {allocated[r]}, Available: {self.available[r]}, Total: {self.total[r]}"
            )
            assert self.available[r] >= 0, (
                f"Negative available units for {self.resource_names[r]} {context}\n"
                f"  Available: {self.available[r]}"
            )

        assert np.all(self.allocation >= 0), f"Negative allocation {context}"
        assert np.all(self.need >= 0), f"Negative need {context}"

        # Clamped configurations start with Allocation > Maximum somewhere
        if not self.clamp_negative_need:
            assert np.array_equal(self.allocation + self.need, self.maximum), (
                f"Allocation + Need != Maximum {context}"
            )
            assert np.all(self.allocation <= self.maximum), (
                f"Allocation exceeds maximum claim {context}"
            )

    def format_vector(self, vector) -> str:
        """Format a per-resource vector as 'A:1 B:0 ...'."""
        return " ".join(f"{name}:{int(v)}" for name, v in zip(self.resource_names, vector))

    def display(self) -> str:
        """
        Generate readable string representation of the tables.

        Returns:
            Formatted string showing Available, Maximum, Allocation and Need
        """
        header = "            " + " ".join(f"{name:>3}" for name in self.resource_names)

        def table_rows(table: np.ndarray) -> List[str]:
            rows = [header]
            for c in range(self.num_customers):
                rows.append(f"  Customer {c}:" + " ".join(f"{int(v):3}" for v in table[c]))
            return rows

        output = []
        output.append("\n" + "="*60)
        output.append("CURRENT SYSTEM STATE")
        output.append("="*60)

        output.append("\nAvailable resources:")
        output.append("  " + self.format_vector(self.available))

        output.append("\nMaximum resources:")
        output.extend(table_rows(self.maximum))

        output.append("\nAllocated resources:")
        output.extend(table_rows(self.allocation))

        output.append("\nNeed resources (Maximum - Allocation):")
        output.extend(table_rows(self.need))

        output.append("\n" + "="*60)
        return "\n".join(output)
