"""
Configuration Loader for the Banker's Allocation Simulator.

Loads and validates JSON files describing resource types and customers.
Each resource may give its total units or, as the interactive program asks,
its currently available units.
"""

import json
from typing import Dict, List, Any, Tuple

from models.allocation_state import AllocationState, default_resource_names


class ConfigLoadError(Exception):
    """Exception raised when a configuration file cannot be loaded or is malformed."""
    pass


def load_config(file_path: str, clamp_negative_need: bool = False) -> AllocationState:
    """
    Load an allocation state from a JSON file.

    Args:
        file_path: Path to configuration JSON file
        clamp_negative_need: Clamp Need to zero where allocation exceeds maximum

    Returns:
        Initialized AllocationState

    Raises:
        ConfigLoadError: If file cannot be read or its structure is invalid
        InvalidConfiguration: If the tables violate the allocation invariants
    """
    data = _read_json(file_path)

    if not isinstance(data, dict):
        raise ConfigLoadError("Configuration must be a JSON object")
    if 'resources' not in data:
        raise ConfigLoadError("Configuration missing 'resources' field")
    if 'customers' not in data:
        raise ConfigLoadError("Configuration missing 'customers' field")

    names, totals, frees = _load_resources(data['resources'])
    maximum, allocation = _load_customers(data['customers'], len(names))

    # Resources given as free units get their total from the allocations
    for r, free in enumerate(frees):
        if free is not None:
            totals[r] = free + sum(row[r] for row in allocation)

    return AllocationState.initialize(
        totals,
        maximum,
        allocation,
        resource_names=names,
        clamp_negative_need=clamp_negative_need
    )


def _read_json(file_path: str) -> Any:
    """Read and parse a JSON file."""
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError:
        raise ConfigLoadError(f"Configuration file not found: {file_path}")
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"Invalid JSON in configuration file: {e}")


def _require_count(value: Any, what: str) -> int:
    """Validate a non-negative integer count."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigLoadError(f"{what} must be an integer, got {value!r}")
    if value < 0:
        raise ConfigLoadError(f"{what} cannot be negative ({value})")
    return value


def _require_vector(values: Any, length: int, what: str) -> List[int]:
    """Validate a list of non-negative integers of the given length."""
    if not isinstance(values, list):
        raise ConfigLoadError(f"{what} must be a list")
    if len(values) != length:
        raise ConfigLoadError(
            f"{what} length ({len(values)}) does not match resource count ({length})"
        )
    return [_require_count(v, f"{what}[{i}]") for i, v in enumerate(values)]


def _load_resources(resource_data: Any) -> Tuple[List[str], List[int], List[Any]]:
    """
    Load resource definitions.

    Args:
        resource_data: List of resource dictionaries

    Returns:
        Tuple of (names, totals, free units or None per resource)
    """
    if not isinstance(resource_data, list) or not resource_data:
        raise ConfigLoadError("'resources' must be a non-empty list")

    defaults = default_resource_names(len(resource_data))
    names = []
    totals = []
    frees = []

    for i, res in enumerate(resource_data):
        if not isinstance(res, dict):
            raise ConfigLoadError(f"Resource {i} must be an object")

        name = str(res.get('name', defaults[i]))

        if 'total' in res and 'available' in res:
            raise ConfigLoadError(f"Resource {name}: give either 'total' or 'available', not both")
        if 'total' in res:
            totals.append(_require_count(res['total'], f"Resource {name} total"))
            frees.append(None)
        elif 'available' in res:
            totals.append(0)
            frees.append(_require_count(res['available'], f"Resource {name} available"))
        else:
            raise ConfigLoadError(f"Resource {name} missing 'total' or 'available'")

        names.append(name)

    if len(set(names)) != len(names):
        raise ConfigLoadError(f"Duplicate resource names: {names}")

    return names, totals, frees


def _load_customers(customer_data: Any, num_resources: int) -> Tuple[List[List[int]], List[List[int]]]:
    """
    Load customer claims and allocations.

    Customers are ordered by 'id', which must run from 0 to C-1.

    Args:
        customer_data: List of customer dictionaries
        num_resources: Number of resource types

    Returns:
        Tuple of (maximum table, allocation table)
    """
    if not isinstance(customer_data, list) or not customer_data:
        raise ConfigLoadError("'customers' must be a non-empty list")

    rows: Dict[int, Tuple[List[int], List[int]]] = {}

    for i, cust in enumerate(customer_data):
        if not isinstance(cust, dict):
            raise ConfigLoadError(f"Customer entry {i} must be an object")

        customer_id = _require_count(cust.get('id', i), f"Customer entry {i} id")
        if customer_id in rows:
            raise ConfigLoadError(f"Duplicate customer id {customer_id}")
        if 'maximum' not in cust:
            raise ConfigLoadError(f"Customer {customer_id} missing 'maximum' field")

        maximum = _require_vector(cust['maximum'], num_resources, f"Customer {customer_id} maximum")
        allocation = _require_vector(
            cust.get('allocation', [0] * num_resources),
            num_resources,
            f"Customer {customer_id} allocation"
        )
        rows[customer_id] = (maximum, allocation)

    expected = list(range(len(rows)))
    if sorted(rows) != expected:
        raise ConfigLoadError(
            f"Customer ids must be 0..{len(rows) - 1}, got {sorted(rows)}"
        )

    return [rows[c][0] for c in expected], [rows[c][1] for c in expected]


def get_config_description(file_path: str) -> str:
    """
    Get description from configuration file without building the state.

    Args:
        file_path: Path to configuration JSON file

    Returns:
        Description string, or empty string if not present
    """
    data = _read_json(file_path)
    if isinstance(data, dict):
        return str(data.get('description', ''))
    return ''
