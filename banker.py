#!/usr/bin/env python3
"""
Banker's Allocation Simulator
Main entry point: configuration, then an RQ / RL / CS command loop.

Commands:
    RQ <customer> <units...>   request resources
    RL <customer> <units...>   release resources
    CS                         show state, detect and resolve deadlock
    exit                       leave the simulator
"""

import argparse
import sys
from typing import Callable, List, Optional, TextIO

from models.allocation_state import AllocationState, InvalidConfiguration, default_resource_names
from utils.config_loader import load_config, get_config_description, ConfigLoadError
from utils.logger import EngineLogger
from algorithms.recovery import VICTIM_STRATEGIES
from analysis.events import EventType
from engine import AllocationEngine


DEFAULT_CUSTOMERS = 5
DEFAULT_RESOURCES = 4

USAGE = "Invalid command. Use 'RQ', 'RL', 'CS', or 'exit'."


class CommandError(Exception):
    """Exception raised when a command line cannot be parsed."""
    pass


def parse_quantities(tokens: List[str], num_resources: int) -> List[int]:
    """
    Parse per-resource amounts from command tokens.

    Raises:
        CommandError: If the count is wrong or a token is not an integer
    """
    if len(tokens) != num_resources:
        raise CommandError(f"Expected {num_resources} amounts, got {len(tokens)}")
    try:
        return [int(t) for t in tokens]
    except ValueError:
        raise CommandError(f"Amounts must be integers: {' '.join(tokens)}")


def parse_customer(token: str) -> int:
    """Parse a customer number token."""
    try:
        return int(token)
    except ValueError:
        raise CommandError(f"Invalid input for customer number: {token}")


def execute_command(engine: AllocationEngine, line: str) -> bool:
    """
    Execute one command line against the engine.

    Args:
        engine: Engine receiving the command
        line: Raw command text

    Returns:
        False if the loop should stop, True otherwise
    """
    logger = engine.logger
    tokens = line.split()
    if not tokens:
        return True

    command = tokens[0].upper()

    if command == "EXIT":
        return False

    if command in ("RQ", "RL"):
        try:
            if len(tokens) < 2:
                raise CommandError("Missing customer number")
            customer = parse_customer(tokens[1])
            quantities = parse_quantities(tokens[2:], engine.state.num_resources)
        except CommandError as e:
            logger.log(str(e), "error")
            return True

        if command == "RQ":
            decision = engine.request(customer, quantities)
            logger.log("Request granted." if decision.granted else "Request denied.")
            if not decision.granted:
                return True
        else:
            decision = engine.release(customer, quantities)
            if not decision.granted:
                return True
            logger.log("Resources released.")

        if engine.is_safe():
            logger.log("System is in a safe state.")
        else:
            logger.log("System is not in a safe state.")
        return True

    if command == "CS":
        logger.log(engine.display())
        engine.check_state()
        return True

    logger.log(USAGE, "error")
    return True


def run_command_loop(engine: AllocationEngine, input_stream: TextIO, prompt: bool = True) -> None:
    """
    Read and execute commands until 'exit' or end of input.

    Args:
        engine: Engine receiving the commands
        input_stream: Source of command lines
        prompt: Print the command prompt before each line
    """
    while True:
        if prompt:
            print("\nEnter a command (RQ, RL, CS, or exit):")
        line = input_stream.readline()
        if not line:
            break
        if not execute_command(engine, line):
            break


def prompt_configuration(
    num_customers: int,
    num_resources: int,
    read: Callable[[str], str] = input,
    clamp_negative_need: bool = False
) -> AllocationState:
    """
    Ask for available units, maximum claims and allocations interactively.

    Available units are the currently free units, so totals are derived from
    them plus the entered allocations.

    Raises:
        CommandError: If an entry is not an integer
        InvalidConfiguration: If the entered tables violate the invariants
    """
    names = default_resource_names(num_resources)

    def read_int(label: str) -> int:
        try:
            text = read(label)
        except EOFError:
            raise CommandError("Unexpected end of input during setup")
        try:
            return int(text.strip())
        except ValueError:
            raise CommandError(f"Invalid input for {label.strip().rstrip(':')}: {text!r}")

    print("Enter the available resources:")
    available = [read_int(f"Resource {name}: ") for name in names]

    print("Enter the maximum resources for each customer:")
    maximum = []
    for c in range(num_customers):
        print(f"Customer {c}:")
        maximum.append([read_int(f"  Max {name}: ") for name in names])

    print("Enter the allocated resources for each customer:")
    allocation = []
    for c in range(num_customers):
        print(f"Customer {c}:")
        allocation.append([read_int(f"  Allocated {name}: ") for name in names])

    return AllocationState.from_available(available, maximum, allocation, resource_names=names,
                                         clamp_negative_need=clamp_negative_need)


def _display_statistics(engine: AllocationEngine) -> None:
    """Display end-of-session statistics."""
    counts = engine.event_log.counts()
    logger = engine.logger

    logger.log("\nSession Statistics:")
    logger.log(f"  Requests Granted: {counts[EventType.GRANT]}")
    logger.log(f"  Denials: {counts[EventType.DENIAL]}")
    logger.log(f"  Releases: {counts[EventType.RELEASE]}")
    logger.log(f"  Deadlocks Detected: {counts[EventType.DEADLOCK]}")
    logger.log(f"  Customers Preempted: {counts[EventType.PREEMPTION]}")


def build_parser() -> argparse.ArgumentParser:
    """Command line options for the simulator."""
    parser = argparse.ArgumentParser(
        description="Banker's Algorithm Allocation Simulator"
    )
    parser.add_argument(
        '--config',
        type=str,
        help='Path to configuration JSON file (prompts interactively if omitted)'
    )
    parser.add_argument(
        '--customers',
        type=int,
        default=DEFAULT_CUSTOMERS,
        help=f'Number of customers for interactive setup (default: {DEFAULT_CUSTOMERS})'
    )
    parser.add_argument(
        '--resources',
        type=int,
        default=DEFAULT_RESOURCES,
        help=f'Number of resource types for interactive setup (default: {DEFAULT_RESOURCES})'
    )
    parser.add_argument(
        '--strategy',
        choices=VICTIM_STRATEGIES,
        default='index',
        help='Victim order for deadlock resolution (default: index)'
    )
    parser.add_argument(
        '--clamp-negative-need',
        action='store_true',
        help='Clamp Need to zero when an allocation exceeds its maximum instead of failing'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        help='Mirror all output to this file'
    )
    return parser


def main(argv: Optional[List[str]] = None, input_stream: Optional[TextIO] = None) -> int:
    """Main entry point for the simulator."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.customers < 1 or args.resources < 1:
        parser.error('--customers and --resources must be at least 1')

    logger = EngineLogger(verbose=args.verbose, log_file=args.log_file)

    try:
        if args.config:
            state = load_config(args.config, clamp_negative_need=args.clamp_negative_need)
            description = get_config_description(args.config)
            if description:
                logger.log(description)
        else:
            state = prompt_configuration(
                args.customers,
                args.resources,
                clamp_negative_need=args.clamp_negative_need
            )
    except (ConfigLoadError, InvalidConfiguration, CommandError) as e:
        logger.log(f"Failed to initialize: {e}", "error")
        logger.close()
        return 1

    engine = AllocationEngine(state, strategy=args.strategy, logger=logger)
    logger.log_state(engine.display())

    run_command_loop(engine, input_stream if input_stream is not None else sys.stdin)

    _display_statistics(engine)
    logger.close()
    return 0


if __name__ == '__main__':
    sys.exit(main())
