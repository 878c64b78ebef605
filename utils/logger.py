"""
Logger utility for the Banker's Allocation Simulator.

Provides per-operation logging with verbosity levels.
"""

from typing import List, Optional
from datetime import datetime

from models.decision import Decision, Resolution


class EngineLogger:
    """
    Logger for engine decisions.

    Format: "Customer X requests A:1 B:0 ... - GRANTED/DENIED (reason)"
    """

    def __init__(self, verbose: bool = False, log_file: Optional[str] = None, quiet: bool = False):
        """
        Initialize logger.

        Args:
            verbose: Enable debug output
            log_file: Optional file path for logging
            quiet: Suppress console output (file output is unaffected)
        """
        self.verbose = verbose
        self.quiet = quiet
        self.log_file = log_file
        self.file_handle = None

        if self.log_file:
            self.file_handle = open(self.log_file, 'w', encoding='utf-8')
            self._write_header()

    def _write_header(self) -> None:
        """Write log file header."""
        if self.file_handle:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            self.file_handle.write(f"Banker's Allocation Log - {timestamp}\n")
            self.file_handle.write("="*60 + "\n\n")

    def log(self, message: str, level: str = "info") -> None:
        """
        Log a message.

        Args:
            message: Message to log
            level: Log level (info, debug, warning, error)
        """
        if level == "debug" and not self.verbose:
            return

        formatted = self._format_message(message, level)

        if not self.quiet:
            print(formatted)

        if self.file_handle:
            self.file_handle.write(formatted + "\n")
            self.file_handle.flush()

    def _format_message(self, message: str, level: str) -> str:
        """Format message with level prefix."""
        if level == "error":
            return f"[ERROR] {message}"
        elif level == "warning":
            return f"[WARNING] {message}"
        elif level == "debug":
            return f"[DEBUG] {message}"
        else:
            return message

    def log_request(self, customer: int, quantities: str, decision: Decision) -> None:
        """Log a resource request and its outcome."""
        status = "GRANTED" if decision.granted else "DENIED"
        self.log(f"Customer {customer} requests {quantities} - {status} ({decision.message})")

    def log_release(self, customer: int, quantities: str, decision: Decision) -> None:
        """Log a resource release and its outcome."""
        if decision.granted:
            self.log(f"Customer {customer} releases {quantities}")
        else:
            self.log(f"Customer {customer} cannot release {quantities} ({decision.message})", "error")

    def log_deadlock(self, deadlocked: List[int]) -> None:
        """
        Log deadlock detection.

        Args:
            deadlocked: Customer indices that cannot finish
        """
        customers_str = ", ".join(f"C{c}" for c in deadlocked)
        self.log(f"DEADLOCK DETECTED - Customers blocked: [{customers_str}]", "warning")

    def log_resolution(self, resolution: Resolution) -> None:
        """Log every action taken while resolving a deadlock."""
        for action in resolution.actions:
            self.log(f"  {action}")

    def log_state(self, state_str: str) -> None:
        """
        Log a state snapshot (verbose only).

        Args:
            state_str: Formatted allocation state
        """
        if self.verbose:
            self.log(f"State:\n{state_str}", "debug")

    def close(self) -> None:
        """Close log file if open."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None

    def __del__(self):
        """Cleanup on destruction."""
        self.close()
