"""
Algorithms package for the Banker's Allocation Simulator.
Contains the shared Work/Finish safety routine, the Banker's request/release
protocol, deadlock detection, and preemption-based recovery.
"""
