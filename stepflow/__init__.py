"""
StepFlow - A small, synchronous workflow state machine.

Wire handler classes into a graph of transitions (onSuccess, onFail,
onRetry, ...) and let the executor walk it, collecting each handler's data.
"""

__version__ = "1.0.0"
