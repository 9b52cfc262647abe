"""Errors raised by the scheduling domain."""


class SchedulingContractError(ValueError):
    """
    Raised when scheduler inputs violate their contract.

    Covers out-of-range quality ratings, unknown simplified ratings,
    negative intervals or counters, unparseable timestamps and invalid
    parameter sets. Raised before any computation happens.
    """
