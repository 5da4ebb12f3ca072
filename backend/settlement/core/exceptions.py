"""Errors raised by the settlement engine.

Expected outcomes such as "nothing to settle" or "already settled" are
returned as values. Only broken invariants are raised.
"""


class InvariantViolationError(Exception):
    """A settlement record contradicts the data it was built from.

    Raised when an invoice or ledger entry references an inspection missing
    from the snapshot, or when revenue components do not add up to the total.
    """
