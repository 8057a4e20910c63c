from __future__ import annotations


class ContractViolation(RuntimeError):
    """Raised when the engine is driven in a way correct callers never do.

    Examples: writing outside the grid, locking without an active piece,
    spawning while a piece is still falling.
    """
