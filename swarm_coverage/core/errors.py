"""
Error taxonomy for the coverage engine.

Every error here is recoverable: the controller logs it, skips the
current tick's action and tries again on the next tick.
"""


class CoverageError(Exception):
    """Base class for all coverage engine errors."""


class InvalidRegion(CoverageError):
    """Region has zero width or height, so no cell can be carved from it."""


class NotAvailable(CoverageError):
    """This drone is not in the available peer set, so it has no rank."""


class NoCandidate(CoverageError):
    """MinTime found no eligible lattice cell to head for."""


class StaleSnapshot(CoverageError):
    """
    Advisory: some peer data in the snapshot is older than the configured
    freshness window. Callers log it and carry on.
    """

    def __init__(self, stale_ids, max_age: float):
        self.stale_ids = sorted(stale_ids)
        self.max_age = max_age
        super().__init__(f"Stale records for drones {self.stale_ids} (older than {max_age:.1f}s)")
