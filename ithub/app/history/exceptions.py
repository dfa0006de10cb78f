class ChangeTrackerError(Exception):
    """Base class for audit trail failures."""

class InvalidActionKind(ChangeTrackerError):
    """Raised for an asset type or action outside the known vocabulary."""

class StoreWriteFailure(ChangeTrackerError):
    """Writing history rows failed; nothing from the call was kept."""

class StoreReadFailure(ChangeTrackerError):
    """Querying the history table failed."""
