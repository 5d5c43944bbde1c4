class FeedError(Exception):
    """Base class for errors that leave the previous event data in place."""


class FeedFetchError(FeedError):
    """Raised when the event feed or a stored snapshot cannot be retrieved."""


class FeedShapeError(FeedError):
    """Raised when a retrieved payload does not have the expected shape."""


class SnapshotReadError(FeedFetchError):
    """Raised when a persisted event snapshot cannot be read."""
