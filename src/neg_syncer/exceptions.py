from typing import Optional


class NegSyncError(Exception):
    """Base error for everything raised by neg_syncer."""


class ZoneLookupError(NegSyncError):
    """A node could not be mapped to a zone, or zones could not be listed."""


class EndpointEncodingError(NegSyncError):
    """An endpoint could not be converted to its cloud representation."""


class SelectorParseError(NegSyncError, ValueError):
    """A label selector expression is malformed."""


class CloudError(NegSyncError):
    """A call against the backend-group cloud API failed."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class NotFoundError(CloudError):
    """The requested cloud resource does not exist."""

    def __init__(self, message: str):
        super().__init__(message, status=404)
