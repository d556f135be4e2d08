from __future__ import annotations

from typing import List, Optional


class FiplyError(RuntimeError):
    pass


class MalformedCursorError(FiplyError, ValueError):
    """The continuation cursor does not decode to a non-negative epoch second."""


class RecordParseError(ValueError):
    """A single feed record could not be turned into a PlayEvent."""


class FipClientError(FiplyError):
    pass


class TransportError(FipClientError):
    """Network or HTTP level failure talking to the FIP feed."""


class MalformedResponseError(FipClientError):
    """The page envelope (edges / pageInfo) is missing or has the wrong shape."""


class CollectionError(FiplyError):
    def __init__(self, message: str, events: Optional[List] = None):
        super().__init__(message)
        # events gathered before the walk aborted
        self.events = list(events or [])


class CatalogError(FiplyError):
    pass
