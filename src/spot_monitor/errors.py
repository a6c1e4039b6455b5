"""Feed and data error taxonomy.

All of these are recovered locally by the component that hits them: the
failure is logged and the last good value (or an explicit absent value on
first run) is used instead.
"""

from __future__ import annotations


class SpotMonitorError(Exception):
    """Base class for recoverable Spot Monitor errors."""


class FeedUnavailable(SpotMonitorError):
    """Network or HTTP failure talking to an external feed."""


class FeedMalformed(SpotMonitorError):
    """Feed responded but the payload could not be parsed."""
