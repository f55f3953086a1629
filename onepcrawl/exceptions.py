"""Exception taxonomy for onepcrawl.

Transport failures are fatal and abort the enclosing crawl. Application
status failures on a single resource are normally absorbed into the tree
(see error_policies); StatusError is what they become when they cannot be.
"""

from typing import Any, Optional


class OnepCrawlError(Exception):
    """Base class for all onepcrawl errors."""


class TransportError(OnepCrawlError):
    """The gateway could not deliver a request or returned a malformed response."""


class StatusError(OnepCrawlError):
    """A remote call completed but reported a non-"ok" status.

    Attributes:
        procedure: Name of the remote procedure that failed
        status: Status string reported by the service (e.g. 'locked')
        detail: Optional error payload from the service
    """

    def __init__(self, procedure: str, status: str, detail: Any = None,
                 rid: Optional[str] = None):
        self.procedure = procedure
        self.status = status
        self.detail = detail
        self.rid = rid
        where = f" for {rid}" if rid else ""
        super().__init__(f"{procedure} returned status '{status}'{where}")


class OptionsError(OnepCrawlError, ValueError):
    """Traversal options were rejected before any remote call was made."""
