"""
Status handling policies for onepcrawl.

When a lookup or listing call for one resource comes back with a
non-"ok" status (for example a locked client), the crawler asks a
StatusPolicy what to do. The policy either returns the status string to
record on that node, letting the rest of the crawl continue, or raises
to abort the crawl.

Transport failures never reach a policy; they always propagate.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .core import CallResponse, PendingCall
from .exceptions import StatusError
from .logging_config import get_logger

_log = get_logger("error_policies")


class StatusPolicy(ABC):
    """
    Base class for status handling policies.

    Subclasses implement different strategies for resources whose own
    lookup or listing call reports a non-"ok" status.
    """

    @abstractmethod
    async def handle(
        self,
        call: PendingCall,
        response: CallResponse,
        rid: Optional[str],
        depth: int
    ) -> str:
        """
        Handle a non-"ok" response for one resource.

        Args:
            call: The call that failed (lookup or listing)
            response: The response carrying the status
            rid: Resource the call was made for (None for an unresolved root)
            depth: Depth of that resource in the tree

        Returns:
            The status string to record on the node. Raises to stop the crawl.
        """
        pass


class FailOnStatusPolicy(StatusPolicy):
    """
    Policy that turns any non-"ok" status into a StatusError.

    A single locked client anywhere aborts the whole crawl. Useful when
    an incomplete tree is worse than no tree.
    """

    async def handle(self, call, response, rid, depth) -> str:
        raise StatusError(call.procedure, response.status, response.error, rid=rid)


class AnnotateStatusPolicy(StatusPolicy):
    """
    Policy that records the status on the node and continues.

    This is the default. The failing node keeps its id and kind, gets a
    ``status`` and no children; its siblings and ancestors are crawled
    normally.
    """

    def __init__(self, verbose: bool = True):
        """
        Args:
            verbose: If True, log a warning for every annotated status
        """
        self.verbose = verbose

    async def handle(self, call, response, rid, depth) -> str:
        if self.verbose:
            _log.warning(
                "resource_status_not_ok",
                procedure=call.procedure,
                status=response.status,
                rid=rid,
                depth=depth,
            )
        return response.status


class CollectStatusPolicy(AnnotateStatusPolicy):
    """
    Policy that annotates like AnnotateStatusPolicy and also keeps a record.

    Useful for reporting every inaccessible resource after the crawl.
    """

    def __init__(self, verbose: bool = False):
        super().__init__(verbose=verbose)
        self.records: List[Dict[str, Any]] = []

    async def handle(self, call, response, rid, depth) -> str:
        self.records.append({
            'rid': rid,
            'depth': depth,
            'procedure': call.procedure,
            'status': response.status,
            'error': response.error,
        })
        return await super().handle(call, response, rid, depth)

    def get_statistics(self) -> dict:
        """
        Get statistics about the statuses encountered.

        Returns:
            Dictionary with total count, counts per status and full records
        """
        by_status: Dict[str, int] = {}
        for record in self.records:
            by_status[record['status']] = by_status.get(record['status'], 0) + 1
        return {
            'total': len(self.records),
            'by_status': by_status,
            'records': self.records,
        }


class ThresholdStatusPolicy(AnnotateStatusPolicy):
    """
    Policy that tolerates statuses up to a threshold, then fails.

    A few locked clients are expected; many usually mean the credential
    is wrong for the tree being crawled.
    """

    def __init__(self, max_statuses: int = 10, verbose: bool = True):
        """
        Args:
            max_statuses: Maximum non-"ok" statuses to tolerate
            verbose: If True, log a warning for every annotated status
        """
        super().__init__(verbose=verbose)
        self.max_statuses = max_statuses
        self.status_count = 0

    async def handle(self, call, response, rid, depth) -> str:
        self.status_count += 1
        if self.status_count > self.max_statuses:
            raise StatusError(call.procedure, response.status, response.error, rid=rid)
        return await super().handle(call, response, rid, depth)
