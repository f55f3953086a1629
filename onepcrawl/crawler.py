"""Recursive, depth-limited expansion of the resource hierarchy.

Each client is expanded by one frame. A frame sends a single multi-call
request (identity lookup, listing and piggy-backed info, whichever
apply), builds its node from the responses, and recurses into its client
children with bounded concurrency. Info for nodes that could not
piggy-back is collected into one deferred list shared by every frame,
so that it can be resolved in a single batched pass afterwards.
"""

import asyncio
import inspect
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

from .config import TraversalOptions
from .core import (
    AuthContext,
    CallGateway,
    CallResponse,
    DeferredInfoRequest,
    PendingCall,
    ResourceKind,
    ResourceNode,
    info_from_response,
)
from .error_policies import AnnotateStatusPolicy, StatusPolicy
from .exceptions import StatusError, TransportError
from .logging_config import get_logger

_log = get_logger("crawler")

# Resolves the rid of the client the auth context points at
LOOKUP_SELF = PendingCall("lookup", ("alias", ""))

# Sibling expansions in flight per frame
DEFAULT_MAX_CONCURRENT = 10


class CrawlResult(NamedTuple):
    """Tree skeleton plus the info requests still to be resolved."""

    tree: ResourceNode
    deferred: List[DeferredInfoRequest]


class TreeCrawler:
    """Expands a resource tree through a CallGateway.

    Failures of a single resource's lookup or listing are handed to the
    status policy (by default recorded on the node); transport failures
    abort the crawl.
    """

    def __init__(
        self,
        gateway: CallGateway,
        options: Optional[TraversalOptions] = None,
        status_policy: Optional[StatusPolicy] = None,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT
    ):
        """Initialize crawler.

        Args:
            gateway: Gateway used for every remote call
            options: What to crawl; validated and normalized here, so
                malformed options fail before any call is made
            status_policy: Handling of non-"ok" lookup/listing statuses
            max_concurrent: Maximum sibling expansions in flight per frame
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.gateway = gateway
        self.options = (options or TraversalOptions()).normalized()
        self.status_policy = status_policy or AnnotateStatusPolicy()
        self.max_concurrent = max_concurrent

    async def crawl(self, auth: AuthContext) -> CrawlResult:
        """Crawl from the client the auth context points at.

        If auth.scope_id is set the root rid is known up front; otherwise
        it is resolved with a lookup call.

        Returns:
            CrawlResult with the tree and the deferred info requests

        Raises:
            TransportError: If any request fails at the transport level
            StatusError: If the root cannot be identified, or the status
                policy decides to abort
        """
        auth = AuthContext.coerce(auth)
        deferred: List[DeferredInfoRequest] = []
        tree = await self._expand(auth, 0, auth.scope_id, deferred)
        _log.debug("crawl_complete", root=tree.id, deferred=len(deferred))
        return CrawlResult(tree, deferred)

    async def _expand(
        self,
        auth: AuthContext,
        depth: int,
        rid: Optional[str],
        deferred: List[DeferredInfoRequest]
    ) -> ResourceNode:
        """Expand one client and, recursively, its client children."""
        if depth == 0 and rid is not None:
            await self._visit(rid, ResourceKind.CLIENT, depth)

        expand = self.options.should_expand(depth)

        # Depth limit reached with a known identity: nothing to ask for
        if rid is not None and not expand:
            self._queue_info(rid, ResourceKind.CLIENT, depth, deferred)
            return ResourceNode(rid, ResourceKind.CLIENT)

        calls: List[PendingCall] = []
        lookup_index = listing_index = info_index = None

        if rid is None:
            lookup_index = len(calls)
            calls.append(LOOKUP_SELF)

        if expand:
            listing_index = len(calls)
            kinds = [kind.value for kind in self.options.kind_filter]
            calls.append(PendingCall("listing", (kinds, {})))

        if rid is not None:
            query = self.options.info_query(rid, ResourceKind.CLIENT, depth)
            if query is not None:
                info_index = len(calls)
                calls.append(PendingCall("info", ({"alias": ""}, query)))

        _log.debug("frame_request", rid=rid, depth=depth, calls=[c.procedure for c in calls])
        responses = await self.gateway.invoke(auth, calls)
        if len(responses) != len(calls):
            raise TransportError(
                f"Gateway returned {len(responses)} responses for {len(calls)} calls"
            )

        info = None
        if lookup_index is not None:
            lookup = self._require(responses, lookup_index, calls)
            if not lookup.ok:
                # Without an identity there is no node to annotate
                raise StatusError(LOOKUP_SELF.procedure, lookup.status, lookup.error)
            rid = lookup.result
            await self._visit(rid, ResourceKind.CLIENT, depth)
            self._queue_info(rid, ResourceKind.CLIENT, depth, deferred)
            if not expand:
                return ResourceNode(rid, ResourceKind.CLIENT)

        if info_index is not None:
            info = info_from_response(responses[info_index])

        listing = self._require(responses, listing_index, calls)
        if not listing.ok:
            status = await self.status_policy.handle(calls[listing_index], listing, rid, depth)
            return ResourceNode(rid, ResourceKind.CLIENT, info=info, status=status)

        found = self._parse_listing(listing.result)
        if not found:
            return ResourceNode(rid, ResourceKind.CLIENT, info=info)

        for child_rid, kind in found:
            await self._visit(child_rid, kind, depth + 1)
            if not kind.is_container:
                self._queue_info(child_rid, kind, depth + 1, deferred)

        children = await self._expand_children(auth, found, depth + 1, deferred)
        return ResourceNode(rid, ResourceKind.CLIENT, children=children, info=info)

    async def _expand_children(
        self,
        auth: AuthContext,
        found: Sequence[Tuple[str, ResourceKind]],
        depth: int,
        deferred: List[DeferredInfoRequest]
    ) -> List[ResourceNode]:
        """Build child nodes, expanding clients in parallel.

        Results come back in listing order regardless of completion order.
        """
        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def build(child_rid: str, kind: ResourceKind) -> ResourceNode:
            if not kind.is_container:
                return ResourceNode(child_rid, kind)
            async with semaphore:
                return await self._expand(auth.scoped(child_rid), depth, child_rid, deferred)

        tasks = [asyncio.ensure_future(build(child_rid, kind)) for child_rid, kind in found]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            # Stop sibling work still pending; the error goes to our parent
            for task in tasks:
                task.cancel()
            raise

    def _parse_listing(self, result: Any) -> List[Tuple[str, ResourceKind]]:
        """Flatten a listing result into (rid, kind) pairs, clients first.

        The service answers either with one rid list per requested kind,
        in request order, or with a mapping from kind tag to rid list.
        A kind missing from the mapping (or from the end of the list)
        has no resources.

        Raises:
            TransportError: If the result or any rid group has another shape
        """
        kinds = self.options.kind_filter
        if isinstance(result, dict):
            groups = [result.get(kind.value, []) for kind in kinds]
        elif isinstance(result, list):
            if len(result) > len(kinds):
                raise TransportError(
                    f"Listing returned {len(result)} groups for {len(kinds)} kinds"
                )
            groups = list(result) + [[]] * (len(kinds) - len(result))
        else:
            raise TransportError(f"Malformed listing result: {result!r}")

        found = []
        for kind, rids in zip(kinds, groups):
            if not isinstance(rids, list) or not all(isinstance(r, str) for r in rids):
                raise TransportError(f"Malformed {kind.value} listing: {rids!r}")
            found.extend((child_rid, kind) for child_rid in rids)
        return found

    def _queue_info(
        self,
        rid: str,
        kind: ResourceKind,
        depth: int,
        deferred: List[DeferredInfoRequest]
    ) -> None:
        query = self.options.info_query(rid, kind, depth)
        if query is not None:
            deferred.append(DeferredInfoRequest(rid, query))

    async def _visit(self, rid: str, kind: ResourceKind, depth: int) -> None:
        if self.options.visit is None:
            return
        result = self.options.visit(rid, kind, depth)
        if inspect.isawaitable(result):
            await result

    @staticmethod
    def _require(
        responses: List[Optional[CallResponse]],
        index: int,
        calls: List[PendingCall]
    ) -> CallResponse:
        response = responses[index]
        if response is None:
            raise TransportError(f"No response for {calls[index].procedure} call")
        return response


async def crawl_tree(
    gateway: CallGateway,
    auth: AuthContext,
    options: Optional[TraversalOptions] = None,
    **kwargs
) -> CrawlResult:
    """Convenience wrapper: TreeCrawler(gateway, options, **kwargs).crawl(auth)."""
    return await TreeCrawler(gateway, options, **kwargs).crawl(auth)
