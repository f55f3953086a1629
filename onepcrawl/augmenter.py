"""Resolution of deferred info requests after the tree is known.

All requests queued during the crawl are sent through the batcher in
one pass and the results are attached to the matching nodes by rid.
"""

from typing import Any, Dict, Optional, Sequence

from .batcher import batch
from .config import BatchConfig
from .core import (
    AuthContext,
    CallGateway,
    DeferredInfoRequest,
    InfoFailure,
    ResourceNode,
    info_from_response,
)
from .logging_config import get_logger

_log = get_logger("augmenter")


class InfoAugmenter:
    """Attaches info to a crawled tree.

    Failed or missing info responses become InfoFailure placeholders on
    the affected nodes; only transport failures abort augmentation.
    """

    def __init__(self, gateway: CallGateway, config: Optional[BatchConfig] = None):
        self.gateway = gateway
        self.config = config or BatchConfig()

    async def augment(
        self,
        auth: AuthContext,
        tree: ResourceNode,
        requests: Sequence[DeferredInfoRequest]
    ) -> ResourceNode:
        """Resolve requests and return the tree with info attached.

        Args:
            auth: Auth context used for the info calls
            tree: Tree produced by the crawler
            requests: Deferred info requests from the same crawl

        Returns:
            The same tree object if there is nothing to resolve, otherwise
            a new tree with info set on every requested node

        Raises:
            TransportError: If a batch request fails at the transport level
        """
        if not requests:
            return tree

        auth = AuthContext.coerce(auth)
        calls = [request.to_call() for request in requests]
        responses = await batch(self.gateway, auth, calls, self.config)

        # Later requests for the same rid win
        info_by_id: Dict[str, Any] = {}
        failures = 0
        for request, response in zip(requests, responses):
            info = info_from_response(response)
            if isinstance(info, InfoFailure):
                failures += 1
                _log.warning("info_call_failed", rid=request.target_id, status=info.status)
            info_by_id[request.target_id] = info

        _log.debug("augment_complete", requests=len(requests), failures=failures)
        return self._attach(tree, info_by_id)

    def _attach(self, node: ResourceNode, info_by_id: Dict[str, Any]) -> ResourceNode:
        """Rebuild node and its subtree with info from info_by_id."""
        if node.children:
            children = [self._attach(child, info_by_id) for child in node.children]
            node = node.with_children(children)
        if node.id in info_by_id:
            node = node.with_info(info_by_id[node.id])
        return node


async def augment(
    gateway: CallGateway,
    auth: AuthContext,
    tree: ResourceNode,
    requests: Sequence[DeferredInfoRequest],
    config: Optional[BatchConfig] = None
) -> ResourceNode:
    """Convenience wrapper around InfoAugmenter.augment()."""
    return await InfoAugmenter(gateway, config).augment(auth, tree, requests)
