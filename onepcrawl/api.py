"""High-level async API for onepcrawl.

This module provides simple entry points for the common operations:
crawling a tree with its info attached, and making raw calls.
"""

from typing import Any, List, Optional, Sequence, Union

from .augmenter import InfoAugmenter
from .config import BatchConfig, TraversalOptions
from .core import (
    AuthContext,
    CallGateway,
    CallResponse,
    PendingCall,
    ResourceNode,
    walk,
)
from .crawler import DEFAULT_MAX_CONCURRENT, TreeCrawler
from .error_policies import StatusPolicy
from .exceptions import TransportError
from .logging_config import get_logger

_log = get_logger("api")


async def crawl(
    gateway: CallGateway,
    auth: Union[str, AuthContext],
    options: Optional[TraversalOptions] = None,
    *,
    batch_config: Optional[BatchConfig] = None,
    status_policy: Optional[StatusPolicy] = None,
    max_concurrent: int = DEFAULT_MAX_CONCURRENT
) -> ResourceNode:
    """Crawl a resource tree and attach the requested info.

    Args:
        gateway: Gateway for all remote calls
        auth: Credential string or AuthContext; a scope_id makes that
            resource the root
        options: Depth limit, visit callback, info selector, kinds
        batch_config: Chunking of the deferred info calls
        status_policy: Handling of locked/forbidden resources
        max_concurrent: Sibling expansions in flight per crawl frame

    Returns:
        The complete tree. Resources that could not be listed carry a
        status; info that could not be fetched is an InfoFailure.

    Raises:
        OptionsError: Before any call, if options are malformed
        TransportError: If any request fails at the transport level

    Example:
        >>> options = TraversalOptions(max_depth=2, kind_filter=['dataport'])
        >>> tree = await crawl(gateway, cik, options)
    """
    auth = AuthContext.coerce(auth)
    crawler = TreeCrawler(
        gateway,
        options,
        status_policy=status_policy,
        max_concurrent=max_concurrent,
    )
    tree, deferred = await crawler.crawl(auth)
    _log.info("crawl_finished", root=tree.id, deferred_info=len(deferred))
    return await InfoAugmenter(gateway, batch_config).augment(auth, tree, deferred)


async def call_multi(
    gateway: CallGateway,
    auth: Union[str, AuthContext],
    calls: Sequence[Union[PendingCall, tuple]]
) -> List[Optional[CallResponse]]:
    """Send several calls in one request.

    Args:
        gateway: Gateway to send through
        auth: Credential string or AuthContext
        calls: PendingCall objects or (procedure, arguments) tuples

    Returns:
        One response per call, in order
    """
    pending = [c if isinstance(c, PendingCall) else PendingCall(*c) for c in calls]
    return await gateway.invoke(AuthContext.coerce(auth), pending)


async def call(
    gateway: CallGateway,
    auth: Union[str, AuthContext],
    procedure: str,
    arguments: Sequence[Any] = ()
) -> CallResponse:
    """Send a single call and return its response.

    Raises:
        TransportError: If the call fails or no response came back
    """
    responses = await call_multi(gateway, auth, [PendingCall(procedure, tuple(arguments))])
    if not responses or responses[0] is None:
        raise TransportError(f"No response for {procedure} call")
    return responses[0]


__all__ = ['crawl', 'call', 'call_multi', 'walk']
