"""onepcrawl - Resource tree crawler for One Platform style RPC services.

onepcrawl discovers the hierarchy of resources (clients and the dataports,
datarules and dispatches they own) behind a credential, one remote call
batch per client, and returns it as an immutable tree.

Quick start:
━━━━━━━━━━━━━━━━━━━━━━━━━━
    from onepcrawl import HttpCallGateway, TraversalOptions, crawl, render_tree

    async with HttpCallGateway() as gateway:
        tree = await crawl(gateway, cik, TraversalOptions(max_depth=2))
    print("\\n".join(render_tree(tree)))
━━━━━━━━━━━━━━━━━━━━━━━━━━
"""

__version__ = "0.1.0"

# Core abstractions
from .core import (
    ResourceKind,
    ResourceNode,
    AuthContext,
    PendingCall,
    CallResponse,
    DeferredInfoRequest,
    InfoFailure,
    CallGateway,
    iter_tree,
    walk,
    walk_by_level,
    count_nodes,
    render_tree,
)

# Configuration
from .config import (
    TraversalOptions,
    BatchConfig,
    GatewayConfig,
    load_gateway_config,
)

# Errors and status policies
from .exceptions import (
    OnepCrawlError,
    TransportError,
    StatusError,
    OptionsError,
)
from .error_policies import (
    StatusPolicy,
    AnnotateStatusPolicy,
    FailOnStatusPolicy,
    CollectStatusPolicy,
    ThresholdStatusPolicy,
)

# Engine
from .batcher import batch
from .crawler import TreeCrawler, CrawlResult, crawl_tree
from .augmenter import InfoAugmenter, augment

# Gateways
from .adapters import HttpCallGateway

# High-level API
from .api import crawl, call, call_multi

__all__ = [
    "__version__",
    # Core abstractions
    "ResourceKind",
    "ResourceNode",
    "AuthContext",
    "PendingCall",
    "CallResponse",
    "DeferredInfoRequest",
    "InfoFailure",
    "CallGateway",
    # Walker
    "iter_tree",
    "walk",
    "walk_by_level",
    "count_nodes",
    "render_tree",
    # Configuration
    "TraversalOptions",
    "BatchConfig",
    "GatewayConfig",
    "load_gateway_config",
    # Errors
    "OnepCrawlError",
    "TransportError",
    "StatusError",
    "OptionsError",
    # Status policies
    "StatusPolicy",
    "AnnotateStatusPolicy",
    "FailOnStatusPolicy",
    "CollectStatusPolicy",
    "ThresholdStatusPolicy",
    # Engine
    "batch",
    "TreeCrawler",
    "CrawlResult",
    "crawl_tree",
    "InfoAugmenter",
    "augment",
    # Gateways
    "HttpCallGateway",
    # High-level API
    "crawl",
    "call",
    "call_multi",
]
