"""Core abstractions for resource crawling.

This module defines the resource tree data model, the gateway interface
the crawler talks through, and the utilities for walking a built tree.
"""

from .node import (
    ResourceKind,
    ResourceNode,
    AuthContext,
    PendingCall,
    CallResponse,
    DeferredInfoRequest,
    InfoFailure,
    info_from_response,
)
from .gateway import CallGateway
from .walker import (
    iter_tree,
    walk,
    walk_by_level,
    count_nodes,
    render_tree,
)

__all__ = [
    # Data model
    'ResourceKind',
    'ResourceNode',
    'AuthContext',
    'PendingCall',
    'CallResponse',
    'DeferredInfoRequest',
    'InfoFailure',
    'info_from_response',
    # Gateway
    'CallGateway',
    # Walker
    'iter_tree',
    'walk',
    'walk_by_level',
    'count_nodes',
    'render_tree',
]
