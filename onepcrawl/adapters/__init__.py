"""Call gateways for concrete transports.

This module contains gateways that carry calls to a One Platform
style RPC endpoint.
"""

from .http import HttpCallGateway

__all__ = [
    'HttpCallGateway',
]
