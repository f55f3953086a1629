"""Call gateway abstraction.

Defines how remote procedure calls reach the service. The crawler,
batcher and augmenter only depend on this interface; transport and
framing live in concrete gateways (see adapters.http).
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from .node import AuthContext, CallResponse, PendingCall


class CallGateway(ABC):
    """Abstract base class for call gateways.

    A gateway executes an ordered list of calls under one auth context
    and returns one response per call, in the same order. Whether the
    calls travel in one physical request or several is up to the gateway.
    """

    def __init__(self):
        self.invocations = 0
        self.calls_sent = 0

    async def invoke(
        self,
        auth: AuthContext,
        calls: Sequence[PendingCall]
    ) -> List[Optional[CallResponse]]:
        """Execute calls and return their responses in input order.

        Args:
            auth: Credential and optional scope for every call
            calls: Calls to execute

        Returns:
            One entry per call; None where the service sent no response

        Raises:
            TransportError: If the request could not be completed
        """
        self.invocations += 1
        self.calls_sent += len(calls)
        return await self._invoke(auth, list(calls))

    @abstractmethod
    async def _invoke(
        self,
        auth: AuthContext,
        calls: List[PendingCall]
    ) -> List[Optional[CallResponse]]:
        """Gateway-specific execution of invoke()."""
        pass

    def get_stats(self) -> dict:
        """Get gateway statistics.

        Returns:
            Dictionary with request and call counters
        """
        return {
            'invocations': self.invocations,
            'calls_sent': self.calls_sent,
        }

    async def close(self):
        """Clean up gateway resources.

        Override if the gateway holds connections.
        """
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
