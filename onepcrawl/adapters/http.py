"""JSON-RPC over HTTP(S) gateway.

Sends every invoke() as one POST whose body carries the auth context and
the numbered calls, and matches the response list back to the calls by
id. Uses httpx so a caller can share an AsyncClient (connection pooling)
or inject one with a mock transport.
"""

import json
from typing import List, Optional

import httpx

from ..config import GatewayConfig
from ..core import AuthContext, CallGateway, CallResponse, PendingCall
from ..exceptions import TransportError
from ..logging_config import get_logger

_log = get_logger("adapters.http")

class HttpCallGateway(CallGateway):
    """Gateway that talks to the RPC endpoint over HTTP.

    Args:
        config: Endpoint and timeout settings (defaults to GatewayConfig())
        client: Optional shared AsyncClient. A client passed in is not
            closed by close(); one created here is.
    """

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__()
        self.config = config or GatewayConfig()
        errors = self.config.validate()
        if errors:
            raise ValueError(f"Invalid gateway configuration: {', '.join(errors)}")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.config.timeout)

    def build_body(self, auth: AuthContext, calls: List[PendingCall]) -> dict:
        """Build the JSON request body for one invoke()."""
        return {
            "auth": auth.to_wire(),
            "calls": [call.to_wire(i) for i, call in enumerate(calls)],
        }

    async def _invoke(
        self,
        auth: AuthContext,
        calls: List[PendingCall]
    ) -> List[Optional[CallResponse]]:
        headers = {
            "content-type": "application/json; charset=utf-8",
            "user-agent": self.config.agent,
        }
        try:
            response = await self._client.post(
                self.config.base_url,
                content=json.dumps(self.build_body(auth, calls)),
                headers=headers,
            )
        except httpx.TimeoutException as e:
            _log.warning("rpc_request_timeout", url=self.config.base_url)
            raise TransportError(f"Request timed out: {e}") from e
        except httpx.HTTPError as e:
            _log.warning("rpc_http_error", url=self.config.base_url, error=str(e))
            raise TransportError(str(e)) from e

        if not response.is_success:
            raise TransportError(f"HTTP {response.status_code}: {response.text[:200]}")

        return self.parse_body(response.text, len(calls))

    @staticmethod
    def parse_body(body: str, call_count: int) -> List[Optional[CallResponse]]:
        """Match a response body back to the calls that produced it.

        Args:
            body: Raw response text
            call_count: Number of calls in the request

        Returns:
            One entry per call; None for ids the server did not answer

        Raises:
            TransportError: If the body is empty, not JSON, or a
                request-level error object instead of a response list
        """
        if not body:
            raise TransportError("Empty response body")
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise TransportError(f"Response is not JSON: {e}") from e

        if not isinstance(payload, list):
            error = payload.get("error") if isinstance(payload, dict) else payload
            raise TransportError(f"General RPC error: {json.dumps(error)}")

        responses: List[Optional[CallResponse]] = [None] * call_count
        for item in payload:
            call_id = item.get("id") if isinstance(item, dict) else None
            if not isinstance(call_id, int) or not 0 <= call_id < call_count:
                raise TransportError(f"Response with unknown call id: {item!r}")
            responses[call_id] = CallResponse.from_wire(item)
        return responses

    async def close(self):
        if self._owns_client:
            await self._client.aclose()
