"""Test fixtures for onepcrawl consumers.

FakeOnePlatform is an in-memory CallGateway that answers lookup,
listing and info calls from a resource table built in the test. It
records every request and the peak number of requests in flight, so
tests can check call counts and concurrency bounds without a server.
"""

import asyncio
import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from ..core import AuthContext, CallGateway, CallResponse, PendingCall, ResourceKind
from ..exceptions import TransportError


@dataclass
class FakeResource:
    """One resource held by FakeOnePlatform."""

    rid: str
    kind: ResourceKind
    parent: Optional[str] = None
    info: Dict[str, Any] = field(default_factory=dict)
    listing_status: str = "ok"
    info_status: str = "ok"
    children: List[str] = field(default_factory=list)


class FakeOnePlatform(CallGateway):
    """In-memory gateway emulating the resource hierarchy of the service.

    Example:
        platform = FakeOnePlatform()
        platform.add("c1", parent=platform.root_rid)
        platform.add("d1", kind="dataport", parent="c1")
        tree = await crawl(platform, "any-cik")
    """

    def __init__(
        self,
        root_rid: str = "root",
        latency: float = 0.0,
        listing_format: str = "list"
    ):
        """Initialize fake platform.

        Args:
            root_rid: rid of the client an unscoped credential points at
            latency: Seconds each request spends in flight
            listing_format: 'list' (one rid list per kind) or 'dict'
                (mapping kind -> rids) listing results
        """
        super().__init__()
        if listing_format not in ("list", "dict"):
            raise ValueError(f"Unknown listing format: {listing_format}")
        self.root_rid = root_rid
        self.latency = latency
        self.listing_format = listing_format
        self.resources: Dict[str, FakeResource] = {
            root_rid: FakeResource(root_rid, ResourceKind.CLIENT),
        }
        self.requests: List[Tuple[AuthContext, List[PendingCall]]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.missing_responses: Set[Tuple[str, str]] = set()
        self._transport_failures: List[Tuple[Optional[str], Optional[str]]] = []

    def add(
        self,
        rid: str,
        kind: Any = ResourceKind.CLIENT,
        parent: Optional[str] = None,
        info: Optional[Dict[str, Any]] = None,
        listing_status: str = "ok",
        info_status: str = "ok"
    ) -> FakeResource:
        """Add a resource under parent (the root client by default)."""
        parent = parent or self.root_rid
        if parent not in self.resources:
            raise KeyError(f"Unknown parent: {parent}")
        if not self.resources[parent].kind.is_container:
            raise ValueError(f"Parent {parent} cannot own resources")
        resource = FakeResource(
            rid,
            ResourceKind.parse(kind),
            parent=parent,
            info=info if info is not None else {"description": {"name": rid}},
            listing_status=listing_status,
            info_status=info_status,
        )
        self.resources[rid] = resource
        self.resources[parent].children.append(rid)
        return resource

    def fail_transport(self, scope: Optional[str] = None, procedure: Optional[str] = None) -> None:
        """Make matching requests raise TransportError.

        Args:
            scope: Only requests scoped to this rid (None matches any)
            procedure: Only requests containing this procedure (None matches any)
        """
        self._transport_failures.append((scope, procedure))

    def drop_response(self, procedure: str, rid: str) -> None:
        """Answer calls of procedure for rid with no response at all."""
        self.missing_responses.add((procedure, rid))

    def procedure_count(self, procedure: str) -> int:
        return sum(1 for _, calls in self.requests for c in calls if c.procedure == procedure)

    async def _invoke(
        self,
        auth: AuthContext,
        calls: List[PendingCall]
    ) -> List[Optional[CallResponse]]:
        self.requests.append((auth, calls))
        scope = auth.scope_id or self.root_rid

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.latency)
        finally:
            self.in_flight -= 1

        for fail_scope, fail_procedure in self._transport_failures:
            if fail_scope not in (None, scope):
                continue
            if fail_procedure is None or any(c.procedure == fail_procedure for c in calls):
                raise TransportError(f"Simulated transport failure for {scope}")

        return [self._answer(scope, call) for call in calls]

    def _answer(self, scope: str, call: PendingCall) -> Optional[CallResponse]:
        client = self.resources.get(scope)
        if client is None or not client.kind.is_container:
            return CallResponse("invalid", error={"message": f"no client {scope}"})

        if call.procedure == "lookup":
            return CallResponse("ok", scope)

        if call.procedure == "listing":
            if (call.procedure, scope) in self.missing_responses:
                return None
            if client.listing_status != "ok":
                return CallResponse(client.listing_status)
            kinds = call.arguments[0]
            grouped = {
                kind: [rid for rid in client.children if self.resources[rid].kind.value == kind]
                for kind in kinds
            }
            if self.listing_format == "dict":
                return CallResponse("ok", grouped)
            return CallResponse("ok", [grouped[kind] for kind in kinds])

        if call.procedure == "info":
            target = call.arguments[0]
            rid = scope if target == {"alias": ""} else target
            if (call.procedure, rid) in self.missing_responses:
                return None
            resource = self.resources.get(rid)
            if resource is None:
                return CallResponse("invalid")
            if resource.info_status != "ok":
                return CallResponse(resource.info_status)
            return CallResponse("ok", copy.deepcopy(resource.info))

        return CallResponse("error", error={"message": f"unknown procedure {call.procedure}"})
