"""Resource tree data model.

Nodes are immutable: each crawl frame builds its node by value and hands
it to its parent, and the info augmenter produces a new tree instead of
editing the crawled one.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from ..exceptions import OptionsError


class ResourceKind(Enum):
    """Kinds of resource the service can list.

    CLIENT is the only container kind: it owns further resources and is
    the only kind the crawler recurses into. The others are leaves.
    """

    CLIENT = "client"
    DATAPORT = "dataport"
    DATARULE = "datarule"
    DISPATCH = "dispatch"

    @property
    def is_container(self) -> bool:
        return self is ResourceKind.CLIENT

    @classmethod
    def parse(cls, value: Union[str, "ResourceKind"]) -> "ResourceKind":
        """Convert a kind tag to a ResourceKind.

        Raises:
            OptionsError: If the tag is not a known kind
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            known = ", ".join(kind.value for kind in cls)
            raise OptionsError(f"Unsupported resource kind {value!r} (expected one of: {known})") from None


@dataclass(frozen=True)
class InfoFailure:
    """Placeholder stored as a node's info when its info call failed.

    status is the service's status string, 'missing' when no
    response came back for the call, or 'empty' when the call succeeded
    with a null result. A node's info is None only when no info was
    requested for it.
    """

    status: str
    detail: Any = None


@dataclass(frozen=True)
class ResourceNode:
    """One resource in the crawled tree.

    Attributes:
        id: Opaque resource identifier (rid)
        kind: Resource kind
        children: Non-empty tuple of child nodes, or None when the node was
            not expanded, had nothing to list, or failed to list
        info: Info payload (or InfoFailure) when info was requested
        status: Status of this node's own failed listing, if it failed
    """

    id: str
    kind: ResourceKind
    children: Optional[Tuple["ResourceNode", ...]] = None
    info: Any = None
    status: Optional[str] = None

    def __post_init__(self):
        if self.children is not None:
            object.__setattr__(self, "children", tuple(self.children) or None)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def with_children(self, children) -> "ResourceNode":
        return replace(self, children=tuple(children))

    def with_info(self, info: Any) -> "ResourceNode":
        return replace(self, info=info)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to plain JSON-ready data, omitting absent fields."""
        data: Dict[str, Any] = {"id": self.id, "kind": self.kind.value}
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        if self.info is not None:
            if isinstance(self.info, InfoFailure):
                data["info"] = {"error": {"status": self.info.status, "detail": self.info.detail}}
            else:
                data["info"] = self.info
        if self.status is not None:
            data["status"] = self.status
        return data


@dataclass(frozen=True)
class AuthContext:
    """Credential plus an optional resource the calls are scoped to."""

    credential: str
    scope_id: Optional[str] = None

    @classmethod
    def coerce(cls, auth: Union[str, "AuthContext"]) -> "AuthContext":
        if isinstance(auth, cls):
            return auth
        return cls(credential=auth)

    def scoped(self, rid: str) -> "AuthContext":
        return replace(self, scope_id=rid)

    def to_wire(self) -> Dict[str, str]:
        wire = {"cik": self.credential}
        if self.scope_id is not None:
            wire["client_id"] = self.scope_id
        return wire

    def __repr__(self) -> str:
        # Keep credentials out of logs and tracebacks
        return f"AuthContext(credential='***', scope_id={self.scope_id!r})"


@dataclass(frozen=True)
class PendingCall:
    """A named remote procedure invocation waiting to be sent."""

    procedure: str
    arguments: Tuple[Any, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "arguments", tuple(self.arguments))

    def to_wire(self, call_id: int) -> Dict[str, Any]:
        return {"id": call_id, "procedure": self.procedure, "arguments": list(self.arguments)}


@dataclass(frozen=True)
class CallResponse:
    """Outcome of a single call within a request."""

    status: str
    result: Any = None
    error: Any = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "CallResponse":
        return cls(
            status=data.get("status", "error"),
            result=data.get("result"),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class DeferredInfoRequest:
    """An info query discovered during the crawl, resolved afterwards."""

    target_id: str
    query: Any

    def to_call(self) -> PendingCall:
        return PendingCall("info", (self.target_id, self.query))


def info_from_response(response: Optional[CallResponse]) -> Any:
    """Return an info call's result, or an InfoFailure if it has none."""
    if response is None:
        return InfoFailure("missing")
    if not response.ok:
        return InfoFailure(response.status, response.error)
    if response.result is None:
        return InfoFailure("empty")
    return response.result
