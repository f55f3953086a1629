"""Configuration system for onepcrawl.

This module defines how callers specify what to crawl (TraversalOptions),
how deferred info calls are batched (BatchConfig), and where the remote
service lives (GatewayConfig).
"""

import os
from dataclasses import dataclass, field, replace
from typing import Any, Callable, List, Optional, Sequence, Union

from .exceptions import OptionsError
from .core.node import ResourceKind


# Callback signature: visit(rid, kind, depth). May return an awaitable.
VisitCallback = Callable[[str, ResourceKind, int], Any]

# Either a static info query or a function (rid, kind, depth) -> query or None.
InfoSelector = Union[dict, Callable[[str, ResourceKind, int], Optional[Any]]]


@dataclass
class TraversalOptions:
    """What a crawl should discover.

    Attributes:
        max_depth: Stop expanding at this depth (root is 0). None = unlimited.
        visit: Called once per node as soon as its identity is known.
        info_selector: Static info query, or a per-node function returning
            a query or None. None means no info is requested.
        kind_filter: Kinds to list besides clients. Clients are always
            listed first, whether or not they appear here.
    """

    max_depth: Optional[int] = None
    visit: Optional[VisitCallback] = None
    info_selector: Optional[InfoSelector] = None
    kind_filter: Sequence[Union[str, ResourceKind]] = field(default_factory=tuple)

    def validate(self) -> List[str]:
        """Validate the options.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if self.max_depth is not None:
            if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int):
                errors.append("max_depth must be an integer")
            elif self.max_depth < 0:
                errors.append("max_depth must be non-negative")

        if self.visit is not None and not callable(self.visit):
            errors.append("visit must be callable")

        if isinstance(self.kind_filter, (str, ResourceKind)):
            errors.append("kind_filter must be a collection of kinds, not a single kind")
        else:
            for kind in self.kind_filter:
                try:
                    ResourceKind.parse(kind)
                except OptionsError as e:
                    errors.append(str(e))

        return errors

    def normalized(self) -> "TraversalOptions":
        """Return a validated copy with kind_filter as a tuple, client first.

        The original object is left untouched.

        Raises:
            OptionsError: If validate() reports any problem
        """
        errors = self.validate()
        if errors:
            raise OptionsError(f"Invalid traversal options: {', '.join(errors)}")

        kinds = [ResourceKind.CLIENT]
        for kind in self.kind_filter:
            parsed = ResourceKind.parse(kind)
            if parsed not in kinds:
                kinds.append(parsed)

        return replace(self, kind_filter=tuple(kinds))

    def info_query(self, rid: str, kind: ResourceKind, depth: int) -> Optional[Any]:
        """Resolve the info query for one node, or None for no info."""
        if self.info_selector is None:
            return None
        if callable(self.info_selector):
            return self.info_selector(rid, kind, depth)
        return self.info_selector

    def should_expand(self, depth: int) -> bool:
        """Check if a container at this depth may be listed."""
        return self.max_depth is None or depth < self.max_depth


@dataclass
class BatchConfig:
    """How deferred calls are grouped and dispatched.

    The parallel limit here is independent of the crawler's sibling
    fan-out limit; the two are not coordinated.
    """

    chunk_size: int = 5
    parallel_limit: int = 10

    def validate(self) -> List[str]:
        errors = []
        if self.chunk_size < 1:
            errors.append("chunk_size must be at least 1")
        if self.parallel_limit < 1:
            errors.append("parallel_limit must be at least 1")
        return errors


@dataclass
class GatewayConfig:
    """Where and how to reach the RPC endpoint."""

    host: str = "m2.exosite.com"
    path: str = "/api:v1/rpc/process"
    agent: str = "onepcrawl"
    https: bool = False
    port: Optional[int] = None
    timeout: float = 30.0

    @property
    def base_url(self) -> str:
        scheme = "https" if self.https else "http"
        port = self.port if self.port is not None else (443 if self.https else 80)
        return f"{scheme}://{self.host}:{port}{self.path}"

    def validate(self) -> List[str]:
        errors = []
        if not self.host:
            errors.append("host must not be empty")
        if not self.path.startswith("/"):
            errors.append("path must start with '/'")
        if self.port is not None and not 0 < self.port < 65536:
            errors.append("port must be between 1 and 65535")
        if self.timeout <= 0:
            errors.append("timeout must be positive")
        return errors


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"ONEPCRAWL_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def load_gateway_config() -> GatewayConfig:
    """Load gateway configuration from ONEPCRAWL_* environment variables."""
    defaults = GatewayConfig()
    port = _env("PORT")
    config = GatewayConfig(
        host=_env("HOST", defaults.host),
        path=_env("PATH", defaults.path),
        agent=_env("AGENT", defaults.agent),
        https=_env_bool("HTTPS", defaults.https),
        port=int(port) if port else None,
        timeout=float(_env("TIMEOUT", str(defaults.timeout))),
    )
    errors = config.validate()
    if errors:
        raise ValueError(f"Invalid gateway configuration: {', '.join(errors)}")
    return config
