"""Tests for attaching deferred info to a crawled tree."""

from unittest.mock import AsyncMock, Mock

import pytest

from onepcrawl import (
    AuthContext,
    BatchConfig,
    CallGateway,
    CallResponse,
    DeferredInfoRequest,
    InfoAugmenter,
    InfoFailure,
    ResourceKind,
    ResourceNode,
    TransportError,
    TraversalOptions,
    TreeCrawler,
    augment,
    iter_tree,
)


AUTH = AuthContext("cik")


def leaf_tree(*rids):
    """Root client with one dataport per rid."""
    return ResourceNode(
        "root",
        ResourceKind.CLIENT,
        children=[ResourceNode(rid, ResourceKind.DATAPORT) for rid in rids],
    )


def info_of(tree):
    return {node.id: node.info for node, _, _ in iter_tree(tree)}


class TestNoOp:

    @pytest.mark.asyncio
    async def test_no_requests_no_calls(self, sample_platform):
        tree = leaf_tree("p0")
        result = await InfoAugmenter(sample_platform).augment(AUTH, tree, [])
        assert result is tree
        assert sample_platform.invocations == 0

    @pytest.mark.asyncio
    async def test_crawl_without_selector_makes_no_info_calls(self, sample_platform):
        options = TraversalOptions(kind_filter=["dataport"])
        result = await TreeCrawler(sample_platform, options).crawl("cik")
        before = sample_platform.invocations
        augmented = await augment(sample_platform, AUTH, result.tree, result.deferred)
        assert augmented is result.tree
        assert sample_platform.invocations == before


class TestAttach:

    @pytest.mark.asyncio
    async def test_info_attached_by_rid(self, sample_platform):
        options = TraversalOptions(kind_filter=["dataport"], info_selector={"description": True})
        result = await TreeCrawler(sample_platform, options).crawl("cik")
        tree = await InfoAugmenter(sample_platform).augment(AUTH, result.tree, result.deferred)

        info = info_of(tree)
        assert info["root"] == {"description": {"name": "root"}}
        assert info["p0"] == {"description": {"name": "p0"}}
        assert info["p1a"] == {"description": {"name": "p1a"}}
        # Piggy-backed during the crawl
        assert info["c1"] == {"description": {"name": "c1"}}

    @pytest.mark.asyncio
    async def test_original_tree_left_untouched(self, sample_platform):
        tree = leaf_tree("p0")
        augmented = await augment(sample_platform, AUTH, tree, [DeferredInfoRequest("p0", {})])
        assert tree.children[0].info is None
        assert augmented.children[0].info == {"description": {"name": "p0"}}
        assert augmented.to_dict()["children"][0]["id"] == "p0"

    @pytest.mark.asyncio
    async def test_requests_are_chunked(self, platform):
        rids = [f"p{i}" for i in range(7)]
        for rid in rids:
            platform.add(rid, kind="dataport")
        requests = [DeferredInfoRequest(rid, {}) for rid in rids]
        tree = await InfoAugmenter(platform, BatchConfig(chunk_size=3)).augment(
            AUTH, leaf_tree(*rids), requests
        )
        assert platform.invocations == 3
        assert all(info_of(tree)[rid] is not None for rid in rids)

    @pytest.mark.asyncio
    async def test_last_request_for_rid_wins(self):
        gateway = Mock(spec=CallGateway)
        gateway.invoke = AsyncMock(return_value=[
            CallResponse("ok", {"v": 1}),
            CallResponse("ok", {"v": 2}),
        ])
        requests = [DeferredInfoRequest("p0", {"a": 1}), DeferredInfoRequest("p0", {"b": 1})]
        tree = await InfoAugmenter(gateway).augment(AUTH, leaf_tree("p0"), requests)
        assert info_of(tree)["p0"] == {"v": 2}


class TestFailures:

    @pytest.mark.asyncio
    async def test_non_ok_status_becomes_info_failure(self, platform):
        platform.add("p0", kind="dataport")
        platform.add("secret", kind="dataport", info_status="restricted")
        requests = [DeferredInfoRequest("secret", {}), DeferredInfoRequest("p0", {})]
        tree = await augment(platform, AUTH, leaf_tree("p0", "secret"), requests)

        info = info_of(tree)
        assert info["secret"] == InfoFailure("restricted")
        assert info["p0"] == {"description": {"name": "p0"}}
        assert tree.children[1].to_dict()["info"] == {
            "error": {"status": "restricted", "detail": None}
        }

    @pytest.mark.asyncio
    async def test_missing_response_becomes_info_failure(self, platform):
        platform.add("p0", kind="dataport")
        platform.drop_response("info", "p0")
        tree = await augment(platform, AUTH, leaf_tree("p0"), [DeferredInfoRequest("p0", {})])
        assert info_of(tree)["p0"] == InfoFailure("missing")

    @pytest.mark.asyncio
    async def test_null_result_distinct_from_no_info(self):
        gateway = Mock(spec=CallGateway)
        gateway.invoke = AsyncMock(return_value=[CallResponse("ok", None)])
        tree = await InfoAugmenter(gateway).augment(
            AUTH, leaf_tree("p0", "p1"), [DeferredInfoRequest("p0", {})]
        )
        assert info_of(tree)["p0"] == InfoFailure("empty")
        assert info_of(tree)["p1"] is None
        assert tree.children[0].to_dict()["info"] == {"error": {"status": "empty", "detail": None}}
        assert "info" not in tree.children[1].to_dict()

    @pytest.mark.asyncio
    async def test_transport_failure_aborts(self, platform):
        platform.add("p0", kind="dataport")
        platform.fail_transport(procedure="info")
        with pytest.raises(TransportError):
            await augment(platform, AUTH, leaf_tree("p0"), [DeferredInfoRequest("p0", {})])
