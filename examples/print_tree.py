#!/usr/bin/env python3
"""
Print the resource tree behind a credential.

This example demonstrates:
- Fetching info for the root client with a single call
- Crawling two levels of clients and their dataports/datarules/dispatches
- Reporting every resource as it is discovered
- Rendering the finished tree, including locked clients

Usage:
    python examples/print_tree.py <cik> [--https] [--depth N]
"""

import argparse
import asyncio
import json
import sys

from onepcrawl import (
    HttpCallGateway,
    OnepCrawlError,
    TraversalOptions,
    call,
    crawl,
    load_gateway_config,
    render_tree,
)
from onepcrawl.logging_config import setup_logging


def report(rid, kind, depth):
    print(f"Visiting {rid} ({kind.value}) depth:{depth}")


async def main(args) -> int:
    config = load_gateway_config()
    if args.https:
        config.https = True

    options = TraversalOptions(
        max_depth=args.depth,
        visit=report,
        kind_filter=["dataport", "datarule", "dispatch"],
    )

    async with HttpCallGateway(config) as gateway:
        try:
            # Info about the client itself
            response = await call(gateway, args.cik, "info", [{"alias": ""}, {}])
            if response.ok:
                print(json.dumps(response.result))
            else:
                print(f"Unexpected status: {response.status}")

            tree = await crawl(gateway, args.cik, options)
        except OnepCrawlError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1

    print("\n".join(render_tree(tree)))
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Print the resource tree for a CIK")
    parser.add_argument("cik", help="Client interface key")
    parser.add_argument("--https", action="store_true", help="Use HTTPS")
    parser.add_argument("--depth", type=int, default=2, help="Maximum depth (default 2)")
    parser.add_argument("--log-level", default="warning", help="Log level (default warning)")
    args = parser.parse_args()

    setup_logging(args.log_level)
    sys.exit(asyncio.run(main(args)))
