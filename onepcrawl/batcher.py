"""Chunked, bounded-parallel dispatch of many calls.

The batcher splits a call list into fixed-size chunks, sends each chunk
as one gateway request with at most ``parallel_limit`` requests in
flight, and reassembles the responses in input order.
"""

import asyncio
from typing import List, Optional, Sequence

from .config import BatchConfig
from .core import AuthContext, CallGateway, CallResponse, PendingCall
from .exceptions import TransportError
from .logging_config import get_logger

_log = get_logger("batcher")


def chunk_calls(calls: Sequence[PendingCall], chunk_size: int) -> List[List[PendingCall]]:
    """Split calls into consecutive chunks of at most chunk_size."""
    return [list(calls[i:i + chunk_size]) for i in range(0, len(calls), chunk_size)]


async def batch(
    gateway: CallGateway,
    auth: AuthContext,
    calls: Sequence[PendingCall],
    config: Optional[BatchConfig] = None
) -> List[Optional[CallResponse]]:
    """Execute calls in chunks with bounded parallelism.

    Non-"ok" statuses are not errors here; they are returned as the
    corresponding call's response for the caller to interpret.

    Args:
        gateway: Gateway to send requests through
        auth: Auth context for every chunk
        calls: Calls to execute
        config: Chunk size and parallel limit (defaults: 5 and 10)

    Returns:
        One response per call, index-aligned with calls (None if missing)

    Raises:
        TransportError: If any chunk fails at the transport level
    """
    config = config or BatchConfig()
    errors = config.validate()
    if errors:
        raise ValueError(f"Invalid batch configuration: {', '.join(errors)}")

    if not calls:
        return []

    chunks = chunk_calls(calls, config.chunk_size)
    semaphore = asyncio.Semaphore(config.parallel_limit)
    _log.debug("batch_start", calls=len(calls), chunks=len(chunks))

    async def run_chunk(index: int, chunk: List[PendingCall]) -> List[Optional[CallResponse]]:
        async with semaphore:
            try:
                responses = await gateway.invoke(auth, chunk)
            except TransportError as e:
                _log.warning("batch_chunk_failed", chunk=index, error=str(e))
                raise
        if len(responses) != len(chunk):
            raise TransportError(
                f"Gateway returned {len(responses)} responses for {len(chunk)} calls"
            )
        return responses

    tasks = [asyncio.ensure_future(run_chunk(i, chunk)) for i, chunk in enumerate(chunks)]
    try:
        results = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise

    # gather preserves task order, so flattening restores call order
    responses: List[Optional[CallResponse]] = []
    for chunk_responses in results:
        responses.extend(chunk_responses)
    return responses
