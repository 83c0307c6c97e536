"""Parameter-bounded batching for write statements.

Some backends refuse statements that bind more than a fixed number of
parameters. This module splits an arbitrary list of rows into batches that
stay under that ceiling and feeds each batch through a caller-supplied async
write, one batch at a time.

Parameter cost:
    Each item has a cost equal to the number of values it binds. Callers
    pass an explicit per-record-type constant (e.g. VIDEO_ROW_PARAMETERS)
    or a callable. Without one, mappings cost their key count and every
    other item costs 1.

Ordering:
    Batches run strictly sequentially and results are flattened in batch
    order, then in within-batch order. A later write can therefore rely on
    rows inserted by an earlier one.

Failure:
    Planning errors (PrecheckFailedError, ItemTooLargeError) are raised
    before the first write. A failing write aborts the run; batches already
    written are left in place.

Usage:
    rows = await autochunk(
        video_rows,
        lambda chunk: insert_videos(session, chunk),
        item_cost=VIDEO_ROW_PARAMETERS,
    )
"""

from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import TypeVar

import structlog

from channel_stats.exceptions import ItemTooLargeError, PrecheckFailedError

log = structlog.get_logger()

T = TypeVar("T")
U = TypeVar("U")

# Bound parameter ceiling per statement
MAX_PARAMETERS = 100

ItemCost = int | Callable[[T], int]


def default_item_cost(item: object) -> int:
    """Return the parameter cost of an item without an explicit cost.

    Args:
        item: Row mapping or scalar value.

    Returns:
        Key count for mappings, 1 for anything else.
    """
    if isinstance(item, Mapping):
        return len(item)
    return 1


def _resolve_cost(item_cost: ItemCost | None) -> Callable[[object], int]:
    if item_cost is None:
        return default_item_cost
    if isinstance(item_cost, int):
        constant = item_cost
        return lambda _item: constant
    return item_cost


def plan_chunks(
    items: Sequence[T],
    *,
    reserved_parameters: int = 0,
    item_cost: ItemCost | None = None,
    max_parameters: int = MAX_PARAMETERS,
) -> list[list[T]]:
    """Split items into batches whose parameter cost fits under the ceiling.

    Items are accumulated greedily. Before an item is added, the batch is
    closed if its cost plus the item cost plus the reserved count would
    exceed max_parameters.

    Args:
        items: Ordered items to split.
        reserved_parameters: Parameters bound by the statement itself
            (e.g., fixed WHERE clauses), counted against every batch.
        item_cost: Constant cost per item, or a callable computing it.
        max_parameters: Parameter ceiling per statement.

    Returns:
        Non-empty batches in input order. Empty input yields no batches.

    Raises:
        PrecheckFailedError: If reserved_parameters exceeds max_parameters.
        ItemTooLargeError: If any single item does not fit next to the
            reserved parameters.
    """
    if reserved_parameters > max_parameters:
        raise PrecheckFailedError(reserved_parameters, max_parameters)

    cost_of = _resolve_cost(item_cost)
    chunks: list[list[T]] = []
    chunk: list[T] = []
    chunk_parameters = 0

    for item in items:
        item_parameters = cost_of(item)

        # An item must fit in a batch of its own next to the reserved parameters
        if item_parameters + reserved_parameters > max_parameters:
            raise ItemTooLargeError(item_parameters, max_parameters)

        if chunk_parameters + item_parameters + reserved_parameters > max_parameters:
            chunks.append(chunk)
            chunk = [item]
            chunk_parameters = item_parameters
            continue

        chunk.append(item)
        chunk_parameters += item_parameters

    if chunk:
        chunks.append(chunk)

    return chunks


async def autochunk(
    items: Sequence[T],
    write: Callable[[list[T]], Awaitable[Sequence[U]]],
    reserved_parameters: int = 0,
    *,
    item_cost: ItemCost | None = None,
    max_parameters: int = MAX_PARAMETERS,
) -> list[U]:
    """Run a write over items in parameter-bounded batches.

    The full plan is built before anything is written, so planning errors
    never leave a partially written result behind.

    Args:
        items: Ordered items to write.
        write: Async callable accepting one batch and returning one result
            per accepted item.
        reserved_parameters: Parameters bound by the statement itself.
        item_cost: Constant cost per item, or a callable computing it.
        max_parameters: Parameter ceiling per statement.

    Returns:
        Flattened results in batch order, then within-batch order.

    Raises:
        PrecheckFailedError: If reserved_parameters exceeds max_parameters.
        ItemTooLargeError: If any single item does not fit next to the
            reserved parameters.
        Exception: Whatever the write raises, unchanged.
    """
    chunks = plan_chunks(
        items,
        reserved_parameters=reserved_parameters,
        item_cost=item_cost,
        max_parameters=max_parameters,
    )

    if not chunks:
        return []

    log.debug(
        "chunk_plan_created",
        total_items=len(items),
        total_chunks=len(chunks),
        reserved_parameters=reserved_parameters,
        max_parameters=max_parameters,
    )

    results: list[U] = []
    for index, chunk in enumerate(chunks):
        chunk_results = await write(chunk)
        results.extend(chunk_results)
        log.debug(
            "chunk_written",
            batch_index=index,
            batch_size=len(chunk),
            results=len(chunk_results),
        )

    return results
