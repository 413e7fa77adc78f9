"""Batch mutation executor.

Applies a per-item mutation across a collection sequentially. One failing
item never stops attempts on the remaining items, and there is no rollback:
a partially applied batch is a valid outcome reported to the caller.
"""

from typing import Awaitable, Callable, Iterable, Optional, TypeVar

import structlog

from ..models.batch import BatchFailure, BatchResult

logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def apply_all(
    items: Iterable[T],
    mutation: Callable[[T], Awaitable[object]],
    label: Optional[Callable[[T], str]] = None,
    operation: str = "mutation",
) -> BatchResult[T]:
    """Apply ``mutation`` to each item in order.

    Args:
        items: Items to mutate
        mutation: Async callable applied to a single item
        label: Optional callable naming an item for operator display
        operation: Operation name used in log entries

    Returns:
        BatchResult with success count, total and the failed items
    """
    items = list(items)
    result: BatchResult[T] = BatchResult(total=len(items))

    for item in items:
        item_label = label(item) if label else str(item)
        try:
            await mutation(item)
        except Exception as e:
            logger.warning(
                "Batch item failed",
                operation=operation,
                item=item_label,
                error=str(e),
                error_type=type(e).__name__,
            )
            result.failures.append(BatchFailure(item=item, error=e, label=item_label))
            continue
        result.success_count += 1
        result.succeeded.append(item)

    logger.info(
        "Batch complete",
        operation=operation,
        success_count=result.success_count,
        total=result.total,
    )
    return result
