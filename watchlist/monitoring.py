"""SQL timing hooks for the watchlist database engine.

Statements slower than the configured threshold are logged at WARNING so slow
list pages can be traced back to the query that produced them.
"""

import logging
import time
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

_STATEMENT_PREVIEW_CHARS = 500


def _preview(statement: str) -> str:
    if len(statement) <= _STATEMENT_PREVIEW_CHARS:
        return statement
    return statement[:_STATEMENT_PREVIEW_CHARS] + "..."


def setup_query_monitoring(
    engine: AsyncEngine,
    slow_query_threshold: float = 0.1,
    log_pool_checkouts: bool = False,
) -> None:
    """Attach cursor-execution listeners to ``engine``.

    Args:
        engine: Async engine whose ``sync_engine`` receives the listeners
        slow_query_threshold: Seconds after which a statement counts as slow
        log_pool_checkouts: Emit a DEBUG line whenever a pooled connection is checked out
    """
    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "before_cursor_execute")
    def receive_before_cursor_execute(
        conn: Any,
        cursor: Any,
        statement: str,
        parameters: Any,
        context: Any,
        executemany: bool,
    ) -> None:
        conn.info.setdefault("query_start_time", []).append(time.perf_counter())

    @event.listens_for(sync_engine, "after_cursor_execute")
    def receive_after_cursor_execute(
        conn: Any,
        cursor: Any,
        statement: str,
        parameters: Any,
        context: Any,
        executemany: bool,
    ) -> None:
        started = conn.info.get("query_start_time")
        if not started:
            return
        total = time.perf_counter() - started.pop()
        if total > slow_query_threshold:
            logger.warning(
                f"Slow query detected ({total:.3f}s): {_preview(statement)}",
                extra={
                    "duration_seconds": total,
                    "threshold_seconds": slow_query_threshold,
                },
            )

    if log_pool_checkouts:

        @event.listens_for(sync_engine.pool, "checkout")
        def receive_checkout(dbapi_conn: Any, connection_record: Any, connection_proxy: Any) -> None:
            logger.debug("Connection checked out from pool %s", sync_engine.pool.status())

    logger.info(
        f"Query performance monitoring enabled (slow query threshold: {slow_query_threshold}s)"
    )


__all__ = ["setup_query_monitoring"]
