# backend/core/query_logger.py

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict

from sqlalchemy import event
from sqlalchemy.engine import Engine

from core.config import get_settings

logger = logging.getLogger("sqlalchemy.engine")
query_logger = logging.getLogger("query_performance")

settings = get_settings()


class QueryLogger:
    """SQL query statistics and slow-query warnings"""

    def __init__(self):
        self.enabled = settings.is_development or settings.debug
        self.slow_query_threshold = settings.slow_query_threshold_seconds
        self.query_stats: Dict[str, Any] = {
            "total_queries": 0,
            "slow_queries": 0,
            "total_time": 0.0,
            "queries_by_table": {},
        }

    def record(self, statement: str, tables: list, elapsed: float):
        self.query_stats["total_queries"] += 1
        self.query_stats["total_time"] += elapsed

        for table in tables:
            by_table = self.query_stats["queries_by_table"]
            by_table[table] = by_table.get(table, 0) + 1

        if elapsed > self.slow_query_threshold:
            self.query_stats["slow_queries"] += 1
            query_logger.warning(f"SLOW QUERY ({elapsed:.3f}s): {statement[:200]}...")

    def log_query_stats(self):
        """Log accumulated query statistics"""
        if not self.enabled:
            return

        total = self.query_stats["total_queries"]
        query_logger.info(
            f"Query Statistics: total={total} "
            f"slow={self.query_stats['slow_queries']} "
            f"time={self.query_stats['total_time']:.3f}s "
            f"avg={self.query_stats['total_time'] / max(total, 1):.3f}s "
            f"by_table={self.query_stats['queries_by_table']}"
        )

    def reset_stats(self):
        """Reset query statistics"""
        self.query_stats = {
            "total_queries": 0,
            "slow_queries": 0,
            "total_time": 0.0,
            "queries_by_table": {},
        }


# Singleton instance
query_logger_instance = QueryLogger()


def setup_query_logging(engine: Engine):
    """
    Setup query logging for an SQLAlchemy engine

    Args:
        engine: SQLAlchemy engine instance
    """

    if engine.url.get_backend_name() == "sqlite":

        @event.listens_for(engine, "connect")
        def enable_sqlite_foreign_keys(dbapi_conn, connection_record):
            """SQLite ships with foreign key enforcement off"""
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys = ON")
            cursor.close()

    if not query_logger_instance.enabled:
        return

    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start_time", []).append(time.perf_counter())

        if settings.log_sql_queries:
            logger.debug("Start Query: %s", statement)

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        total_time = time.perf_counter() - conn.info["query_start_time"].pop(-1)
        query_logger_instance.record(
            statement, extract_tables_from_query(statement), total_time
        )

        if settings.log_sql_queries:
            logger.debug("Query Complete in %.3fs", total_time)


def extract_tables_from_query(query: str) -> list:
    """
    Extract table names from SQL query (simple implementation)

    Args:
        query: SQL query string

    Returns:
        List of table names found in query
    """
    query_upper = query.upper()
    tables = []

    patterns = ["FROM ", "JOIN ", "UPDATE ", "INSERT INTO ", "DELETE FROM "]

    for pattern in patterns:
        pos = 0
        while True:
            pos = query_upper.find(pattern, pos)
            if pos == -1:
                break

            start = pos + len(pattern)
            end = start

            # Find end of table name (space, comma, or parenthesis)
            while end < len(query) and query[end] not in " ,();\n":
                end += 1

            if end > start:
                table_name = query[start:end].strip().lower()
                if "." in table_name:
                    table_name = table_name.split(".")[-1]
                table_name = table_name.strip("\"'`")

                if table_name and not table_name.startswith("("):
                    tables.append(table_name)

            pos = end

    return list(set(tables))


@contextmanager
def log_query_performance(operation_name: str):
    """
    Context manager to log performance of a database operation

    Example:
        with log_query_performance("settle_transaction"):
            coordinator.settle_transaction(...)
    """
    start_time = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start_time
        if elapsed > query_logger_instance.slow_query_threshold:
            query_logger.warning(f"Slow operation '{operation_name}': {elapsed:.3f}s")
        else:
            query_logger.debug(f"Operation '{operation_name}' completed in {elapsed:.3f}s")
