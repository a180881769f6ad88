"""Shared DB utilities for the stores and migrations."""


def convert_async_to_sync_dsn(dsn: str) -> str:
    """Convert an async driver DSN to its sync counterpart for Alembic."""
    return dsn.replace("+asyncpg", "+psycopg").replace("+aiosqlite", "")
