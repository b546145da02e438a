"""Storage: schema, row mapping and backend adapters."""

from .adapters import DatabaseAdapter, SQLiteAdapter, SupabaseAdapter, get_database_adapter

__all__ = ["DatabaseAdapter", "SQLiteAdapter", "SupabaseAdapter", "get_database_adapter"]
