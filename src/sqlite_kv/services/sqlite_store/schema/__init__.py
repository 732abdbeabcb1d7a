"""Namespace schema management."""

from sqlite_kv.services.sqlite_store.schema.manager import SchemaManager

__all__ = ["SchemaManager"]
