"""Namespace operations for the SQLite store."""

from sqlite_kv.services.sqlite_store.operations.base import BaseOperation
from sqlite_kv.services.sqlite_store.operations.insert import InsertOperations
from sqlite_kv.services.sqlite_store.operations.query import QueryOperations
from sqlite_kv.services.sqlite_store.operations.update import UpdateOperations

__all__ = [
    "BaseOperation",
    "InsertOperations",
    "QueryOperations",
    "UpdateOperations",
]
