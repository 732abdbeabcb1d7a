"""Row and result models for the SQLite store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Optional


class EntryRow(NamedTuple):
    """One stored entry, as read from the namespace table.

    ``val`` is None when the value could not be encoded on write.
    """

    key: str
    val: Optional[bytes]
    created_at: int
    expire_at: int

    def is_fresh(self, now_ms: int) -> bool:
        return self.expire_at > now_ms


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a write statement.

    Attributes:
        changes: Number of rows inserted, replaced or deleted
        last_row_id: Rowid of the last inserted row, if any
    """

    changes: int = 0
    last_row_id: Optional[int] = None
