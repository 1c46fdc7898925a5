from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from clock import to_iso


class BorrowingStatus(Enum):
    """Lifecycle states of a borrowing. ACTIVE is initial, RETURNED is terminal."""
    ACTIVE = "active"
    RETURNED = "returned"


@dataclass
class Borrowing:
    """A single lending transaction.

    ``member_name`` and ``book_title`` are copies taken when the book was
    borrowed and are never refreshed from the member or book records.
    """
    transaction_id: int
    member_id: int
    member_name: str
    book_id: int
    book_title: str
    borrowed_at: datetime
    due_date: datetime
    returned_at: Optional[datetime] = None
    status: BorrowingStatus = BorrowingStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status is BorrowingStatus.ACTIVE

    def mark_returned(self, when: datetime) -> None:
        if not self.is_active:
            raise ValueError(f"borrowing {self.transaction_id} has already been returned")
        self.status = BorrowingStatus.RETURNED
        self.returned_at = when

    def is_overdue(self, now: datetime) -> bool:
        return self.is_active and now > self.due_date

    def days_overdue(self, now: datetime) -> int:
        if not self.is_overdue(now):
            return 0
        # timedelta.days floors, and the delta is positive here
        return (now - self.due_date).days

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "transaction_id": self.transaction_id,
            "member_id": self.member_id,
            "member_name": self.member_name,
            "book_id": self.book_id,
            "book_title": self.book_title,
            "borrowed_at": to_iso(self.borrowed_at),
            "due_date": to_iso(self.due_date),
            "status": self.status.value,
        }
        if self.returned_at is not None:
            data["returned_at"] = to_iso(self.returned_at)
        return data

    def to_active_view(self) -> Dict[str, Any]:
        return {
            "transaction_id": self.transaction_id,
            "member_id": self.member_id,
            "member_name": self.member_name,
            "book_id": self.book_id,
            "book_title": self.book_title,
            "borrowed_at": to_iso(self.borrowed_at),
            "due_date": to_iso(self.due_date),
        }

    def to_history_view(self) -> Dict[str, Any]:
        return {
            "transaction_id": self.transaction_id,
            "book_id": self.book_id,
            "book_title": self.book_title,
            "borrowed_at": to_iso(self.borrowed_at),
            "returned_at": to_iso(self.returned_at),
            "status": self.status.value,
        }

    def to_overdue_view(self, now: datetime) -> Dict[str, Any]:
        view = self.to_active_view()
        view["days_overdue"] = self.days_overdue(now)
        return view
