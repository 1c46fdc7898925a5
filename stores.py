"""In-memory keyed stores owned by a ``Library`` instance.

Each store maps an integer id to one record and keeps insertion order, which
is the order listings are returned in. Stores do no locking of their own;
``Library`` serializes access.
"""
from __future__ import annotations

import itertools
from typing import Dict, Iterator, List, Optional

from book import Book
from borrowing import Borrowing
from member import Member


class MembershipStore:
    """Members keyed by ``member_id``."""

    def __init__(self) -> None:
        self._members: Dict[int, Member] = {}

    def __len__(self) -> int:
        return len(self._members)

    def exists(self, member_id: int) -> bool:
        return member_id in self._members

    def get(self, member_id: int) -> Optional[Member]:
        return self._members.get(member_id)

    def list(self) -> List[Member]:
        return list(self._members.values())

    def add(self, member: Member) -> None:
        if member.member_id in self._members:
            raise ValueError(f"member with id: {member.member_id} already exists")
        self._members[member.member_id] = member

    def remove(self, member_id: int) -> bool:
        return self._members.pop(member_id, None) is not None

    def set_borrowed_flag(self, member_id: int, value: bool) -> None:
        self._members[member_id].has_borrowed = value

    def append_history(self, member_id: int, borrowing: Borrowing) -> None:
        self._members[member_id].history.append(borrowing)


class CatalogStore:
    """Books keyed by ``book_id``."""

    def __init__(self) -> None:
        self._books: Dict[int, Book] = {}

    def __len__(self) -> int:
        return len(self._books)

    def exists(self, book_id: int) -> bool:
        return book_id in self._books

    def get(self, book_id: int) -> Optional[Book]:
        return self._books.get(book_id)

    def list(self) -> List[Book]:
        return list(self._books.values())

    def add(self, book: Book) -> None:
        if book.book_id in self._books:
            raise ValueError(f"book with id: {book.book_id} already exists")
        self._books[book.book_id] = book

    def remove(self, book_id: int) -> bool:
        return self._books.pop(book_id, None) is not None

    def set_available(self, book_id: int, value: bool) -> None:
        self._books[book_id].is_available = value


class TransactionLedger:
    """Every borrowing ever made, keyed by ``transaction_id``.

    Ids come from a counter that only moves forward, so they stay unique
    even if records are ever removed.
    """

    def __init__(self, start: int = 1) -> None:
        self._records: Dict[int, Borrowing] = {}
        self._ids = itertools.count(start)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Borrowing]:
        return iter(list(self._records.values()))

    def next_id(self) -> int:
        return next(self._ids)

    def insert(self, borrowing: Borrowing) -> None:
        if borrowing.transaction_id in self._records:
            raise ValueError(f"transaction {borrowing.transaction_id} already recorded")
        self._records[borrowing.transaction_id] = borrowing

    def active(self) -> List[Borrowing]:
        return [b for b in self._records.values() if b.is_active]

    def find_active(self, member_id: int, book_id: int) -> Optional[Borrowing]:
        for record in self._records.values():
            if record.is_active and record.member_id == member_id and record.book_id == book_id:
                return record
        return None

    def has_active_for_book(self, book_id: int) -> bool:
        return any(b.is_active and b.book_id == book_id for b in self._records.values())
