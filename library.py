import logging
from datetime import timedelta
from threading import RLock
from typing import Any, Dict, List, Optional

from book import Book
from borrowing import Borrowing
from clock import SystemClock
from config import settings
from member import Member
from stores import CatalogStore, MembershipStore, TransactionLedger
from utils.validators import IdValidator, MemberValidator, TextValidator

logger = logging.getLogger(__name__)


class Library:
    """Manages members, the catalog and the lending ledger.

    All reads and writes go through one re-entrant lock, so a borrow or a
    return is seen either completely (ledger, member flag and book flag) or
    not at all. Preconditions are checked before anything is written.
    """

    def __init__(self, clock=None, loan_period_days: Optional[int] = None) -> None:
        self.clock = clock or SystemClock()
        days = settings.loan_period_days if loan_period_days is None else loan_period_days
        self.loan_period = timedelta(days=days)
        self.members = MembershipStore()
        self.books = CatalogStore()
        self.ledger = TransactionLedger()
        self._lock = RLock()

    # ------------------------- Members ------------------------- #
    def create_member(self, member_id: int, name: str, age: int) -> Member:
        member_id = IdValidator.validate_id(member_id, "member_id")
        name = MemberValidator.validate_name(name)
        age = MemberValidator.validate_age(age)
        with self._lock:
            if self.members.exists(member_id):
                raise ValueError(f"member with id: {member_id} already exists")
            member = Member(member_id=member_id, name=name, age=age)
            self.members.add(member)
        logger.info("Created member %s (%s)", member_id, name)
        return member

    def find_member(self, member_id: int) -> Optional[Member]:
        with self._lock:
            return self.members.get(member_id)

    def get_member(self, member_id: int) -> Member:
        member = self.find_member(member_id)
        if member is None:
            raise NotFoundError("member", member_id)
        return member

    def list_members(self) -> List[Member]:
        with self._lock:
            return self.members.list()

    def update_member(self, member_id: int, *, name: Optional[str] = None, age: Optional[int] = None) -> Member:
        """Update name and/or age. Blank values leave the field unchanged."""
        with self._lock:
            member = self.get_member(member_id)
            if not TextValidator.is_present(name) and age is None:
                raise ValueError("Nothing to update. Provide name and/or age.")
            if age is not None:
                age = MemberValidator.validate_age(age)
            if TextValidator.is_present(name):
                member.name = name.strip()
            if age:
                member.age = age
            return member

    def delete_member(self, member_id: int) -> None:
        with self._lock:
            member = self.members.get(member_id)
            if member is None:
                raise NotFoundError("member", member_id, message=f"member with id: {member_id} not found")
            if member.has_borrowed:
                logger.warning("Refused to delete member %s with an active borrowing", member_id)
                raise ConflictError(
                    f"cannot delete member with id: {member_id}, member has an active book borrowing",
                    reason="has-active-borrowing",
                )
            self.members.remove(member_id)
        logger.info("Deleted member %s", member_id)

    # ------------------------- Catalog ------------------------- #
    def add_book(self, book_id: int, title: str, author: str, isbn: str) -> Book:
        book_id = IdValidator.validate_id(book_id, "book_id")
        title = TextValidator.require(title, "title")
        author = TextValidator.require(author, "author")
        isbn = TextValidator.require(isbn, "isbn")
        with self._lock:
            if self.books.exists(book_id):
                raise ValueError(f"book with id: {book_id} already exists")
            book = Book(book_id=book_id, title=title, author=author, isbn=isbn)
            self.books.add(book)
        logger.info("Added book %s (%s)", book_id, title)
        return book

    def find_book(self, book_id: int) -> Optional[Book]:
        with self._lock:
            return self.books.get(book_id)

    def get_book(self, book_id: int) -> Book:
        book = self.find_book(book_id)
        if book is None:
            raise NotFoundError("book", book_id)
        return book

    def list_books(self) -> List[Book]:
        with self._lock:
            return self.books.list()

    def update_book(self, book_id: int, *, title: Optional[str] = None, author: Optional[str] = None,
                    isbn: Optional[str] = None) -> Book:
        """Update catalog fields. Titles already copied into borrowings are left alone."""
        if not any(TextValidator.is_present(v) for v in (title, author, isbn)):
            raise ValueError("Nothing to update. Provide title, author and/or isbn.")
        with self._lock:
            book = self.get_book(book_id)
            if TextValidator.is_present(title):
                book.title = title.strip()
            if TextValidator.is_present(author):
                book.author = author.strip()
            if TextValidator.is_present(isbn):
                book.isbn = isbn.strip()
            return book

    def delete_book(self, book_id: int) -> None:
        with self._lock:
            if not self.books.exists(book_id):
                raise NotFoundError("book", book_id, message=f"book with id: {book_id} not found")
            if self.ledger.has_active_for_book(book_id):
                logger.warning("Refused to delete borrowed book %s", book_id)
                raise ConflictError(
                    f"cannot delete book with id: {book_id}, book is currently borrowed",
                    reason="book-borrowed",
                )
            self.books.remove(book_id)
        logger.info("Deleted book %s", book_id)

    # ------------------------- Lending ------------------------- #
    def borrow_book(self, member_id: int, book_id: int) -> Borrowing:
        with self._lock:
            member = self.members.get(member_id)
            if member is None:
                raise NotFoundError("member", member_id, message=f"member with id: {member_id} not found")
            book = self.books.get(book_id)
            if book is None:
                raise NotFoundError("book", book_id, message=f"book with id: {book_id} not found")
            if member.has_borrowed:
                logger.warning("Member %s tried to borrow book %s while holding another", member_id, book_id)
                raise ConflictError(
                    f"member with id: {member_id} already borrowed a book", reason="already-borrowed"
                )
            if not book.is_available:
                logger.warning("Member %s tried to borrow unavailable book %s", member_id, book_id)
                raise ConflictError(f"book with id: {book_id} is not available", reason="unavailable")

            borrowed_at = self.clock.now()
            borrowing = Borrowing(
                transaction_id=self.ledger.next_id(),
                member_id=member_id,
                member_name=member.name,
                book_id=book_id,
                book_title=book.title,
                borrowed_at=borrowed_at,
                due_date=borrowed_at + self.loan_period,
            )
            self.ledger.insert(borrowing)
            self.members.append_history(member_id, borrowing)
            self.members.set_borrowed_flag(member_id, True)
            self.books.set_available(book_id, False)
        logger.info("Transaction %s: member %s borrowed book %s", borrowing.transaction_id, member_id, book_id)
        return borrowing

    def return_book(self, member_id: int, book_id: int) -> Borrowing:
        with self._lock:
            if not self.members.exists(member_id):
                raise NotFoundError("member", member_id, message=f"member with id: {member_id} not found")
            borrowing = self.ledger.find_active(member_id, book_id)
            if borrowing is None:
                logger.warning("Member %s tried to return book %s without borrowing it", member_id, book_id)
                raise InvalidOperationError(
                    f"member with id: {member_id} has not borrowed book with id: {book_id}",
                    reason="no-active-borrowing",
                )
            borrowing.mark_returned(self.clock.now())
            self.members.set_borrowed_flag(member_id, False)
            self.books.set_available(borrowing.book_id, True)
        logger.info("Transaction %s: member %s returned book %s", borrowing.transaction_id, member_id, book_id)
        return borrowing

    def list_active_borrowings(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [b.to_active_view() for b in self.ledger.active()]

    def get_history(self, member_id: int) -> Dict[str, Any]:
        with self._lock:
            member = self.get_member(member_id)
            return {
                "member_id": member.member_id,
                "member_name": member.name,
                "borrowing_history": [b.to_history_view() for b in member.history],
            }

    def list_overdue(self) -> List[Dict[str, Any]]:
        with self._lock:
            now = self.clock.now()
            return [b.to_overdue_view(now) for b in self.ledger.active() if b.is_overdue(now)]

    def get_statistics(self) -> Dict[str, Any]:
        with self._lock:
            now = self.clock.now()
            active = self.ledger.active()
            return {
                "total_members": len(self.members),
                "total_books": len(self.books),
                "available_books": sum(1 for b in self.books.list() if b.is_available),
                "active_borrowings": len(active),
                "overdue_borrowings": sum(1 for b in active if b.is_overdue(now)),
                "total_transactions": len(self.ledger),
            }

    def close(self) -> None:
        """Nothing is held open; kept so callers can treat Library as a resource."""
        return None


class LibraryError(Exception):
    """Base class for rejected library operations."""

    def __init__(self, message: str, reason: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason


class NotFoundError(LibraryError, LookupError):
    def __init__(self, kind: str, entity_id: Any, message: Optional[str] = None) -> None:
        super().__init__(message or f"{kind} with id: {entity_id} was not found", reason=kind)
        self.kind = kind
        self.entity_id = entity_id


class ConflictError(LibraryError):
    pass


class InvalidOperationError(LibraryError):
    pass
