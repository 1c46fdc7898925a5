import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from clock import to_iso
from config import configure_logging, settings
from library import Library, LibraryError, NotFoundError

logger = logging.getLogger(__name__)

library = Library()


def get_library() -> Library:
    """Dependency returning the process-wide Library. Tests override it."""
    return library


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("%s %s starting (%s)", settings.app_name, settings.app_version, settings.environment)
    try:
        yield
    finally:
        library.close()
        logger.info("%s stopped", settings.app_name)


app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error handling ---
def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return error_response(404, exc.message)


@app.exception_handler(LibraryError)
async def library_error_handler(request: Request, exc: LibraryError):
    # ConflictError and InvalidOperationError
    return error_response(400, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Internal Server Error")


# --- Models ---
class MemberCreateModel(BaseModel):
    member_id: int | None = None
    name: str | None = None
    age: int | None = None


class MemberUpdateModel(BaseModel):
    name: str | None = None
    age: int | None = None


class MemberModel(BaseModel):
    member_id: int
    name: str
    age: int
    has_borrowed: bool


class MemberSummaryModel(BaseModel):
    member_id: int
    name: str
    age: int


class MemberListModel(BaseModel):
    members: List[MemberSummaryModel]


class BookCreateModel(BaseModel):
    book_id: int | None = None
    title: str | None = None
    author: str | None = None
    isbn: str | None = None


class BookUpdateModel(BaseModel):
    title: str | None = None
    author: str | None = None
    isbn: str | None = None


class BookModel(BaseModel):
    book_id: int
    title: str
    author: str
    isbn: str
    is_available: bool


class BookListModel(BaseModel):
    books: List[BookModel]


class LendingRequest(BaseModel):
    member_id: int | None = None
    book_id: int | None = None


class BorrowingModel(BaseModel):
    transaction_id: int
    member_id: int
    member_name: str
    book_id: int
    book_title: str
    borrowed_at: str
    due_date: str
    returned_at: str | None = None
    status: str


class ActiveBorrowingModel(BaseModel):
    transaction_id: int
    member_id: int
    member_name: str
    book_id: int
    book_title: str
    borrowed_at: str
    due_date: str


class BorrowedListModel(BaseModel):
    borrowed_books: List[ActiveBorrowingModel]


class OverdueBorrowingModel(ActiveBorrowingModel):
    days_overdue: int = Field(ge=0)


class OverdueListModel(BaseModel):
    overdue_books: List[OverdueBorrowingModel]


class HistoryEntryModel(BaseModel):
    transaction_id: int
    book_id: int
    book_title: str
    borrowed_at: str
    returned_at: str | None = None
    status: str


class HistoryModel(BaseModel):
    member_id: int
    member_name: str
    borrowing_history: List[HistoryEntryModel]


class MessageModel(BaseModel):
    message: str


class StatsModel(BaseModel):
    total_members: int
    total_books: int
    available_books: int
    active_borrowings: int
    overdue_borrowings: int
    total_transactions: int


# --- Health ---
@app.get("/health")
def health(lib: Library = Depends(get_library)):
    """Lightweight health check with a few counters."""
    return {
        "status": "healthy",
        "timestamp": to_iso(lib.clock.now()),
        "version": settings.app_version,
        "total_members": len(lib.members),
        "total_books": len(lib.books),
    }


# --- Members ---
@app.post("/api/members", response_model=MemberModel)
def create_member(payload: MemberCreateModel, lib: Library = Depends(get_library)):
    """Register a new member."""
    if payload.member_id is None or not payload.name or payload.age is None:
        raise HTTPException(status_code=400, detail="member_id, name, and age are required")
    try:
        member = lib.create_member(payload.member_id, payload.name, payload.age)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return MemberModel(**member.to_dict())


@app.get("/api/members", response_model=MemberListModel)
def list_members(lib: Library = Depends(get_library)):
    return MemberListModel(members=[MemberSummaryModel(**m.to_summary()) for m in lib.list_members()])


@app.get("/api/members/{member_id}", response_model=MemberModel)
def get_member(member_id: int, lib: Library = Depends(get_library)):
    return MemberModel(**lib.get_member(member_id).to_dict())


@app.put("/api/members/{member_id}", response_model=MemberModel)
def update_member(member_id: int, update: MemberUpdateModel, lib: Library = Depends(get_library)):
    """Update a member's name and/or age."""
    try:
        member = lib.update_member(member_id, name=update.name, age=update.age)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return MemberModel(**member.to_dict())


@app.delete("/api/members/{member_id}", response_model=MessageModel)
def delete_member(member_id: int, lib: Library = Depends(get_library)):
    lib.delete_member(member_id)
    return MessageModel(message=f"member with id: {member_id} has been deleted successfully")


@app.get("/api/members/{member_id}/history", response_model=HistoryModel)
def get_member_history(member_id: int, lib: Library = Depends(get_library)):
    """Every borrowing the member has made, oldest first."""
    return HistoryModel(**lib.get_history(member_id))


# --- Books ---
@app.post("/api/books", response_model=BookModel)
def add_book(payload: BookCreateModel, lib: Library = Depends(get_library)):
    """Add a book to the catalog."""
    if payload.book_id is None or not payload.title or not payload.author or not payload.isbn:
        raise HTTPException(status_code=400, detail="book_id, title, author, and isbn are required")
    try:
        book = lib.add_book(payload.book_id, payload.title, payload.author, payload.isbn)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return BookModel(**book.to_dict())


@app.get("/api/books", response_model=BookListModel)
def list_books(lib: Library = Depends(get_library)):
    return BookListModel(books=[BookModel(**b.to_dict()) for b in lib.list_books()])


@app.get("/api/books/{book_id}", response_model=BookModel)
def get_book(book_id: int, lib: Library = Depends(get_library)):
    return BookModel(**lib.get_book(book_id).to_dict())


@app.put("/api/books/{book_id}", response_model=BookModel)
def update_book(book_id: int, update: BookUpdateModel, lib: Library = Depends(get_library)):
    """Update a book's title, author and/or isbn."""
    try:
        book = lib.update_book(book_id, title=update.title, author=update.author, isbn=update.isbn)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return BookModel(**book.to_dict())


@app.delete("/api/books/{book_id}", response_model=MessageModel)
def delete_book(book_id: int, lib: Library = Depends(get_library)):
    lib.delete_book(book_id)
    return MessageModel(message=f"book with id: {book_id} has been deleted successfully")


# --- Lending ---
def _require_lending_ids(payload: LendingRequest) -> None:
    if payload.member_id is None or payload.book_id is None:
        raise HTTPException(status_code=400, detail="member_id and book_id are required")


@app.post("/api/borrow", response_model=BorrowingModel)
def borrow_book(payload: LendingRequest, lib: Library = Depends(get_library)):
    """Lend a book to a member for the configured loan period."""
    _require_lending_ids(payload)
    borrowing = lib.borrow_book(payload.member_id, payload.book_id)
    return BorrowingModel(**borrowing.to_dict())


@app.post("/api/return", response_model=BorrowingModel)
def return_book(payload: LendingRequest, lib: Library = Depends(get_library)):
    """Close the member's active borrowing of the book."""
    _require_lending_ids(payload)
    borrowing = lib.return_book(payload.member_id, payload.book_id)
    return BorrowingModel(**borrowing.to_dict())


@app.get("/api/borrowed", response_model=BorrowedListModel)
def list_borrowed_books(lib: Library = Depends(get_library)):
    return BorrowedListModel(borrowed_books=lib.list_active_borrowings())


@app.get("/api/overdue", response_model=OverdueListModel)
def list_overdue_books(lib: Library = Depends(get_library)):
    return OverdueListModel(overdue_books=lib.list_overdue())


@app.get("/api/stats", response_model=StatsModel)
def get_statistics(lib: Library = Depends(get_library)):
    return StatsModel(**lib.get_statistics())
