import subprocess
import sys
import logging
from typing import Any, Optional

import httpx
import typer
from rich.console import Console

from config import configure_logging, settings
from utils.ui_helpers import (
    set_output_mode,
    print_books,
    print_borrowed,
    print_history,
    print_members,
    print_overdue,
    print_record,
    print_stats_result,
)

APP_NAME = "Library CLI"

console = Console()
logger = logging.getLogger(__name__)

app = typer.Typer(help="Library lending CLI. Talks to a running API server.")


def get_client() -> httpx.Client:
    """HTTP client bound to the configured API. Tests swap this for a TestClient."""
    return httpx.Client(base_url=settings.api_base_url, timeout=settings.http_timeout)


def _call(method: str, path: str, payload: Optional[dict] = None) -> Any:
    """Send one request and return the decoded body, exiting with code 1 on failure."""
    try:
        with get_client() as client:
            response = client.request(method, path, json=payload)
    except httpx.RequestError as exc:
        logger.debug("Request to %s failed: %s", path, exc)
        print(f"Error: could not reach API at {settings.api_base_url}")
        raise typer.Exit(code=1)

    try:
        body = response.json()
    except ValueError:
        body = {"message": response.text}

    if response.status_code >= 400:
        message = body.get("message") if isinstance(body, dict) else None
        print(f"Error: {message or response.reason_phrase}")
        raise typer.Exit(code=1)
    return body


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Global options for the CLI (e.g. output mode)."""
    configure_logging("DEBUG" if verbose else "WARNING")
    if output:
        set_output_mode(output)


# --- Members ---
@app.command("members")
def cli_members():
    """List all members."""
    print_members(_call("GET", "/api/members")["members"])


@app.command("member")
def cli_member(member_id: int):
    """Show one member."""
    print_record(_call("GET", f"/api/members/{member_id}"), title="👤 Member")


@app.command("add-member")
def cli_add_member(member_id: int, name: str, age: int):
    """Register a new member."""
    member = _call("POST", "/api/members", {"member_id": member_id, "name": name, "age": age})
    print(f"Member added: {member['name']} (#{member['member_id']})")


@app.command("update-member")
def cli_update_member(
    member_id: int,
    name: Optional[str] = typer.Option(None, "--name"),
    age: Optional[int] = typer.Option(None, "--age"),
):
    """Change a member's name and/or age."""
    member = _call("PUT", f"/api/members/{member_id}", {"name": name, "age": age})
    print_record(member, title="👤 Member")


@app.command("remove-member")
def cli_remove_member(member_id: int):
    """Delete a member who has no active borrowing."""
    print(_call("DELETE", f"/api/members/{member_id}")["message"])


@app.command("history")
def cli_history(member_id: int):
    """Show a member's borrowing history."""
    print_history(_call("GET", f"/api/members/{member_id}/history"))


# --- Books ---
@app.command("books")
def cli_books():
    """List the catalog."""
    print_books(_call("GET", "/api/books")["books"])


@app.command("add-book")
def cli_add_book(book_id: int, title: str, author: str, isbn: str):
    """Add a book to the catalog."""
    book = _call("POST", "/api/books", {"book_id": book_id, "title": title, "author": author, "isbn": isbn})
    print(f"Book added: {book['title']} by {book['author']} (#{book['book_id']})")


@app.command("remove-book")
def cli_remove_book(book_id: int):
    """Delete a book that is not currently borrowed."""
    print(_call("DELETE", f"/api/books/{book_id}")["message"])


# --- Lending ---
@app.command("borrow")
def cli_borrow(member_id: int, book_id: int):
    """Lend a book to a member."""
    borrowing = _call("POST", "/api/borrow", {"member_id": member_id, "book_id": book_id})
    print(f"Borrowed: {borrowing['book_title']} by {borrowing['member_name']}, due {borrowing['due_date']}")


@app.command("return")
def cli_return(member_id: int, book_id: int):
    """Return a borrowed book."""
    borrowing = _call("POST", "/api/return", {"member_id": member_id, "book_id": book_id})
    print(f"Returned: {borrowing['book_title']} by {borrowing['member_name']} at {borrowing['returned_at']}")


@app.command("borrowed")
def cli_borrowed():
    """List books that are currently out."""
    print_borrowed(_call("GET", "/api/borrowed")["borrowed_books"])


@app.command("overdue")
def cli_overdue():
    """List borrowings past their due date."""
    print_overdue(_call("GET", "/api/overdue")["overdue_books"])


@app.command("stats")
def cli_stats():
    """Show library statistics."""
    print_stats_result(_call("GET", "/api/stats"))


@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
):
    """Start the API server with uvicorn."""
    host = host or settings.api_host
    port = int(port or settings.api_port)
    print(f"Starting API on http://{host}:{port}/")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:app",
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        args.append("--reload")
    try:
        subprocess.run(args, check=False)
    except KeyboardInterrupt:
        console.print("[yellow]Server stopped.[/]")


if __name__ == "__main__":
    app()
