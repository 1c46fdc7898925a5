import os
import json
from typing import List, Any, Dict, Sequence, Tuple
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def _print_rows(rows: List[Dict[str, Any]], empty: str, title: str,
                columns: Sequence[Tuple[str, str]], line) -> None:
    """Shared printer for list results.

    - plain: one line per row built by ``line``, or the ``empty`` message
    - json: the rows as a JSON array
    - rich: a Rich table with the given (key, header) columns
    """
    mode = get_output_mode()

    if not rows and mode != "json":
        print(empty)
        return

    if mode == "json":
        print(json.dumps(rows, ensure_ascii=False))
    elif mode == "rich":
        table = Table(title=title, show_lines=True, header_style="bold cyan")
        for _, header in columns:
            table.add_column(header)
        for row in rows:
            table.add_row(*[str(row.get(key, "")) for key, _ in columns])
        _console.print(table)
    else:
        for row in rows:
            print(line(row))


def print_members(members: List[Dict[str, Any]]) -> None:
    _print_rows(
        members, "No members registered.", "👥 Members",
        [("member_id", "ID"), ("name", "Name"), ("age", "Age")],
        lambda m: f"{m['member_id']} - {m['name']} (age {m['age']})",
    )


def print_books(books: List[Dict[str, Any]]) -> None:
    _print_rows(
        books, "No books in library.", "📚 Books",
        [("book_id", "ID"), ("title", "Title"), ("author", "Author"), ("isbn", "ISBN"), ("is_available", "Available")],
        lambda b: f"{b['book_id']} - {b['title']} by {b['author']} "
                  f"[{'available' if b['is_available'] else 'borrowed'}]",
    )


def print_borrowed(borrowings: List[Dict[str, Any]]) -> None:
    _print_rows(
        borrowings, "No books are currently borrowed.", "📖 Borrowed Books",
        [("transaction_id", "#"), ("member_name", "Member"), ("book_title", "Book"), ("due_date", "Due")],
        lambda b: f"#{b['transaction_id']} {b['member_name']} -> {b['book_title']} (due {b['due_date']})",
    )


def print_overdue(borrowings: List[Dict[str, Any]]) -> None:
    _print_rows(
        borrowings, "No overdue books.", "⏰ Overdue Books",
        [("transaction_id", "#"), ("member_name", "Member"), ("book_title", "Book"),
         ("due_date", "Due"), ("days_overdue", "Days Overdue")],
        lambda b: f"#{b['transaction_id']} {b['member_name']} -> {b['book_title']} "
                  f"({b['days_overdue']} days overdue)",
    )


def print_history(history: Dict[str, Any]) -> None:
    mode = get_output_mode()
    entries = history.get("borrowing_history", [])

    if mode == "json":
        print(json.dumps(history, ensure_ascii=False))
        return

    print(f"History for {history['member_name']} (#{history['member_id']}):")
    _print_rows(
        entries, "No borrowings yet.", "🕮 History",
        [("transaction_id", "#"), ("book_title", "Book"), ("borrowed_at", "Borrowed"),
         ("returned_at", "Returned"), ("status", "Status")],
        lambda e: f"#{e['transaction_id']} {e['book_title']} borrowed {e['borrowed_at']} [{e['status']}]",
    )


def print_record(record: Dict[str, Any], title: str = "Result") -> None:
    """Print a single object, e.g. a borrowing or a member."""
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(record, ensure_ascii=False))
    elif mode == "rich":
        content = "\n".join(f"[bold]{k}:[/] {v}" for k, v in record.items())
        _console.print(Panel.fit(content, title=title, border_style="blue"))
    else:
        for key, value in record.items():
            print(f"{key}: {value}")


def print_stats_result(stats: Dict[str, Any]) -> None:
    mode = get_output_mode()

    if not stats:
        print("No statistics available.")
        return

    if mode == "json":
        print(json.dumps(stats, ensure_ascii=False))
    elif mode == "rich":
        content = "\n".join(f"[bold]{k.replace('_', ' ').title()}:[/] {v}" for k, v in stats.items())
        _console.print(Panel.fit(content, title="📊 Stats", border_style="blue"))
    else:
        for key, value in stats.items():
            print(f"{key.replace('_', ' ').title()}: {value}")
