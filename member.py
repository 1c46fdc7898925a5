from __future__ import annotations

from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from borrowing import Borrowing


class Member:
    """A registered library member and the borrowings they have made."""

    def __init__(self, member_id: int, name: str, age: int, has_borrowed: bool = False,
                 history: List["Borrowing"] | None = None) -> None:
        self.member_id = member_id
        self.name = name.strip()
        self.age = age
        self.has_borrowed = has_borrowed
        # Append-only; entries are the ledger's own records so returns show up here too.
        self.history: List["Borrowing"] = list(history or [])

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.name} (#{self.member_id}, age {self.age})"

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "name": self.name,
            "age": self.age,
            "has_borrowed": self.has_borrowed,
        }

    def to_summary(self) -> dict:
        """Shape used by the member listing."""
        return {"member_id": self.member_id, "name": self.name, "age": self.age}
