from typing import Any, Optional

from config import settings


class MemberValidator:
    """Field checks applied when members are created or updated."""

    @staticmethod
    def validate_age(age: Any) -> int:
        if isinstance(age, bool) or not isinstance(age, int):
            raise ValueError(f"invalid age: {age}, must be a whole number")
        if age < settings.min_member_age:
            raise ValueError(f"invalid age: {age}, must be {settings.min_member_age} or older")
        return age

    @staticmethod
    def validate_name(name: Optional[str]) -> str:
        if not TextValidator.is_present(name):
            raise ValueError("name cannot be empty")
        return name.strip()


class IdValidator:

    @staticmethod
    def validate_id(value: Any, label: str) -> int:
        # bool is an int subclass; reject it explicitly
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError(f"invalid {label}: {value}, must be a positive integer")
        return value


class TextValidator:
    """Very basic text checks for catalog fields."""

    @staticmethod
    def is_present(text: Optional[str]) -> bool:
        return text is not None and bool(text.strip())

    @staticmethod
    def require(text: Optional[str], field: str) -> str:
        if not TextValidator.is_present(text):
            raise ValueError(f"{field} cannot be empty")
        return text.strip()
