"""Field-level validation for workflow inputs."""

from __future__ import annotations

import re
from typing import Any, Mapping

from services.errors import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(raw_email: str | None) -> str:
    """Normalize an email string by stripping whitespace and lowering case."""
    return (raw_email or "").strip().lower()


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value or ""))


class FieldValidator:
    """Collects field errors and raises them together.

    Rules mirror the form rules of the account pages: ``required``,
    ``email``, ``min`` (string length) and ``confirmed`` (the value must equal
    ``<field>_confirmation``).
    """

    def __init__(self, data: Mapping[str, Any]):
        self.data = data
        self.errors: dict[str, list[str]] = {}

    def _add(self, field: str, message: str) -> None:
        self.errors.setdefault(field, []).append(message)

    def _value(self, field: str) -> Any:
        value = self.data.get(field)
        if isinstance(value, str):
            return value.strip()
        return value

    def required(self, *fields: str) -> "FieldValidator":
        for field in fields:
            value = self._value(field)
            if value is None or value == "":
                self._add(field, f"The {field} field is required.")
            elif not isinstance(value, str):
                self._add(field, f"The {field} must be a string.")
        return self

    def string(self, *fields: str) -> "FieldValidator":
        for field in fields:
            value = self.data.get(field)
            if value is not None and not isinstance(value, str):
                self._add(field, f"The {field} must be a string.")
        return self

    def email(self, field: str) -> "FieldValidator":
        value = self._value(field)
        if isinstance(value, str) and value and not is_valid_email(value):
            self._add(field, f"The {field} must be a valid email address.")
        return self

    def min_length(self, field: str, length: int) -> "FieldValidator":
        value = self.data.get(field)
        if isinstance(value, str) and value and len(value) < length:
            self._add(field, f"The {field} must be at least {length} characters.")
        return self

    def confirmed(self, field: str) -> "FieldValidator":
        value = self.data.get(field)
        if value and value != self.data.get(f"{field}_confirmation"):
            self._add(field, f"The {field} confirmation does not match.")
        return self

    def check(self, redirect_to: str | None = None) -> None:
        if self.errors:
            raise ValidationError(self.errors, redirect_to=redirect_to)
