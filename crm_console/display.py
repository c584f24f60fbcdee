"""Formatting helpers for console tables and labels."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any


def format_currency(amount: Any) -> str:
    """Format a dollar amount as returned by the API (number or numeric string)."""

    try:
        value = float(amount)
    except (TypeError, ValueError):
        value = 0.0
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def contact_display_name(record: dict[str, Any]) -> str:
    first_name = (record.get("first_name") or "").strip()
    last_name = (record.get("last_name") or "").strip()
    full_name = f"{first_name} {last_name}".strip()
    if full_name:
        return full_name
    return (record.get("account_name") or record.get("email") or "").strip() or "Unnamed contact"


def account_display_name(record: dict[str, Any]) -> str:
    name = (record.get("account_name") or "").strip()
    if name:
        return name
    if record.get("account_type") == "organization":
        return "Unnamed organization"
    return "Unnamed account"


def format_date(value: Any, empty: str = "-") -> str:
    if value is None or value == "":
        return empty
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value)
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return text


def yes_no(value: Any) -> str:
    return "Yes" if value else "No"
