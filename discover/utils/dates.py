"""Birth date helpers."""

from __future__ import annotations

from datetime import date, datetime


def to_date(value: object) -> date | None:
    """Coerce a stored birth date (date, datetime or ISO string) to a date."""

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            return None
    return None


def calculate_age(birth_date: object, today: date | None = None) -> int | None:
    """Age in whole years; the birthday itself counts as already reached."""

    born = to_date(birth_date)
    if born is None:
        return None

    today = today or date.today()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def to_datetime(value: object) -> datetime | None:
    """Coerce a stored timestamp (datetime or ISO string) to a datetime."""

    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    return None
