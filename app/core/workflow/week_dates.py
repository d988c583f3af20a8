from __future__ import annotations

from datetime import date, timedelta


def week_start_date(week_number: int, year: int) -> date:
    """Monday of ISO week `week_number` in `year`."""
    jan4 = date(year, 1, 4)
    week1_monday = jan4 - timedelta(days=jan4.weekday())
    return week1_monday + timedelta(weeks=week_number - 1)


def resolve_week_year(week_number: int, today: date) -> int:
    """
    Pick the calendar year a bare week number most likely refers to.

    Planners enter week numbers without a year, so weeks near the turn of the year
    and weeks far from the current one are assumed to belong to the adjacent year.
    """
    current_week = today.isocalendar()[1]
    if today.month == 12 and week_number <= 10:
        return today.year + 1
    if today.month == 1 and week_number >= 45:
        return today.year - 1
    if week_number < current_week - 20:
        return today.year + 1
    if week_number > current_week + 20:
        return today.year - 1
    return today.year


def selected_week_date(week_number: int | None, today: date) -> date | None:
    if not week_number or week_number < 1 or week_number > 53:
        return None
    return week_start_date(week_number, resolve_week_year(week_number, today))
