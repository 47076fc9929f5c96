"""Human-readable labels for timeframes, e.g. ``"Jan 13-14, 2024"``."""

from datetime import date

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def month_abbr(day: date) -> str:
    return MONTH_ABBREVIATIONS[day.month - 1]


def format_day_label(day: date) -> str:
    """Single day, e.g. ``"Jan 15, 2024"``."""
    return f"{month_abbr(day)} {day.day}, {day.year}"


def format_span_label(first: date, last: date) -> str:
    """Weekend or work-week span, e.g. ``"Jan 15-19, 2024"``.

    Month and year always come from ``first``, so a span crossing a month
    boundary reads ``"Mar 30-3, 2024"``.
    """
    return f"{month_abbr(first)} {first.day}-{last.day}, {first.year}"


def format_range_label(start: date, end: date) -> str:
    """Arbitrary date range, collapsing the parts shared by both ends.

    - same month and year: ``"Jan 15-20, 2024"``
    - same year: ``"Jan 15 - Feb 20, 2024"``
    - different years: ``"Dec 28, 2024 - Jan 3, 2025"``
    """
    if start.year != end.year:
        return f"{format_day_label(start)} - {format_day_label(end)}"
    if start.month != end.month:
        return f"{month_abbr(start)} {start.day} - {month_abbr(end)} {end.day}, {start.year}"
    return format_span_label(start, end)
