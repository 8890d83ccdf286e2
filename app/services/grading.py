"""Grade banding for exam marks.

The grade is a convenience for marks entry: it is stored next to the marks
but an operator may overwrite it.
"""

from decimal import Decimal

DEFAULT_MAX_MARKS = Decimal("100")

# Descending, inclusive lower bounds on the percentage
GRADE_BANDS: list[tuple[Decimal, str]] = [
    (Decimal("90"), "A+"),
    (Decimal("80"), "A"),
    (Decimal("70"), "B+"),
    (Decimal("60"), "B"),
    (Decimal("50"), "C+"),
    (Decimal("40"), "C"),
    (Decimal("33"), "D"),
]
FAIL_GRADE = "F"

Number = int | float | Decimal


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def calculate_percentage(marks_obtained: Number, max_marks: Number | None = None) -> Decimal:
    """Percentage of max_marks; a missing or non-positive maximum counts as 100."""
    maximum = _to_decimal(max_marks) if max_marks is not None else DEFAULT_MAX_MARKS
    if maximum <= 0:
        maximum = DEFAULT_MAX_MARKS
    return _to_decimal(marks_obtained) / maximum * 100


def calculate_grade(marks_obtained: Number, max_marks: Number | None = None) -> str:
    """Calculate grade based on percentage."""
    percentage = calculate_percentage(marks_obtained, max_marks)
    for threshold, grade in GRADE_BANDS:
        if percentage >= threshold:
            return grade
    return FAIL_GRADE
