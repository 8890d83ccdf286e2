from decimal import Decimal

import pytest

from app.services.grading import calculate_grade, calculate_percentage


@pytest.mark.parametrize(
    "marks, expected",
    [
        (100, "A+"),
        (90, "A+"),
        (Decimal("89.999"), "A"),
        (80, "A"),
        (75, "B+"),
        (60, "B"),
        (55, "C+"),
        (40, "C"),
        (33, "D"),
        (Decimal("32.99"), "F"),
        (0, "F"),
    ],
)
def test_grade_bands_out_of_100(marks, expected):
    assert calculate_grade(marks, 100) == expected


def test_grade_uses_percentage_of_max_marks():
    assert calculate_grade(45, 50) == "A+"
    assert calculate_grade(20, 50) == "C"
    assert calculate_grade(16, 50) == "F"


def test_missing_or_zero_max_marks_defaults_to_100():
    assert calculate_grade(85) == "A"
    assert calculate_grade(85, 0) == "A"
    assert calculate_grade(85, -5) == "A"
    assert calculate_percentage(42, None) == Decimal("42")


def test_grade_accepts_floats_without_binary_rounding_errors():
    # 0.7 * 100 is 70.00000000000001 in binary floating point
    assert calculate_grade(0.7, 1) == "B+"
    assert calculate_grade(0.9, 1) == "A+"


def test_negative_marks_fail():
    assert calculate_grade(-5, 100) == "F"


def test_marks_above_maximum_still_grade():
    assert calculate_grade(120, 100) == "A+"
