# backend/tutorbook/core/constants.py
"""Business constants that are not environment-tunable."""

from decimal import Decimal

# Cancellation penalty tiers as (lower bound in hours, bound inclusive, fraction of rate).
# A lead time falls into the first tier whose lower bound it passes. The 24h
# bound is inclusive: exactly one day's notice is charged at the 25% rate.
CANCELLATION_PENALTY_TIERS: tuple[tuple[float, bool, Decimal], ...] = (
    (72.0, False, Decimal("0")),
    (48.0, False, Decimal("0.125")),
    (24.0, True, Decimal("0.25")),
    (3.0, False, Decimal("1")),
)
# Fraction charged when the lead time is 3 hours or less
LAST_MINUTE_PENALTY_FRACTION = Decimal("3")

STUDENT_ABSENT_PAY_FRACTION = Decimal("0.5")

MONEY_QUANTUM = Decimal("0.01")

STUDENT_SELF_CANCEL_REASON = "Cancelled by student"
STUDENT_TECHNICAL_ISSUE_NOTE = (
    "Student unable to access classroom due to technical difficulties "
    "(camera/microphone access issues)"
)
