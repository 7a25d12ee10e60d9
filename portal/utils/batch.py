# portal/utils/batch.py
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List

PREVIEW_ERRORS = 3
PAISA = Decimal("0.01")


@dataclass
class BatchResult:
    """Outcome of a bulk upload; rows are counted independently."""

    succeeded: int = 0
    added: int = 0
    updated: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    def fail(self, line_number: int, message: str, key: str = ""):
        self.failed += 1
        label = f"Row {line_number}" + (f" ({key})" if key else "")
        self.errors.append(f"{label}: {message}")

    def preview(self, limit: int = PREVIEW_ERRORS) -> List[str]:
        return self.errors[:limit]


def to_decimal(value) -> Decimal:
    """Lenient numeric parse; blanks and junk become 0."""
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")
    return number if number.is_finite() else Decimal("0")


def to_amount(value) -> Decimal:
    """``to_decimal`` rounded half-up to whole paise, the scale of the money columns."""
    try:
        return to_decimal(value).quantize(PAISA, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return Decimal("0")
