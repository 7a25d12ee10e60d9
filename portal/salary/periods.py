# portal/salary/periods.py
from datetime import date
from typing import List, Optional, Tuple

from portal.errors import ValidationError

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
MONTH_INDEX = {m: i for i, m in enumerate(MONTHS)}

REPORT_WINDOWS = (3, 6, 9, 12, 24, 36, 60)


def normalize_month(value) -> str:
    """Return the canonical month name for ``value`` ("march", " MARCH " -> "March")."""
    name = str(value or "").strip().title()
    if name not in MONTH_INDEX:
        raise ValidationError(f"Invalid month '{value}'. Use a full month name such as 'January'.")
    return name


def parse_year(value) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid year '{value}'.")


def month_number(month: str) -> int:
    """1-based calendar number for a month name."""
    return MONTH_INDEX[month] + 1


def period_key(year: int, month: str) -> Tuple[int, int]:
    return int(year), MONTH_INDEX.get(month, -1)


def last_n_months(n: int, today: Optional[date] = None) -> List[Tuple[str, int]]:
    """(month, year) pairs for the trailing ``n`` months, current month first."""
    today = today or date.today()
    result = []
    y, m = today.year, today.month - 1
    for _ in range(n):
        result.append((MONTHS[m], y))
        m -= 1
        if m < 0:
            m = 11
            y -= 1
    return result
