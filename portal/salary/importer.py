# portal/salary/importer.py
"""
Monthly salary CSV import.

One SalaryRecord per (faculty, month, year). Existing records are never
overwritten: the pre-insert check gives a readable message and the table's
unique constraint backs it up against concurrent imports.
"""
import logging
from decimal import Decimal
from typing import Dict, Iterable, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from portal.faculty.models import User, ROLE_FACULTY
from portal.salary.models import SalaryRecord
from portal.utils.batch import BatchResult, to_amount
from portal.utils.csv_reader import ParsedRow

log = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("username", "basic", "pf", "tax")

# CSV column -> SalaryRecord attribute
EARNING_COLUMNS = {
    "basic": "basic",
    "hra": "hra",
    "da": "da",
    "conveyance": "conveyance",
    "medical": "medical",
    "other_earnings": "other_earnings",
}
DEDUCTION_COLUMNS = {
    "pf": "pf",
    "tax": "tax",
    "professionalTax": "professional_tax",
    "other_deductions": "other_deductions",
}


def compute_net(item: Dict[str, str]) -> Tuple[Dict[str, Decimal], Decimal, Decimal, Decimal]:
    """Return (components, total_earnings, total_deductions, net) for one CSV row."""
    components = {}
    for column, attr in {**EARNING_COLUMNS, **DEDUCTION_COLUMNS}.items():
        components[attr] = to_amount(item.get(column))

    total_earnings = sum((components[a] for a in EARNING_COLUMNS.values()), Decimal("0"))
    total_deductions = sum((components[a] for a in DEDUCTION_COLUMNS.values()), Decimal("0"))
    return components, total_earnings, total_deductions, total_earnings - total_deductions


def import_salary_rows(db: Session, rows: Iterable[ParsedRow], month: str, year: int) -> BatchResult:
    """
    Create salary records for one pay period from parsed CSV rows.
    ``month`` must already be a canonical month name.
    """
    result = BatchResult()

    for parsed in rows:
        if not parsed.ok:
            result.fail(parsed.line_number, parsed.error)
            continue

        item = parsed.values
        username = (item.get("username") or "").strip()

        if any(not (item.get(col) or "").strip() for col in REQUIRED_COLUMNS):
            result.fail(parsed.line_number, "missing username, basic, PF, or tax amount.", username)
            continue

        faculty = db.query(User).filter(User.username == username, User.role == ROLE_FACULTY).first()
        if not faculty:
            result.fail(parsed.line_number, f"faculty '{username}' not found.", username)
            continue

        existing = db.query(SalaryRecord).filter(
            SalaryRecord.faculty_id == faculty.id,
            SalaryRecord.month == month,
            SalaryRecord.year == year,
        ).first()
        if existing:
            result.fail(parsed.line_number, f"salary for {username} for {month} {year} already exists.", username)
            continue

        components, _, _, net = compute_net(item)
        if net < 0:
            result.fail(
                parsed.line_number,
                f"calculated net amount is negative ({net:.2f}). Check component values.",
                username,
            )
            continue

        record = SalaryRecord(
            faculty_id=faculty.id,
            username=username,
            month=month,
            year=year,
            amount=net,
            **components,
        )
        try:
            db.add(record)
            db.commit()
        except IntegrityError:
            db.rollback()
            result.fail(parsed.line_number, f"salary for {username} for {month} {year} already exists.", username)
            continue
        except SQLAlchemyError as exc:
            db.rollback()
            log.warning("Salary row %s (%s) not saved: %s", parsed.line_number, username, exc)
            result.fail(parsed.line_number, "could not be saved.", username)
            continue

        result.succeeded += 1
        result.added += 1

    for error in result.errors:
        log.warning("Salary upload %s %s: %s", month, year, error)
    log.info("Salary upload %s %s done: %d created, %d failed", month, year, result.succeeded, result.failed)
    return result
