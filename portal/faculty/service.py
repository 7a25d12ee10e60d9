# portal/faculty/service.py
"""
Faculty record management: single-record CRUD plus the CSV upserter.

The upserter commits each row on its own, so a bad row never rolls back
the rows before it.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from werkzeug.security import generate_password_hash

from portal.config import DELETE_POLICIES, FACULTY_DELETE_POLICY
from portal.errors import ConflictError, NotFoundError, ValidationError
from portal.faculty.models import User, ROLE_FACULTY
from portal.faculty.schemas import FacultyIn
from portal.salary.models import SalaryRecord
from portal.utils.batch import BatchResult, to_amount
from portal.utils.csv_reader import ParsedRow

log = logging.getLogger(__name__)


def public_fields(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "name": user.name,
        "role": user.role,
        "department": user.department,
        "designation": user.designation,
        "baseSalary": float(user.base_salary or 0),
    }


def _clean(value) -> str:
    return (value or "").strip()


def list_faculty(db: Session) -> List[User]:
    return db.query(User).filter(User.role == ROLE_FACULTY).order_by(User.username).all()


def get_faculty(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user or user.role != ROLE_FACULTY:
        raise NotFoundError("Faculty not found")
    return user


def _check_base_salary(value) -> Decimal:
    amount = Decimal(value)
    if amount < 0:
        raise ValidationError("Base salary cannot be negative.")
    return amount


def _commit_unique(db: Session, username: str):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"Username (Faculty ID) '{username}' already exists")


def create_faculty(db: Session, data: FacultyIn) -> User:
    username = _clean(data.username)
    name = _clean(data.name)
    department = _clean(data.department)
    designation = _clean(data.designation)

    if not (username and data.password and name and department and designation) or data.base_salary is None:
        raise ValidationError(
            "Please provide all required fields: name, ID, password, department, designation, and base salary."
        )

    if db.query(User).filter(User.username == username).first():
        raise ConflictError(f"Username (Faculty ID) '{username}' already exists")

    user = User(
        username=username,
        name=name,
        role=ROLE_FACULTY,
        department=department,
        designation=designation,
        base_salary=_check_base_salary(data.base_salary),
        password_hash=generate_password_hash(data.password),
    )
    db.add(user)
    _commit_unique(db, username)
    db.refresh(user)
    log.info("Created faculty %s", username)
    return user


def update_faculty(db: Session, user_id: int, data: FacultyIn) -> User:
    """Replace the mutable fields that were supplied; a blank password keeps the old one."""
    user = get_faculty(db, user_id)

    username = _clean(data.username)
    if username and username != user.username:
        taken = db.query(User).filter(User.username == username, User.id != user.id).first()
        if taken:
            raise ConflictError(f"Username (Faculty ID) '{username}' already exists")
        user.username = username

    if _clean(data.name):
        user.name = _clean(data.name)
    if data.department is not None:
        user.department = _clean(data.department) or "N/A"
    if data.designation is not None:
        user.designation = _clean(data.designation) or "N/A"
    if data.base_salary is not None:
        user.base_salary = _check_base_salary(data.base_salary)
    if data.password:
        user.password_hash = generate_password_hash(data.password)

    _commit_unique(db, user.username)
    db.refresh(user)
    log.info("Updated faculty id=%s (%s)", user.id, user.username)
    return user


def delete_faculty(db: Session, user_id: int, policy: str = FACULTY_DELETE_POLICY) -> Dict[str, Any]:
    """
    Delete one faculty user.

    policy "cascade" removes their salary records; "orphan" keeps them with
    faculty_id cleared (the username stays on each record).
    """
    if policy not in DELETE_POLICIES:
        raise ValueError(f"Unknown faculty delete policy: {policy!r}")

    user = get_faculty(db, user_id)
    records = db.query(SalaryRecord).filter(SalaryRecord.faculty_id == user.id)

    if policy == "cascade":
        affected = records.delete(synchronize_session="fetch")
    else:
        affected = records.update({SalaryRecord.faculty_id: None}, synchronize_session="fetch")

    username = user.username
    db.delete(user)
    db.commit()
    log.info("Deleted faculty %s (%s %d salary records)", username, policy, affected)

    return {
        "message": "Faculty deleted successfully",
        "username": username,
        "salaryRecordPolicy": policy,
        "salaryRecordsAffected": affected,
    }


def upsert_faculty_rows(db: Session, rows: Iterable[ParsedRow], require_password: bool = False) -> BatchResult:
    """
    Create or update one faculty user per CSV row, matched by username.
    The role is always forced to faculty.
    """
    result = BatchResult()

    for parsed in rows:
        if not parsed.ok:
            result.fail(parsed.line_number, parsed.error)
            continue

        item = parsed.values
        username = _clean(item.get("username"))
        name = _clean(item.get("name"))
        password = item.get("password") or ""

        if not username or not name:
            result.fail(parsed.line_number, "missing name or username.")
            continue
        if require_password and not password:
            result.fail(parsed.line_number, "missing password.", username)
            continue

        base_salary = to_amount(item.get("baseSalary"))
        if base_salary < 0:
            result.fail(parsed.line_number, "base salary cannot be negative.", username)
            continue

        try:
            user = db.query(User).filter(User.username == username).first()
            if user is not None and user.role != ROLE_FACULTY:
                result.fail(parsed.line_number, "username belongs to a non-faculty account.", username)
                continue

            created = user is None
            if created:
                user = User(username=username)
                db.add(user)

            user.name = name
            user.role = ROLE_FACULTY
            user.department = _clean(item.get("department")) or "N/A"
            user.designation = _clean(item.get("designation")) or "N/A"
            user.base_salary = base_salary
            if password:
                user.password_hash = generate_password_hash(password)

            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            log.warning("Faculty row %s (%s) not saved: %s", parsed.line_number, username, exc)
            result.fail(parsed.line_number, "could not be saved.", username)
            continue

        result.succeeded += 1
        if created:
            result.added += 1
        else:
            result.updated += 1

    for error in result.errors:
        log.warning("Faculty upload: %s", error)
    log.info(
        "Faculty upload done: %d ok (%d added, %d updated), %d failed",
        result.succeeded, result.added, result.updated, result.failed,
    )
    return result
