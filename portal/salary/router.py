# portal/salary/router.py
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response
from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session, joinedload

from portal.auth.dependencies import admin_required, get_current_user
from portal.config import UPLOAD_DIR
from portal.database import get_db
from portal.errors import AuthorizationError, NotFoundError, ValidationError
from portal.faculty.models import User
from portal.faculty.service import upsert_faculty_rows
from portal.salary import reports
from portal.salary.importer import import_salary_rows
from portal.salary.models import SalaryRecord, EARNING_FIELDS, DEDUCTION_FIELDS
from portal.salary.periods import (
    MONTH_INDEX, REPORT_WINDOWS, last_n_months, normalize_month, parse_year, period_key,
)
from portal.utils.csv_reader import FACULTY_COLUMNS, SALARY_COLUMNS, read_rows, stored_upload

log = logging.getLogger(__name__)

router = APIRouter(prefix="/salary", tags=["salary"])


# -------------------- helpers --------------------
def record_fields(record: SalaryRecord) -> Dict[str, Any]:
    data = {
        "id": record.id,
        "facultyId": record.faculty_id,
        "username": record.username,
        "month": record.month,
        "year": record.year,
        "amount": float(record.amount),
        "createdAt": record.created_at.isoformat() if record.created_at else None,
    }
    for name in EARNING_FIELDS + DEDUCTION_FIELDS:
        data[name] = float(record.component(name))
    # CSV spelling of the one camelCase column
    data["professionalTax"] = data.pop("professional_tax")
    return data


def _records_query(db: Session):
    return db.query(SalaryRecord).options(joinedload(SalaryRecord.faculty))


def _pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _zip_response(result: reports.ArchiveResult, filename: str) -> Response:
    return Response(
        content=result.content,
        media_type="application/zip",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Archive-Entries": str(len(result.entries)),
            "X-Archive-Failed": str(len(result.failed)),
        },
    )


def _resolve_subject(db: Session, username: str, current_user: User) -> User:
    """Look up ``username`` and make sure the caller may see its payslips."""
    subject = db.query(User).filter(User.username == username).first()
    if not subject:
        raise NotFoundError("Faculty not found.")
    if not current_user.is_admin and current_user.id != subject.id:
        raise AuthorizationError("Access denied. You can only view your own payslips.")
    return subject


# -------------------- uploads --------------------
@router.post("/upload-monthly", status_code=201)
def upload_monthly_salary(
    file: UploadFile = File(...),
    month: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    _admin: User = Depends(admin_required),
):
    if not month or not year:
        raise ValidationError("Month and Year are required.")
    month_name = normalize_month(month)
    year_value = parse_year(year)

    with stored_upload(file, UPLOAD_DIR) as path:
        with path.open("rb") as fh:
            result = import_salary_rows(db, read_rows(fh, SALARY_COLUMNS), month_name, year_value)

    return {
        "message": "Monthly Salary CSV processing complete",
        "created": result.succeeded,
        "failed": result.failed,
        "errors": result.errors,
    }


@router.post("/upload-faculty", status_code=201)
def upload_faculty_data(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    _admin: User = Depends(admin_required),
):
    with stored_upload(file, UPLOAD_DIR) as path:
        with path.open("rb") as fh:
            result = upsert_faculty_rows(db, read_rows(fh, FACULTY_COLUMNS))

    return {
        "message": "Faculty Data CSV processing complete",
        "successful": result.succeeded,
        "failed": result.failed,
        "errors": result.preview(),
    }


# -------------------- history --------------------
@router.get("/my-history")
def my_history(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    records = db.query(SalaryRecord).filter(SalaryRecord.faculty_id == current_user.id).all()
    return [record_fields(r) for r in reports.newest_first(records)]


@router.get("/history")
def salary_history(db: Session = Depends(get_db), _admin: User = Depends(admin_required)):
    rows = (
        db.query(SalaryRecord.year, SalaryRecord.month, func.count(SalaryRecord.id))
        .group_by(SalaryRecord.year, SalaryRecord.month)
        .all()
    )
    history = [
        {"year": year, "month": month, "monthOrder": MONTH_INDEX.get(month, -1), "count": count}
        for year, month, count in rows
    ]
    history.sort(key=lambda h: period_key(h["year"], h["month"]), reverse=True)
    return history


@router.delete("/history/{year}/{month}")
def delete_period(year: int, month: str, db: Session = Depends(get_db), _admin: User = Depends(admin_required)):
    month_name = normalize_month(month)
    deleted = (
        db.query(SalaryRecord)
        .filter(SalaryRecord.year == year, SalaryRecord.month == month_name)
        .delete(synchronize_session=False)
    )
    if deleted == 0:
        db.rollback()
        raise NotFoundError("No records found to delete for this period.")
    db.commit()
    log.info("Deleted %d salary records for %s %s", deleted, month_name, year)
    return {
        "message": f"Successfully deleted {deleted} records for {month_name} {year}.",
        "deleted": deleted,
    }


# -------------------- PDF reports --------------------
@router.get("/report/{months}")
def trailing_report(months: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    if months not in REPORT_WINDOWS:
        raise ValidationError("Invalid report period.")

    window = last_n_months(months)
    period_filter = or_(*[and_(SalaryRecord.month == m, SalaryRecord.year == y) for m, y in window])
    query = _records_query(db).filter(period_filter)

    if current_user.is_admin:
        records = reports.grouped_by_faculty(query.all())
    else:
        records = reports.chronological(query.filter(SalaryRecord.faculty_id == current_user.id).all())

    if not records:
        raise NotFoundError("No salary records found for this period.")

    content = reports.build_payslip_collection(records, title=f"Payslips - last {months} months")
    return _pdf_response(content, f"Detailed_Payslip_Collection_Last_{months}_Months.pdf")


@router.get("/download/{year}")
def annual_report(year: int, db: Session = Depends(get_db), _admin: User = Depends(admin_required)):
    records = reports.grouped_by_faculty(_records_query(db).filter(SalaryRecord.year == year).all())
    if not records:
        raise NotFoundError("No records found for this year.")

    content = reports.build_payslip_collection(records, title=f"Annual Payslip Report {year}")
    return _pdf_response(content, f"Annual_Payslip_Report_{year}.pdf")


@router.get("/download/{year}/{month}")
def monthly_report(year: int, month: str, db: Session = Depends(get_db), _admin: User = Depends(admin_required)):
    month_name = normalize_month(month)
    records: List[SalaryRecord] = (
        _records_query(db)
        .filter(SalaryRecord.year == year, SalaryRecord.month == month_name)
        .order_by(SalaryRecord.username)
        .all()
    )
    if not records:
        raise NotFoundError("No records found for this period.")

    content = reports.build_payslip_collection(records, title=f"Monthly Payslip Report {month_name} {year}")
    return _pdf_response(content, f"Monthly_Payslip_Report_{month_name}_{year}.pdf")


@router.get("/payslip/{username}/{year}/{month}")
def single_payslip(
    username: str,
    year: int,
    month: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    subject = _resolve_subject(db, username, current_user)
    month_name = normalize_month(month)

    record = _records_query(db).filter(
        SalaryRecord.faculty_id == subject.id,
        SalaryRecord.year == year,
        SalaryRecord.month == month_name,
    ).first()
    if not record:
        raise NotFoundError("Payslip record not found for this period.")

    content = reports.build_payslip_collection([record], title=f"Payslip {username} {month_name} {year}")
    return _pdf_response(content, f"Payslip_{username}_{month_name}_{year}.pdf")


# -------------------- ZIP archives --------------------
@router.get("/payslips-all/{username}")
def all_payslips_for_faculty(
    username: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    subject = _resolve_subject(db, username, current_user)
    records = reports.newest_first(_records_query(db).filter(SalaryRecord.faculty_id == subject.id).all())
    if not records:
        raise NotFoundError("No salary records found for this faculty.")

    result = reports.build_payslip_archive(records, reports.faculty_entry_name)
    return _zip_response(result, f"Payslips_{username}_All.zip")


@router.get("/payslips-monthly-all/{year}/{month}")
def all_payslips_for_month(
    year: int,
    month: str,
    db: Session = Depends(get_db),
    _admin: User = Depends(admin_required),
):
    month_name = normalize_month(month)
    records = (
        _records_query(db)
        .filter(SalaryRecord.year == year, SalaryRecord.month == month_name)
        .order_by(SalaryRecord.username)
        .all()
    )
    if not records:
        raise NotFoundError("No detailed salary records found for this month.")

    result = reports.build_payslip_archive(records, reports.monthly_entry_name)
    return _zip_response(result, f"Payslips_All_{month_name}_{year}.zip")
