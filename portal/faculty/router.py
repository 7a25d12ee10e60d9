# portal/faculty/router.py
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from portal.auth.dependencies import admin_required, faculty_required
from portal.config import UPLOAD_DIR
from portal.database import get_db
from portal.faculty import service
from portal.faculty.models import User
from portal.faculty.schemas import FacultyIn
from portal.utils.csv_reader import FACULTY_COLUMNS, read_rows, stored_upload

router = APIRouter(prefix="/faculty", tags=["faculty"])


@router.get("")
def list_faculty(db: Session = Depends(get_db), _admin: User = Depends(admin_required)):
    return [service.public_fields(u) for u in service.list_faculty(db)]


@router.post("", status_code=201)
def create_faculty(body: FacultyIn, db: Session = Depends(get_db), _admin: User = Depends(admin_required)):
    user = service.create_faculty(db, body)
    return service.public_fields(user)


# declared before /{user_id} so "me" is not parsed as an id
@router.get("/me")
def read_my_profile(user: User = Depends(faculty_required)):
    return service.public_fields(user)


@router.post("/upload", status_code=201)
def upload_faculty_csv(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    _admin: User = Depends(admin_required),
):
    with stored_upload(file, UPLOAD_DIR) as path:
        with path.open("rb") as fh:
            result = service.upsert_faculty_rows(db, read_rows(fh, FACULTY_COLUMNS), require_password=True)

    return {
        "message": "Faculty Details CSV processing complete",
        "added": result.added,
        "updated": result.updated,
        "failed": result.failed,
        "errors": result.preview(),
    }


@router.get("/{user_id}")
def read_faculty(user_id: int, db: Session = Depends(get_db), _admin: User = Depends(admin_required)):
    user = service.get_faculty(db, user_id)
    data = service.public_fields(user)
    # the credential is a one-way hash, so the edit form only learns whether one is set
    data["hasPassword"] = bool(user.password_hash)
    return data


@router.put("/{user_id}")
def update_faculty(
    user_id: int,
    body: FacultyIn,
    db: Session = Depends(get_db),
    _admin: User = Depends(admin_required),
):
    user = service.update_faculty(db, user_id, body)
    return service.public_fields(user)


@router.delete("/{user_id}")
def delete_faculty(user_id: int, db: Session = Depends(get_db), _admin: User = Depends(admin_required)):
    return service.delete_faculty(db, user_id)
