# portal/faculty/schemas.py
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class FacultyIn(BaseModel):
    """Body of POST/PUT /faculty. Presence of fields is checked in the service."""

    username: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    base_salary: Optional[Decimal] = Field(None, alias="baseSalary")

    model_config = {"populate_by_name": True}
