# portal/faculty/models.py

from datetime import datetime

from sqlalchemy import Column, Integer, String, DECIMAL, DateTime
from portal.database import Base

ROLE_ADMIN = "admin"
ROLE_FACULTY = "faculty"
ROLES = (ROLE_ADMIN, ROLE_FACULTY)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_FACULTY)
    department = Column(String(100), nullable=False, default="N/A")
    designation = Column(String(100), nullable=False, default="N/A")
    base_salary = Column(DECIMAL(12, 2), nullable=False, default=0)
    # salted hash from werkzeug; NULL means no usable credential yet
    password_hash = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def __repr__(self):
        return f"<User id={self.id} username={self.username} role={self.role}>"
