# portal/salary/models.py

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Column, Integer, String, DECIMAL, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from portal.database import Base

EARNING_FIELDS = ("basic", "hra", "da", "conveyance", "medical", "other_earnings")
DEDUCTION_FIELDS = ("pf", "tax", "professional_tax", "other_deductions")


class SalaryRecord(Base):
    __tablename__ = "salary_records"
    __table_args__ = (
        UniqueConstraint("faculty_id", "month", "year", name="uq_salary_faculty_period"),
    )

    id = Column(Integer, primary_key=True, index=True)
    faculty_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    username = Column(String(50), nullable=False, index=True)
    month = Column(String(20), nullable=False)   # "January" .. "December"
    year = Column(Integer, nullable=False)

    # net pay, stored at import time
    amount = Column(DECIMAL(12, 2), nullable=False)

    basic = Column(DECIMAL(12, 2), nullable=False, default=0)
    hra = Column(DECIMAL(12, 2), nullable=False, default=0)
    da = Column(DECIMAL(12, 2), nullable=False, default=0)
    conveyance = Column(DECIMAL(12, 2), nullable=False, default=0)
    medical = Column(DECIMAL(12, 2), nullable=False, default=0)
    other_earnings = Column(DECIMAL(12, 2), nullable=False, default=0)

    pf = Column(DECIMAL(12, 2), nullable=False, default=0)
    tax = Column(DECIMAL(12, 2), nullable=False, default=0)
    professional_tax = Column(DECIMAL(12, 2), nullable=False, default=0)
    other_deductions = Column(DECIMAL(12, 2), nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    faculty = relationship("User", backref="salary_records")

    def component(self, name: str) -> Decimal:
        return Decimal(getattr(self, name) or 0)

    def __repr__(self):
        return f"<SalaryRecord id={self.id} username={self.username} period={self.month} {self.year}>"
