import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from hrms_lite.db.base import Base

__all__ = ["Employee", "Attendance"]


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Employee(Base):
    __tablename__ = "employees"

    id = Column(String(36), primary_key=True, default=_new_id)
    employee_id = Column(String(50), unique=True, nullable=False)
    full_name = Column(String(150), nullable=False)
    email = Column(String(150), unique=True, nullable=False)
    department = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    attendances = relationship(
        "Attendance",
        back_populates="employee",
        cascade="all, delete-orphan",
        order_by="Attendance.date.desc()",
    )


class Attendance(Base):
    __tablename__ = "attendance"

    # Backstop for concurrent marks of the same employee and day
    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="unique_employee_date"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    employee_id = Column(String(36), ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    # Start of the calendar day, server local time
    date = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    employee = relationship("Employee", back_populates="attendances")
