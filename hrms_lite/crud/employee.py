from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from hrms_lite.core.exceptions import ConflictError, NotFoundError
from hrms_lite.db.errors import is_unique_violation
from hrms_lite.models.employee import Attendance, Employee
from hrms_lite.schemas.employee import EmployeeCreate


def list_employees(db: Session) -> List[Tuple[Employee, int]]:
    """All employees with their attendance count, newest first."""
    return (
        db.query(Employee, func.count(Attendance.id))
        .outerjoin(Attendance, Attendance.employee_id == Employee.id)
        .group_by(Employee.id)
        .order_by(Employee.created_at.desc())
        .all()
    )


def get_employee(db: Session, employee_id: str) -> Employee:
    employee = (
        db.query(Employee)
        .options(selectinload(Employee.attendances))
        .filter(Employee.id == employee_id)
        .first()
    )
    if not employee:
        raise NotFoundError("Employee not found")
    return employee


def _duplicate_reason(db: Session, employee_in: EmployeeCreate) -> Optional[str]:
    if db.query(Employee).filter(Employee.employee_id == employee_in.employee_id).first():
        return "Employee ID already exists"
    if db.query(Employee).filter(Employee.email == employee_in.email).first():
        return "Email already exists"
    return None


def create_employee(db: Session, employee_in: EmployeeCreate) -> Employee:
    reason = _duplicate_reason(db, employee_in)
    if reason:
        raise ConflictError(reason)

    employee = Employee(
        employee_id=employee_in.employee_id,
        full_name=employee_in.full_name,
        email=employee_in.email,
        department=employee_in.department,
    )
    db.add(employee)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        # A concurrent create slipped in between the checks and the insert
        if is_unique_violation(exc):
            raise ConflictError("Duplicate entry detected") from exc
        raise
    db.refresh(employee)
    return employee


def delete_employee(db: Session, employee_id: str) -> None:
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise NotFoundError("Employee not found")
    db.delete(employee)
    db.commit()
