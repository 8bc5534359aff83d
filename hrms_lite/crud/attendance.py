import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from hrms_lite.core.exceptions import ConflictError, NotFoundError
from hrms_lite.db.errors import is_unique_violation
from hrms_lite.helpers.utils import day_bucket, end_of_day, start_of_day
from hrms_lite.models.employee import Attendance, Employee
from hrms_lite.models.enums import AttendanceStatusEnum
from hrms_lite.schemas.employee import AttendanceCreate

logger = logging.getLogger(__name__)


def build_date_filters(start_date: Optional[datetime] = None, end_date: Optional[datetime] = None) -> list:
    """
    Inclusive day-granularity range on Attendance.date.

    start_date is widened to 00:00:00.000 and end_date to 23:59:59.999 of
    their days. A missing bound leaves that side open.
    """
    filters = []
    if start_date is not None:
        filters.append(Attendance.date >= start_of_day(start_date))
    if end_date is not None:
        filters.append(Attendance.date <= end_of_day(end_date))
    return filters


def list_attendance(
    db: Session,
    employee_id: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> List[Attendance]:
    query = db.query(Attendance).options(joinedload(Attendance.employee))
    if employee_id:
        query = query.filter(Attendance.employee_id == employee_id)
    for criterion in build_date_filters(start_date, end_date):
        query = query.filter(criterion)
    return query.order_by(Attendance.date.desc()).all()


def summarize(records: List[Attendance]) -> Dict[str, int]:
    total_present = sum(1 for a in records if a.status == AttendanceStatusEnum.PRESENT.value)
    total_absent = sum(1 for a in records if a.status == AttendanceStatusEnum.ABSENT.value)
    return {
        "total_records": len(records),
        "total_present": total_present,
        "total_absent": total_absent,
    }


def _find_for_day(db: Session, employee_id: str, day: datetime) -> Optional[Attendance]:
    day_start, day_end = day_bucket(day)
    return (
        db.query(Attendance)
        .filter(
            Attendance.employee_id == employee_id,
            Attendance.date >= day_start,
            Attendance.date < day_end,
        )
        .first()
    )


def _set_status(db: Session, attendance: Attendance, status: AttendanceStatusEnum) -> Attendance:
    attendance.status = status.value
    db.commit()
    db.refresh(attendance)
    return attendance


def mark_attendance(db: Session, attendance_in: AttendanceCreate) -> Tuple[Attendance, bool]:
    """
    Record the employee's status for a calendar day.

    One row per employee per day: marking the same day again overwrites the
    status of the existing row. Returns ``(record, created)``.
    """
    employee = db.query(Employee).filter(Employee.id == attendance_in.employee_id).first()
    if not employee:
        raise NotFoundError("Employee not found")

    attendance_date = start_of_day(attendance_in.date)

    existing = _find_for_day(db, employee.id, attendance_date)
    if existing:
        return _set_status(db, existing, attendance_in.status), False

    attendance = Attendance(
        employee_id=employee.id,
        date=attendance_date,
        status=attendance_in.status.value,
    )
    db.add(attendance)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if not is_unique_violation(exc):
            raise
        # Lost the race against a concurrent mark for the same day
        logger.info(
            "Attendance for employee %s on %s was created concurrently, updating it instead.",
            employee.id,
            attendance_date.date(),
        )
        winner = _find_for_day(db, employee.id, attendance_date)
        if winner is None:
            raise ConflictError("Attendance already marked for this date") from exc
        return _set_status(db, winner, attendance_in.status), False

    db.refresh(attendance)
    return attendance, True


def dashboard_summary(db: Session) -> Dict[str, Any]:
    present = AttendanceStatusEnum.PRESENT.value
    absent = AttendanceStatusEnum.ABSENT.value

    total_employees = db.query(func.count(Employee.id)).scalar()
    total_attendance_records = db.query(func.count(Attendance.id)).scalar()
    present_count = db.query(func.count(Attendance.id)).filter(Attendance.status == present).scalar()
    absent_count = db.query(func.count(Attendance.id)).filter(Attendance.status == absent).scalar()

    present_days_expr = func.coalesce(func.sum(case((Attendance.status == present, 1), else_=0)), 0)
    rows = (
        db.query(
            Employee,
            func.count(Attendance.id).label("total_attendance_days"),
            present_days_expr.label("present_days"),
        )
        .outerjoin(Attendance, Attendance.employee_id == Employee.id)
        .group_by(Employee.id)
        .order_by(Employee.created_at.desc())
        .all()
    )

    employees_summary = [
        {
            "id": emp.id,
            "employee_id": emp.employee_id,
            "full_name": emp.full_name,
            "department": emp.department,
            "total_attendance_days": total_days,
            "present_days": int(present_days or 0),
        }
        for emp, total_days, present_days in rows
    ]

    return {
        "total_employees": total_employees,
        "total_attendance_records": total_attendance_records,
        "present_count": present_count,
        "absent_count": absent_count,
        "employees_summary": employees_summary,
    }
