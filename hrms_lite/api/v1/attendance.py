from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hrms_lite.crud import attendance as crud_attendance
from hrms_lite.db.session import get_db
from hrms_lite.helpers.response import ResponseHandler
from hrms_lite.schemas.employee import (
    AttendanceCreate,
    AttendanceWithEmployee,
    DashboardSummary,
    EmployeeAttendanceResponse,
    IsoDateTime,
)

router = APIRouter(
    prefix="/api/attendance",
    tags=["Attendance"],
)

# 👉 List attendance, optionally filtered by employee and date range
@router.get("")
def list_attendance(
    employee_id: Optional[str] = Query(None, alias="employeeId"),
    start_date: Optional[IsoDateTime] = Query(None, alias="startDate"),
    end_date: Optional[IsoDateTime] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
):
    try:
        records = crud_attendance.list_attendance(
            db,
            employee_id=employee_id.strip() if employee_id else None,
            start_date=start_date,
            end_date=end_date,
        )
        return ResponseHandler.success(data=[AttendanceWithEmployee.model_validate(r) for r in records])
    except Exception as e:
        return ResponseHandler.from_exception(e)

# 👉 Attendance for one employee plus present/absent totals
@router.get("/employee/{employee_id}")
def get_employee_attendance(
    employee_id: str,
    start_date: Optional[IsoDateTime] = Query(None, alias="startDate"),
    end_date: Optional[IsoDateTime] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
):
    try:
        records = crud_attendance.list_attendance(
            db, employee_id=employee_id, start_date=start_date, end_date=end_date
        )
        data = EmployeeAttendanceResponse(
            attendances=[AttendanceWithEmployee.model_validate(r) for r in records],
            summary=crud_attendance.summarize(records),
        )
        return ResponseHandler.success(data=data)
    except Exception as e:
        return ResponseHandler.from_exception(e)

# 👉 Mark attendance: 201 on first mark of the day, 200 when overwriting it
@router.post("", status_code=201)
def mark_attendance(attendance_in: AttendanceCreate, db: Session = Depends(get_db)):
    try:
        attendance, created = crud_attendance.mark_attendance(db, attendance_in)
        data = AttendanceWithEmployee.model_validate(attendance)
        if created:
            return ResponseHandler.created(data=data)
        return ResponseHandler.success(data=data)
    except Exception as e:
        db.rollback()
        return ResponseHandler.from_exception(e)

# 👉 Dashboard counts
@router.get("/dashboard/summary")
def dashboard_summary(db: Session = Depends(get_db)):
    try:
        data = DashboardSummary.model_validate(crud_attendance.dashboard_summary(db))
        return ResponseHandler.success(data=data)
    except Exception as e:
        return ResponseHandler.from_exception(e)
