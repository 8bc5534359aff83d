from datetime import datetime
from typing import Annotated, List

from pydantic import BaseModel, BeforeValidator, ConfigDict, EmailStr, PlainSerializer, StringConstraints
from pydantic.alias_generators import to_camel

from hrms_lite.helpers.utils import parse_iso_datetime
from hrms_lite.models.enums import AttendanceStatusEnum

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

# Accepts any ISO-8601 string, yields a naive local datetime
IsoDateTime = Annotated[datetime, BeforeValidator(parse_iso_datetime)]

# 2024-03-01T00:00:00.000
IsoMillis = Annotated[datetime, PlainSerializer(lambda v: v.isoformat(timespec="milliseconds"), return_type=str)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ---------- Requests ----------

class EmployeeCreate(CamelModel):
    employee_id: NonEmptyStr
    full_name: NonEmptyStr
    email: EmailStr
    department: NonEmptyStr


class AttendanceCreate(CamelModel):
    employee_id: NonEmptyStr
    date: IsoDateTime
    status: AttendanceStatusEnum


# ---------- Responses ----------

class EmployeeBrief(CamelModel):
    id: str
    employee_id: str
    full_name: str
    email: str
    department: str


class EmployeeResponse(EmployeeBrief):
    created_at: IsoMillis


class AttendanceResponse(CamelModel):
    id: str
    employee_id: str
    date: IsoMillis
    status: AttendanceStatusEnum
    created_at: IsoMillis
    updated_at: IsoMillis


class AttendanceWithEmployee(AttendanceResponse):
    employee: EmployeeBrief


class EmployeeListItem(EmployeeResponse):
    attendance_count: int


class EmployeeDetail(EmployeeResponse):
    attendances: List[AttendanceResponse]


class AttendanceSummary(CamelModel):
    total_records: int
    total_present: int
    total_absent: int


class EmployeeAttendanceResponse(CamelModel):
    attendances: List[AttendanceWithEmployee]
    summary: AttendanceSummary


class EmployeeDashboardItem(CamelModel):
    id: str
    employee_id: str
    full_name: str
    department: str
    total_attendance_days: int
    present_days: int


class DashboardSummary(CamelModel):
    total_employees: int
    total_attendance_records: int
    present_count: int
    absent_count: int
    employees_summary: List[EmployeeDashboardItem]
