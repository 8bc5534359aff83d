from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hrms_lite.crud import employee as crud_employee
from hrms_lite.db.session import get_db
from hrms_lite.helpers.response import ResponseHandler
from hrms_lite.schemas.employee import EmployeeCreate, EmployeeDetail, EmployeeListItem, EmployeeResponse

router = APIRouter(
    prefix="/api/employees",
    tags=["Employees"],
)

# 👉 List employees with attendance counts
@router.get("")
def list_employees(db: Session = Depends(get_db)):
    try:
        rows = crud_employee.list_employees(db)
        data = [
            EmployeeListItem(**EmployeeResponse.model_validate(employee).model_dump(), attendance_count=count)
            for employee, count in rows
        ]
        return ResponseHandler.success(data=data)
    except Exception as e:
        return ResponseHandler.from_exception(e)

# 👉 Get one employee with attendance history
@router.get("/{employee_id}")
def get_employee(employee_id: str, db: Session = Depends(get_db)):
    try:
        employee = crud_employee.get_employee(db, employee_id)
        return ResponseHandler.success(data=EmployeeDetail.model_validate(employee))
    except Exception as e:
        return ResponseHandler.from_exception(e)

# 👉 Create employee
@router.post("", status_code=201)
def create_employee(employee_in: EmployeeCreate, db: Session = Depends(get_db)):
    try:
        employee = crud_employee.create_employee(db, employee_in)
        return ResponseHandler.created(data=EmployeeResponse.model_validate(employee))
    except Exception as e:
        db.rollback()
        return ResponseHandler.from_exception(e)

# 👉 Delete employee (attendance goes with it)
@router.delete("/{employee_id}", status_code=204)
def delete_employee(employee_id: str, db: Session = Depends(get_db)):
    try:
        crud_employee.delete_employee(db, employee_id)
        return ResponseHandler.no_content()
    except Exception as e:
        db.rollback()
        return ResponseHandler.from_exception(e)
