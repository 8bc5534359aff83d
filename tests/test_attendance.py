from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from hrms_lite.crud import attendance as crud_attendance
from hrms_lite.db.errors import FRIENDLY_DB_DOWN_MESSAGE
from hrms_lite.models.employee import Attendance, Employee
from hrms_lite.models.enums import AttendanceStatusEnum
from hrms_lite.schemas.employee import AttendanceCreate


def _mark(client, employee_id, date, status="Present"):
    return client.post("/api/attendance", json={"employeeId": employee_id, "date": date, "status": status})


def test_mark_then_overwrite_same_day(client, create_employee):
    ann = create_employee()

    first = _mark(client, ann["id"], "2024-03-01", "Present")
    assert first.status_code == 201
    assert first.json()["date"] == "2024-03-01T00:00:00.000"
    assert first.json()["status"] == "Present"
    assert first.json()["employee"]["fullName"] == "Ann Lee"

    second = _mark(client, ann["id"], "2024-03-01", "Absent")
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["status"] == "Absent"

    resp = client.get(
        f"/api/attendance/employee/{ann['id']}",
        params={"startDate": "2024-03-01", "endDate": "2024-03-01"},
    )
    assert resp.status_code == 200
    assert resp.json()["summary"] == {"totalRecords": 1, "totalPresent": 0, "totalAbsent": 1}
    assert len(resp.json()["attendances"]) == 1


def test_times_on_the_same_day_share_one_record(client, database, create_employee):
    ann = create_employee()

    morning = _mark(client, ann["id"], "2024-03-01T08:30:00", "Present")
    evening = _mark(client, ann["id"], "2024-03-01T17:45:12.345", "Absent")

    assert morning.status_code == 201
    assert evening.status_code == 200
    assert evening.json()["id"] == morning.json()["id"]
    assert evening.json()["date"] == "2024-03-01T00:00:00.000"
    with database.session() as db:
        assert db.query(Attendance).count() == 1


def test_mark_for_unknown_employee_is_404_and_writes_nothing(client, database):
    resp = _mark(client, "no-such-employee", "2024-03-01")

    assert resp.status_code == 404
    assert resp.json() == {"error": "Employee not found"}
    with database.session() as db:
        assert db.query(Attendance).count() == 0


@pytest.mark.parametrize(
    "payload, field, message",
    [
        ({"date": "2024-03-01", "status": "Present"}, "employeeId", "Employee ID is required"),
        ({"employeeId": "x", "date": "yesterday", "status": "Present"}, "date", "Valid date is required"),
        ({"employeeId": "x", "date": "2024-02-30", "status": "Present"}, "date", "Valid date is required"),
        ({"employeeId": "x", "date": "2024-03-01", "status": "Late"}, "status", "Status must be Present or Absent"),
    ],
)
def test_mark_validation_errors(client, payload, field, message):
    resp = client.post("/api/attendance", json=payload)

    assert resp.status_code == 400
    errors = {e["path"]: e["msg"] for e in resp.json()["errors"]}
    assert errors[field] == message


@pytest.fixture
def three_days(client, create_employee):
    ann = create_employee()
    bob = create_employee(employee_id="E2", full_name="Bob Ray", email="bob@x.com")
    for day, status in (("2024-03-01", "Present"), ("2024-03-02", "Absent"), ("2024-03-03", "Present")):
        _mark(client, ann["id"], day, status)
    _mark(client, bob["id"], "2024-03-02", "Present")
    return ann, bob


def _dates(resp):
    return [a["date"][:10] for a in resp.json()]


def test_list_without_range_is_unfiltered_and_newest_first(client, three_days):
    resp = client.get("/api/attendance")

    assert resp.status_code == 200
    assert _dates(resp) == ["2024-03-03", "2024-03-02", "2024-03-02", "2024-03-01"]
    assert set(resp.json()[0]["employee"]) == {"id", "employeeId", "fullName", "email", "department"}


def test_list_with_start_date_only(client, three_days):
    ann, _ = three_days

    resp = client.get("/api/attendance", params={"employeeId": ann["id"], "startDate": "2024-03-02T18:00:00"})

    assert _dates(resp) == ["2024-03-03", "2024-03-02"]


def test_list_with_end_date_only_includes_the_whole_end_day(client, three_days):
    ann, _ = three_days

    resp = client.get("/api/attendance", params={"employeeId": ann["id"], "endDate": "2024-03-02T00:00:00"})

    assert _dates(resp) == ["2024-03-02", "2024-03-01"]


def test_list_with_both_bounds_across_employees(client, three_days):
    resp = client.get("/api/attendance", params={"startDate": "2024-03-02", "endDate": "2024-03-02"})

    assert _dates(resp) == ["2024-03-02", "2024-03-02"]
    assert {a["employee"]["employeeId"] for a in resp.json()} == {"E1", "E2"}


def test_list_rejects_malformed_dates(client):
    resp = client.get("/api/attendance", params={"startDate": "03/01/2024"})

    assert resp.status_code == 400
    [error] = resp.json()["errors"]
    assert error["path"] == "startDate"
    assert error["location"] == "query"


def test_employee_attendance_summary(client, three_days):
    ann, _ = three_days

    resp = client.get(f"/api/attendance/employee/{ann['id']}")

    assert resp.status_code == 200
    assert resp.json()["summary"] == {"totalRecords": 3, "totalPresent": 2, "totalAbsent": 1}
    assert [a["date"][:10] for a in resp.json()["attendances"]] == ["2024-03-03", "2024-03-02", "2024-03-01"]


def test_employee_attendance_rejects_malformed_end_date(client, three_days):
    ann, _ = three_days

    resp = client.get(f"/api/attendance/employee/{ann['id']}", params={"endDate": "soon"})

    assert resp.status_code == 400


def test_dashboard_summary(client, three_days):
    ann, bob = three_days
    create_carl = client.post(
        "/api/employees",
        json={"employeeId": "E3", "fullName": "Carl", "email": "carl@x.com", "department": "HR"},
    )
    carl = create_carl.json()

    resp = client.get("/api/attendance/dashboard/summary")

    assert resp.status_code == 200
    body = resp.json()
    assert body["totalEmployees"] == 3
    assert body["totalAttendanceRecords"] == 4
    assert body["presentCount"] == 3
    assert body["absentCount"] == 1
    by_id = {e["id"]: e for e in body["employeesSummary"]}
    assert by_id[ann["id"]] == {
        "id": ann["id"],
        "employeeId": "E1",
        "fullName": "Ann Lee",
        "department": "Eng",
        "totalAttendanceDays": 3,
        "presentDays": 2,
    }
    assert by_id[bob["id"]]["totalAttendanceDays"] == 1
    assert by_id[bob["id"]]["presentDays"] == 1
    assert by_id[carl["id"]]["totalAttendanceDays"] == 0
    assert by_id[carl["id"]]["presentDays"] == 0


def test_lost_insert_race_updates_the_existing_row(database, monkeypatch):
    with database.session() as db:
        employee = Employee(employee_id="E1", full_name="Ann Lee", email="ann@x.com", department="Eng")
        db.add(employee)
        db.commit()

        first, created = crud_attendance.mark_attendance(
            db, AttendanceCreate(employee_id=employee.id, date="2024-03-01", status="Present")
        )
        assert created is True

        # Simulate a concurrent writer: the first lookup misses the row that is already there
        real_find = crud_attendance._find_for_day
        calls = []

        def racing_find(db, employee_id, day):
            calls.append(day)
            if len(calls) == 1:
                return None
            return real_find(db, employee_id, day)

        monkeypatch.setattr(crud_attendance, "_find_for_day", racing_find)

        second, created = crud_attendance.mark_attendance(
            db, AttendanceCreate(employee_id=employee.id, date="2024-03-01T15:00:00", status="Absent")
        )

        assert created is False
        assert second.id == first.id
        assert second.status == AttendanceStatusEnum.ABSENT.value
        assert len(calls) == 2
        assert db.query(Attendance).count() == 1


@pytest.mark.parametrize("date", ["9999-12-31", "0001-01-01T00:00:00+14:00"])
def test_mark_rejects_dates_at_the_edge_of_the_calendar(client, database, create_employee, date):
    ann = create_employee()

    resp = _mark(client, ann["id"], date)

    assert resp.status_code == 400
    errors = {e["path"]: e["msg"] for e in resp.json()["errors"]}
    assert errors["date"] == "Valid date is required"
    with database.session() as db:
        assert db.query(Attendance).count() == 0


def test_list_rejects_end_date_on_last_representable_day(client):
    resp = client.get("/api/attendance", params={"endDate": "9999-12-31"})

    assert resp.status_code == 400
    assert resp.json()["errors"][0]["path"] == "endDate"


def test_unresolved_conflict_after_lost_race_is_409(client, database, create_employee, monkeypatch):
    ann = create_employee()
    assert _mark(client, ann["id"], "2024-03-01", "Present").status_code == 201

    # The row exists, but neither lookup sees it
    monkeypatch.setattr(crud_attendance, "_find_for_day", lambda db, employee_id, day: None)

    resp = _mark(client, ann["id"], "2024-03-01", "Absent")

    assert resp.status_code == 409
    assert resp.json() == {"error": "Attendance already marked for this date"}
    with database.session() as db:
        [record] = db.query(Attendance).all()
        assert record.status == AttendanceStatusEnum.PRESENT.value


def test_unreachable_database_while_marking_returns_friendly_503(client, monkeypatch):
    def unreachable(db, attendance_in):
        raise OperationalError("INSERT", {}, Exception("Can't reach database server at `db:5432`"))

    monkeypatch.setattr(crud_attendance, "mark_attendance", unreachable)

    resp = _mark(client, "any-employee", "2024-03-01")

    assert resp.status_code == 503
    assert resp.json() == {"error": FRIENDLY_DB_DOWN_MESSAGE}
    assert "db:5432" not in resp.text
