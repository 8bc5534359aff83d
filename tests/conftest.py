from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from hrms_lite.core.config import Settings
from hrms_lite.db.session import Database
from hrms_lite.main import create_app


@pytest.fixture
def database():
    db = Database("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def settings():
    return Settings(DATABASE_URL="sqlite://", DB_CONNECT_RETRIES=1, DB_CONNECT_DELAY_MS=0)


@pytest.fixture
def client(database, settings):
    app = create_app(settings=settings, database=database)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def create_employee(client):
    def _create(employee_id="E1", full_name="Ann Lee", email="ann@x.com", department="Eng"):
        resp = client.post(
            "/api/employees",
            json={"employeeId": employee_id, "fullName": full_name, "email": email, "department": department},
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create
