"""Pytest fixtures: throwaway SQLite database per test."""
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from approvals.database import Base, get_db
from approvals.main import app
from approvals.schemas.actor import Actor

# Import all models so they register with Base.metadata
from approvals.models.leave import LeaveRequest                 # noqa: F401
from approvals.models.career import CareerMovementRequest       # noqa: F401
from approvals.models.lab_booking import LabBooking             # noqa: F401
from approvals.models.research import ResearchAxis, ResearchTopic, ResearchProposal  # noqa: F401
from approvals.models.audit_entry import AuditEntry             # noqa: F401

SQLITE_URL = "sqlite:///./approvals_test.db"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Identities
# ---------------------------------------------------------------------------
def make_actor(actor_id: str = "staff-1", name: str = "Dr. Mona Adel", role: str = "STAFF") -> Actor:
    return Actor(actor_id=actor_id, actor_name=name, role=role)


STAFF = make_actor()
SUBSTITUTE = make_actor("staff-2", "Dr. Karim Nabil")
HEAD = make_actor("head-1", "Prof. Samia Fathy", "HEAD")
ADMIN = make_actor("admin-1", "Prof. Hany Said", "ADMIN")
STUDENT = make_actor("student-1", "Omar Tarek", "STUDENT")


def actor_json(actor: Actor) -> dict:
    return actor.model_dump(mode="json")


# ---------------------------------------------------------------------------
# Helpers: submit via the API, return the response JSON
# ---------------------------------------------------------------------------
CASUAL_DETAILS = {"address": "12 Nile St, Cairo", "phone": "0100000000"}

LOAN_DETAILS = {
    "loan_type": "EXTERNAL",
    "request_type": "NEW",
    "country": "Saudi Arabia",
    "institution": "King Saud University",
    "college": "Science",
}


def submit_casual_leave(client: TestClient, start: str, end: str, actor: Actor = STAFF,
                        substitute: Actor = SUBSTITUTE) -> dict:
    """Helper: POST /api/leaves and return response JSON."""
    payload = {
        "leave_type": "CASUAL",
        "start_date": start,
        "end_date": end,
        "details": CASUAL_DETAILS,
    }
    if substitute is not None:
        payload["substitute_id"] = substitute.actor_id
        payload["substitute_name"] = substitute.actor_name
    resp = client.post("/api/leaves/", json={"actor": actor_json(actor), "payload": payload})
    assert resp.status_code == 201, resp.text
    return resp.json()


def approve_leave(client: TestClient, leave: dict, substitute: Actor = SUBSTITUTE) -> dict:
    """Helper: walk a leave through substitute consent and head approval."""
    if leave["status"] == "PENDING_SUBSTITUTE":
        resp = client.post(f"/api/leaves/{leave['request_id']}/substitute-response",
                           json={"actor": actor_json(substitute), "accept": True})
        assert resp.status_code == 200, resp.text
    resp = client.post(f"/api/leaves/{leave['request_id']}/decision",
                       json={"actor": actor_json(HEAD), "decision": "APPROVED"})
    assert resp.status_code == 200, resp.text
    return resp.json()


def submit_loan(client: TestClient, start: str, end: str, actor: Actor = STAFF) -> dict:
    """Helper: POST /api/career-requests for a LOAN and return response JSON."""
    resp = client.post("/api/career-requests/", json={
        "actor": actor_json(actor),
        "payload": {
            "movement_kind": "LOAN",
            "start_date": start,
            "end_date": end,
            "details": LOAN_DETAILS,
        },
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def book(client: TestClient, resource: str, day: str, start: str, end: str, actor: Actor = STAFF):
    """Helper: POST /api/lab-bookings and return the raw response."""
    return client.post("/api/lab-bookings/", json={
        "actor": actor_json(actor),
        "payload": {
            "resource_key": resource,
            "booking_date": day,
            "start_time": start,
            "end_time": end,
        },
    })
