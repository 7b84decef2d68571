import pytest
from fastapi.testclient import TestClient

from backend.auth.jwt_handler import create_access_token
from backend.core import config
from backend.database import get_db
from backend.main import app


@pytest.fixture
def client(session_factory, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr('backend.routes.availability_routes.ensure_database_ready', lambda: None)
    monkeypatch.setattr('backend.routes.appointment_routes.ensure_database_ready', lambda: None)
    monkeypatch.setattr(config, 'REMINDERS_ENABLED', False)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _auth(email: str) -> dict:
    return {'Authorization': f'Bearer {create_access_token(subject=email)}'}


def test_root_reports_running(client) -> None:
    response = client.get('/')

    assert response.status_code == 200


def test_me_returns_caller_profile(client, scholar) -> None:
    response = client.get('/auth/me', headers=_auth('scholar@example.edu'))

    assert response.status_code == 200
    assert response.json()['role'] == 'scholar'


def test_invalid_token_is_rejected(client) -> None:
    response = client.get('/auth/me', headers={'Authorization': 'Bearer not-a-token'})

    assert response.status_code == 401


def test_booking_flow_allows_exactly_one_booking_per_slot(client, faculty, scholar, other_scholar, future_day) -> None:
    created = client.post(
        '/availability',
        json={
            'date': future_day.isoformat(),
            'start_time': '09:00:00',
            'end_time': '10:15:00',
            'slot_duration': 30,
        },
        headers=_auth('faculty@example.edu'),
    )
    assert created.status_code == 201
    assert created.json()['slots_created'] == 2

    repeated = client.post(
        '/availability',
        json={'date': future_day.isoformat(), 'start_time': '09:00:00', 'end_time': '10:00:00', 'slot_duration': 30},
        headers=_auth('faculty@example.edu'),
    )
    assert repeated.json()['slots_created'] == 0

    slots = client.get('/availability/slots', headers=_auth('scholar@example.edu')).json()
    assert [(slot['start_time'], slot['end_time']) for slot in slots] == [
        ('09:00:00', '09:30:00'),
        ('09:30:00', '10:00:00'),
    ]

    first = client.post(
        '/appointments',
        json={'slot_id': slots[0]['id'], 'purpose': 'Thesis review'},
        headers=_auth('scholar@example.edu'),
    )
    second = client.post(
        '/appointments',
        json={'slot_id': slots[0]['id'], 'purpose': 'Me too'},
        headers=_auth('rival@example.edu'),
    )

    assert first.status_code == 201
    assert first.json()['status'] == 'confirmed'
    assert second.status_code == 409
    assert second.json()['detail'] == 'This slot was just booked by someone else. Please pick another slot.'

    remaining = client.get('/availability/slots', headers=_auth('rival@example.edu')).json()
    assert [slot['id'] for slot in remaining] == [slots[1]['id']]

    owned = client.get('/appointments', params={'as': 'owner'}, headers=_auth('faculty@example.edu')).json()
    assert [appointment['slot_id'] for appointment in owned] == [slots[0]['id']]


def test_scholar_cannot_publish_availability(client, scholar, future_day) -> None:
    response = client.post(
        '/availability',
        json={'date': future_day.isoformat(), 'start_time': '09:00:00', 'end_time': '10:00:00'},
        headers=_auth('scholar@example.edu'),
    )

    assert response.status_code == 403


def test_inverted_window_is_unprocessable(client, faculty, future_day) -> None:
    response = client.post(
        '/availability',
        json={'date': future_day.isoformat(), 'start_time': '11:00:00', 'end_time': '10:00:00'},
        headers=_auth('faculty@example.edu'),
    )

    assert response.status_code == 422


def test_all_appointments_is_admin_only(client, scholar, admin) -> None:
    denied = client.get('/appointments/all', headers=_auth('scholar@example.edu'))
    allowed = client.get('/appointments/all', headers=_auth('admin@example.edu'))

    assert denied.status_code == 403
    assert allowed.status_code == 200
    assert allowed.json() == []

