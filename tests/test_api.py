import pytest

from meetbook.config import TestingConfig

ADMIN_HEADERS = {'X-Admin-Password': TestingConfig.ADMIN_PASSWORD}

@pytest.fixture
def meeting_payload(future_date):
    return {'title': 'Intro', 'date': future_date, 'time': '14:00', 'durationMinutes': 60, 'maxAttendees': 2}

@pytest.fixture
def meeting_id(client, meeting_payload):
    response = client.post('/api/meetings', json=meeting_payload, headers=ADMIN_HEADERS)
    assert response.status_code == 201
    return response.get_json()['meeting']['id']

def test_health(client):
    assert client.get('/health').get_json()['status'] == 'ok'

def test_preflight_gets_cors_headers(client):
    response = client.open('/api/bookings', method='OPTIONS')
    assert response.status_code == 200
    assert response.headers['Access-Control-Allow-Origin'] == '*'
    assert 'X-Admin-Password' in response.headers['Access-Control-Allow-Headers']

def test_list_meetings_empty(client):
    response = client.get('/api/meetings')
    assert response.status_code == 200
    assert response.get_json() == []

def test_create_meeting_requires_admin(client, meeting_payload):
    response = client.post('/api/meetings', json=meeting_payload)
    assert response.status_code == 401
    assert response.get_json()['kind'] == 'authorization_error'

    response = client.post('/api/meetings', json=meeting_payload, headers={'X-Admin-Password': 'wrong'})
    assert response.status_code == 401
    assert client.get('/api/meetings').get_json() == []

def test_password_in_body_is_accepted(client, meeting_payload):
    payload = dict(meeting_payload, password=TestingConfig.ADMIN_PASSWORD)
    response = client.post('/api/meetings', json=payload)
    assert response.status_code == 201
    assert 'password' not in response.get_json()['meeting']

def test_create_meeting_validation_error(client, meeting_payload):
    payload = dict(meeting_payload, durationMinutes=-1)
    response = client.post('/api/meetings', json=payload, headers=ADMIN_HEADERS)
    assert response.status_code == 400
    assert response.get_json() == {'error': 'invalid duration', 'kind': 'validation_error'}

def test_booking_flow(client, meeting_id):
    first = client.post('/api/bookings', json={'email': 'a@x.com', 'meetingId': meeting_id})
    assert first.status_code == 201
    assert first.get_json()['attendeeCount'] == 1
    assert first.get_json()['booking']['meetingTitle'] == 'Intro'

    second = client.post('/api/bookings', json={'email': 'b@x.com', 'meetingId': meeting_id})
    assert second.get_json()['attendeeCount'] == 2

    full = client.post('/api/bookings', json={'email': 'c@x.com', 'meetingId': meeting_id})
    assert full.status_code == 409
    assert full.get_json() == {'error': 'at capacity', 'kind': 'conflict'}

    again = client.post('/api/bookings', json={'email': 'a@x.com', 'meetingId': meeting_id})
    assert again.status_code == 409
    assert again.get_json()['error'] == 'already booked'

    listed = client.get('/api/meetings').get_json()
    assert listed[0]['currentAttendees'] == 2
    assert listed[0]['spotsRemaining'] == 0

def test_booking_errors(client, meeting_id):
    response = client.post('/api/bookings', json={'email': 'nope', 'meetingId': meeting_id})
    assert response.status_code == 400

    response = client.post('/api/bookings', json={'email': 'a@x.com', 'meetingId': 'missing'})
    assert response.status_code == 404
    assert response.get_json()['kind'] == 'not_found'

    response = client.post('/api/bookings', data='not json', content_type='text/plain')
    assert response.status_code == 400

def test_admin_booking_management(client, meeting_id):
    created = client.post('/api/bookings', json={'email': 'a@x.com', 'meetingId': meeting_id}).get_json()
    booking_id = created['booking']['id']

    assert client.get('/api/bookings').status_code == 401
    listed = client.get('/api/bookings', headers=ADMIN_HEADERS).get_json()
    assert [b['id'] for b in listed] == [booking_id]

    assert client.delete(f'/api/bookings/{booking_id}').status_code == 401
    response = client.delete(f'/api/bookings/{booking_id}', headers=ADMIN_HEADERS)
    assert response.status_code == 200
    assert response.get_json()['deletedBooking']['email'] == 'a@x.com'

    response = client.delete(f'/api/bookings/{booking_id}', headers=ADMIN_HEADERS)
    assert response.status_code == 404

def test_update_and_delete_meeting(client, meeting_id):
    response = client.put(f'/api/meetings/{meeting_id}', json={'location': 'Room 7'}, headers=ADMIN_HEADERS)
    assert response.status_code == 200
    assert response.get_json()['meeting']['location'] == 'Room 7'
    assert response.get_json()['meeting']['title'] == 'Intro'

    for email in ('a@x.com', 'b@x.com'):
        client.post('/api/bookings', json={'email': email, 'meetingId': meeting_id})

    response = client.delete(f'/api/meetings/{meeting_id}', headers=ADMIN_HEADERS)
    assert response.status_code == 200
    assert response.get_json()['removedBookingsCount'] == 2
    assert client.get('/api/meetings').get_json() == []
    assert client.get('/api/bookings', headers=ADMIN_HEADERS).get_json() == []

    assert client.put(f'/api/meetings/{meeting_id}', json={'title': 'x'}, headers=ADMIN_HEADERS).status_code == 404
    assert client.delete(f'/api/meetings/{meeting_id}', headers=ADMIN_HEADERS).status_code == 404

def test_admin_stats(client, meeting_id):
    client.post('/api/bookings', json={'email': 'a@x.com', 'meetingId': meeting_id})

    assert client.get('/api/admin').status_code == 401
    for path in ('/api/admin', '/api/admin/stats'):
        stats = client.get(path, headers=ADMIN_HEADERS).get_json()
        assert stats['overview']['totalBookings'] == 1
        assert stats['overview']['upcomingMeetings'] == 1
        assert stats['popularMeetings'][0]['bookingCount'] == 1

def test_export_with_query_password(client, meeting_id):
    client.post('/api/bookings', json={'email': 'a@x.com', 'meetingId': meeting_id})

    response = client.get(f'/api/admin/export?type=meetings&password={TestingConfig.ADMIN_PASSWORD}')
    assert response.status_code == 200
    assert response.headers['Content-Type'] == 'text/csv'
    assert response.headers['Cache-Control'] == 'no-cache'
    assert response.headers['Content-Disposition'].startswith('attachment; filename="meetings-summary-')
    lines = response.get_data(as_text=True).splitlines()
    assert lines[0].startswith('Meeting ID,Title')
    assert meeting_id in lines[1]

def test_export_defaults_to_bookings(client, meeting_id):
    client.post('/api/bookings', json={'email': 'a@x.com', 'meetingId': meeting_id})
    body = client.get('/api/admin/export', headers=ADMIN_HEADERS).get_data(as_text=True)
    assert body.splitlines()[0].startswith('Booking ID,Email')
    assert 'a@x.com' in body

def test_export_rejects_unknown_type(client):
    response = client.get('/api/admin/export?type=all', headers=ADMIN_HEADERS)
    assert response.status_code == 400
    assert response.get_json()['kind'] == 'validation_error'

def test_query_password_ignored_outside_get(client, meeting_id):
    response = client.delete(f'/api/meetings/{meeting_id}?password={TestingConfig.ADMIN_PASSWORD}')
    assert response.status_code == 401

@pytest.mark.parametrize('field, value', [('title', ['x']), ('title', 123), ('location', {'room': 7})])
def test_mistyped_fields_are_validation_errors(client, meeting_payload, field, value):
    payload = dict(meeting_payload, **{field: value})
    response = client.post('/api/meetings', json=payload, headers=ADMIN_HEADERS)
    assert response.status_code == 400
    assert response.get_json() == {'error': f'invalid {field}', 'kind': 'validation_error'}

def test_empty_header_falls_back_to_body_password(client, meeting_payload):
    payload = dict(meeting_payload, password=TestingConfig.ADMIN_PASSWORD)
    response = client.post('/api/meetings', json=payload, headers={'X-Admin-Password': ''})
    assert response.status_code == 201
