"""
Tests for event creation, approval workflow, visibility and deletion
"""
from datetime import date, timedelta

from httpx import AsyncClient
from sqlalchemy import select, func

from shared.database.models import Event, Notification, Ticket, User


async def _count(db_session, stmt) -> int:
    return (await db_session.execute(stmt)).scalar()


class TestCreateEvent:

    async def test_admin_event_is_approved_immediately(
        self, client: AsyncClient, admin_headers, event_payload
    ):
        response = await client.post('/api/v1/events', json=event_payload(), headers=admin_headers)
        assert response.status_code == 201
        assert response.json()['data']['is_approved'] is True
        assert response.json()['data']['attendees_count'] == 0

    async def test_user_event_is_pending(
        self, client: AsyncClient, db_session, test_user: User, admin_user: User,
        auth_headers, event_payload
    ):
        response = await client.post('/api/v1/events', json=event_payload(), headers=auth_headers)
        assert response.status_code == 201
        data = response.json()['data']
        assert data['is_approved'] is False
        assert data['owner_id'] == str(test_user.id)

        titles = [tuple(row) for row in (await db_session.execute(
            select(Notification.user_id, Notification.title)
        )).all()]
        assert (test_user.id, 'Event Pending Approval') in titles
        assert (admin_user.id, 'New Event Pending Approval') in titles

    async def test_create_requires_auth(self, client: AsyncClient, event_payload):
        response = await client.post('/api/v1/events', json=event_payload())
        assert response.status_code == 401

    async def test_create_validates_fields(self, client: AsyncClient, auth_headers, event_payload):
        bad_price = await client.post('/api/v1/events', json=event_payload(price=-1), headers=auth_headers)
        assert bad_price.status_code == 400

        bad_time = await client.post('/api/v1/events', json=event_payload(time='25:99'), headers=auth_headers)
        assert bad_time.status_code == 400

        payload = event_payload()
        del payload['title']
        missing = await client.post('/api/v1/events', json=payload, headers=auth_headers)
        assert missing.status_code == 400


class TestListEvents:

    async def test_visibility_by_role(
        self, client: AsyncClient, approved_event: Event, pending_event: Event, admin_headers, auth_headers
    ):
        anonymous = await client.get('/api/v1/events')
        assert [e['id'] for e in anonymous.json()['data']] == [str(approved_event.id)]

        as_user = await client.get('/api/v1/events', headers=auth_headers)
        assert [e['id'] for e in as_user.json()['data']] == [str(approved_event.id)]

        as_admin = await client.get('/api/v1/events', headers=admin_headers)
        assert {e['id'] for e in as_admin.json()['data']} == {str(approved_event.id), str(pending_event.id)}

    async def test_sorted_ascending_by_date(self, client: AsyncClient, admin_user: User, make_event):
        today = date.today()
        later = await make_event(admin_user, title='Later', date=today + timedelta(days=30))
        sooner = await make_event(admin_user, title='Sooner', date=today + timedelta(days=2))
        middle = await make_event(admin_user, title='Middle', date=today + timedelta(days=10))

        response = await client.get('/api/v1/events')
        assert [e['id'] for e in response.json()['data']] == [str(sooner.id), str(middle.id), str(later.id)]

    async def test_single_digit_hour_sorts_chronologically(
        self, client: AsyncClient, admin_headers, event_payload
    ):
        day = (date.today() + timedelta(days=5)).isoformat()
        late = await client.post(
            '/api/v1/events', json=event_payload(title='Late', date=day, time='10:00'), headers=admin_headers
        )
        early = await client.post(
            '/api/v1/events', json=event_payload(title='Early', date=day, time='9:00'), headers=admin_headers
        )
        assert early.status_code == 201
        assert early.json()['data']['time'] == '09:00'

        response = await client.get('/api/v1/events')
        assert [e['title'] for e in response.json()['data']] == ['Early', 'Late']
        assert late.json()['data']['time'] == '10:00'

    async def test_filters(self, client: AsyncClient, admin_user: User, make_event):
        await make_event(admin_user, title='Jazz Evening', category='music', location='Hall A')
        await make_event(admin_user, title='Robotics Demo', category='tech', location='Lab 1')

        music = await client.get('/api/v1/events', params={'category': 'music'})
        assert [e['title'] for e in music.json()['data']] == ['Jazz Evening']

        search = await client.get('/api/v1/events', params={'search': 'robot'})
        assert [e['title'] for e in search.json()['data']] == ['Robotics Demo']

    async def test_pending_list_admin_only(
        self, client: AsyncClient, pending_event: Event, approved_event: Event, admin_headers, auth_headers
    ):
        response = await client.get('/api/v1/events/pending', headers=admin_headers)
        assert [e['id'] for e in response.json()['data']] == [str(pending_event.id)]

        forbidden = await client.get('/api/v1/events/pending', headers=auth_headers)
        assert forbidden.status_code == 403


class TestGetEvent:

    async def test_pending_event_visible_to_owner_and_admin(
        self, client: AsyncClient, pending_event: Event, auth_headers, admin_headers, other_headers
    ):
        url = f'/api/v1/events/{pending_event.id}'
        assert (await client.get(url, headers=auth_headers)).status_code == 200
        assert (await client.get(url, headers=admin_headers)).status_code == 200
        assert (await client.get(url, headers=other_headers)).status_code == 404
        assert (await client.get(url)).status_code == 404

    async def test_unknown_and_malformed_ids(self, client: AsyncClient):
        assert (await client.get('/api/v1/events/00000000-0000-0000-0000-000000000000')).status_code == 404
        assert (await client.get('/api/v1/events/not-a-uuid')).status_code == 404


class TestApproveEvent:

    async def test_approve_is_idempotent(
        self, client: AsyncClient, db_session, pending_event: Event, test_user: User, admin_headers
    ):
        url = f'/api/v1/events/{pending_event.id}/approve'
        first = await client.post(url, headers=admin_headers)
        assert first.status_code == 200
        assert first.json()['data']['is_approved'] is True

        second = await client.post(url, headers=admin_headers)
        assert second.status_code == 200
        assert second.json()['data']['is_approved'] is True

        approved_notes = await _count(db_session, select(func.count(Notification.id)).where(
            Notification.user_id == test_user.id,
            Notification.title == 'Event Approved'
        ))
        assert approved_notes == 1

        listing = await client.get('/api/v1/events')
        assert str(pending_event.id) in [e['id'] for e in listing.json()['data']]

    async def test_approve_requires_admin(self, client: AsyncClient, pending_event: Event, auth_headers):
        response = await client.post(f'/api/v1/events/{pending_event.id}/approve', headers=auth_headers)
        assert response.status_code == 403
        assert response.json()['code'] == 'forbidden'

    async def test_approve_unknown_event(self, client: AsyncClient, admin_headers):
        response = await client.post(
            '/api/v1/events/00000000-0000-0000-0000-000000000000/approve',
            headers=admin_headers
        )
        assert response.status_code == 404


class TestDeleteEvent:

    async def test_delete_cascades_to_tickets(
        self, client: AsyncClient, db_session, approved_event: Event, auth_headers, other_headers, admin_headers
    ):
        for headers in (auth_headers, other_headers):
            booked = await client.post(
                '/api/v1/tickets/book-ticket',
                json={'eventId': str(approved_event.id)},
                headers=headers
            )
            assert booked.status_code == 201

        response = await client.delete(f'/api/v1/events/{approved_event.id}', headers=admin_headers)
        assert response.status_code == 200

        assert await _count(db_session, select(func.count(Event.id))) == 0
        assert await _count(db_session, select(func.count(Ticket.id)).where(
            Ticket.event_id == approved_event.id
        )) == 0

    async def test_owner_can_delete(self, client: AsyncClient, pending_event: Event, auth_headers):
        response = await client.delete(f'/api/v1/events/{pending_event.id}', headers=auth_headers)
        assert response.status_code == 200
        assert response.json()['data']['id'] == str(pending_event.id)

    async def test_non_owner_cannot_delete(self, client: AsyncClient, approved_event: Event, auth_headers):
        response = await client.delete(f'/api/v1/events/{approved_event.id}', headers=auth_headers)
        assert response.status_code == 403

    async def test_admin_reject_notifies_owner(
        self, client: AsyncClient, db_session, pending_event: Event, test_user: User, admin_headers
    ):
        response = await client.delete(f'/api/v1/events/{pending_event.id}', headers=admin_headers)
        assert response.status_code == 200

        rejected = await _count(db_session, select(func.count(Notification.id)).where(
            Notification.user_id == test_user.id,
            Notification.title == 'Event Rejected'
        ))
        assert rejected == 1
