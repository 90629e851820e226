"""
Tests for ticket booking, listing and QR rendering
"""
import asyncio
import json
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.config import settings
from shared.database.models import Event, Notification, Ticket, User, utcnow
from shared.exception.exceptions import ConflictError
from shared.utils.qr_generator import TicketSigner
from services.ticket_purchase.services.booking_service import BookingService

BOOK_URL = '/api/v1/tickets/book-ticket'


async def _book(client: AsyncClient, event: Event, headers: dict, **extra):
    return await client.post(BOOK_URL, json={'eventId': str(event.id), **extra}, headers=headers)


class TestBookTicket:

    async def test_book_snapshots_event(
        self, client: AsyncClient, approved_event: Event, test_user: User, auth_headers
    ):
        response = await _book(client, approved_event, auth_headers)
        assert response.status_code == 201
        ticket = response.json()['data']

        assert ticket['event_id'] == str(approved_event.id)
        assert ticket['user_id'] == str(test_user.id)
        assert ticket['event_title'] == approved_event.title
        assert ticket['event_location'] == approved_event.location
        assert ticket['event_time'] == approved_event.time
        assert ticket['attendee_name'] == test_user.name
        assert ticket['attendee_email'] == test_user.email
        assert ticket['verified'] is False

    async def test_payload_and_token(
        self, client: AsyncClient, approved_event: Event, test_user: User, auth_headers
    ):
        response = await _book(
            client, approved_event, auth_headers,
            attendeeName='Guest Name', attendeeEmail='guest@campus.edu'
        )
        ticket = response.json()['data']
        payload = json.loads(ticket['qr_data'])

        assert payload['ticketId'] == ticket['id']
        assert payload['eventId'] == str(approved_event.id)
        assert payload['attendeeName'] == 'Guest Name'
        assert payload['attendeeEmail'] == 'guest@campus.edu'
        assert payload['verificationToken'] == ticket['verification_token']

        signer = TicketSigner(settings.TICKET_SIGNING_SECRET)
        assert signer.verify_token(
            payload['verificationToken'],
            ticket['id'],
            str(test_user.id),
            str(approved_event.id),
            payload['timestamp']
        )

    async def test_duplicate_booking_conflict(
        self, client: AsyncClient, db_session, approved_event: Event, test_user: User, auth_headers
    ):
        first = await _book(client, approved_event, auth_headers)
        assert first.status_code == 201

        second = await _book(client, approved_event, auth_headers)
        assert second.status_code == 409
        assert second.json()['code'] == 'conflict'

        count = (await db_session.execute(select(func.count(Ticket.id)).where(
            Ticket.user_id == test_user.id,
            Ticket.event_id == approved_event.id
        ))).scalar()
        assert count == 1

    async def test_booking_increments_attendees(
        self, client: AsyncClient, db_session, approved_event: Event, auth_headers, other_headers
    ):
        await _book(client, approved_event, auth_headers)
        await _book(client, approved_event, other_headers)
        await db_session.refresh(approved_event)
        assert approved_event.attendees_count == 2

    async def test_sold_out(
        self, client: AsyncClient, admin_user: User, make_event, auth_headers, other_headers
    ):
        event = await make_event(admin_user, capacity=1)
        assert (await _book(client, event, auth_headers)).status_code == 201

        response = await _book(client, event, other_headers)
        assert response.status_code == 409
        assert response.json()['error'] == 'Event is sold out'

    async def test_unknown_event(self, client: AsyncClient, auth_headers):
        response = await client.post(
            BOOK_URL,
            json={'eventId': '00000000-0000-0000-0000-000000000000'},
            headers=auth_headers
        )
        assert response.status_code == 404

    async def test_unapproved_event_forbidden_for_users(
        self, client: AsyncClient, pending_event: Event, other_headers, admin_headers
    ):
        response = await _book(client, pending_event, other_headers)
        assert response.status_code == 403

        as_admin = await _book(client, pending_event, admin_headers)
        assert as_admin.status_code == 201

    async def test_booking_notifies_buyer(
        self, client: AsyncClient, db_session, approved_event: Event, test_user: User, auth_headers
    ):
        await _book(client, approved_event, auth_headers)
        note = (await db_session.execute(
            select(Notification).where(Notification.user_id == test_user.id)
        )).scalar_one()
        assert note.title == 'Ticket Booked'
        assert note.type == 'ticket'
        assert note.event_id == approved_event.id

    async def test_requires_auth(self, client: AsyncClient, approved_event: Event):
        response = await client.post(BOOK_URL, json={'eventId': str(approved_event.id)})
        assert response.status_code == 401


class TestTicketQueries:

    async def test_my_tickets_newest_first(
        self, client: AsyncClient, admin_user: User, make_event, auth_headers, other_headers
    ):
        first_event = await make_event(admin_user, title='First')
        second_event = await make_event(admin_user, title='Second')
        await _book(client, first_event, auth_headers)
        await _book(client, second_event, auth_headers)
        await _book(client, first_event, other_headers)

        response = await client.get('/api/v1/tickets', headers=auth_headers)
        titles = [t['event_title'] for t in response.json()['data']]
        assert titles == ['Second', 'First']

    async def test_get_ticket_owner_or_admin(
        self, client: AsyncClient, approved_event: Event, auth_headers, other_headers, admin_headers
    ):
        ticket_id = (await _book(client, approved_event, auth_headers)).json()['data']['id']
        url = f'/api/v1/tickets/{ticket_id}'

        assert (await client.get(url, headers=auth_headers)).status_code == 200
        assert (await client.get(url, headers=admin_headers)).status_code == 200
        assert (await client.get(url, headers=other_headers)).status_code == 403

    async def test_qrcode_svg_and_png(self, client: AsyncClient, approved_event: Event, auth_headers):
        ticket_id = (await _book(client, approved_event, auth_headers)).json()['data']['id']

        svg = await client.get(f'/api/v1/tickets/{ticket_id}/qrcode', headers=auth_headers)
        assert svg.status_code == 200
        assert svg.headers['content-type'].startswith('image/svg+xml')
        assert b'<svg' in svg.content

        png = await client.get(
            f'/api/v1/tickets/{ticket_id}/qrcode',
            params={'format': 'png'},
            headers=auth_headers
        )
        assert png.status_code == 200
        assert png.headers['content-type'] == 'image/png'
        assert png.content.startswith(b'\x89PNG')


async def _ticket_count(db_session, event: Event) -> int:
    return (await db_session.execute(
        select(func.count(Ticket.id)).where(Ticket.event_id == event.id)
    )).scalar()


async def _attendees(db_session, event: Event) -> int:
    return (await db_session.execute(
        select(Event.attendees_count).where(Event.id == event.id)
    )).scalar()


def _ticket_row(user: User, event: Event) -> Ticket:
    return Ticket(
        id=uuid.uuid4(),
        user_id=user.id,
        event_id=event.id,
        attendee_name=user.name,
        attendee_email=user.email,
        event_title=event.title,
        event_date=event.date,
        event_time=event.time,
        event_location=event.location,
        price=event.price,
        qr_data='{}',
        verification_token='0' * 16,
        issued_at=utcnow(),
        issued_at_ms=0,
    )


class TestBookingConsistency:

    @staticmethod
    def _booker(session_factory, event: Event):
        service = BookingService(TicketSigner(settings.TICKET_SIGNING_SECRET))

        async def book_as(user: User) -> str:
            async with session_factory() as session:
                try:
                    await service.book(session, {'user_id': str(user.id), 'is_admin': False}, str(event.id))
                except ConflictError:
                    return 'sold out'
            return 'booked'
        return book_as

    async def test_concurrent_bookings_respect_capacity(
        self, db_session, session_factory, admin_user: User, test_user: User, other_user: User, make_event
    ):
        event = await make_event(admin_user, capacity=1)
        book_as = self._booker(session_factory, event)

        results = await asyncio.gather(book_as(test_user), book_as(other_user))

        assert sorted(results) == ['booked', 'sold out']
        assert await _ticket_count(db_session, event) == 1
        assert await _attendees(db_session, event) == 1

    async def test_concurrent_bookings_count_every_attendee(
        self, db_session, session_factory, admin_user: User, test_user: User, other_user: User, make_event
    ):
        event = await make_event(admin_user)
        book_as = self._booker(session_factory, event)

        results = await asyncio.gather(book_as(test_user), book_as(other_user))

        assert results == ['booked', 'booked']
        assert await _ticket_count(db_session, event) == 2
        assert await _attendees(db_session, event) == 2

    async def test_unique_constraint_on_user_and_event(
        self, db_session, approved_event: Event, test_user: User
    ):
        db_session.add(_ticket_row(test_user, approved_event))
        await db_session.commit()

        db_session.add(_ticket_row(test_user, approved_event))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

        assert await _ticket_count(db_session, approved_event) == 1

    async def test_constraint_violation_is_conflict(
        self, client: AsyncClient, db_session, approved_event: Event, auth_headers, monkeypatch
    ):
        assert (await _book(client, approved_event, auth_headers)).status_code == 201

        # Sin el chequeo previo, el insert choca con la constraint única
        async def no_existing_ticket(db, user_id, event_id):
            return False
        monkeypatch.setattr(BookingService, '_has_ticket', staticmethod(no_existing_ticket))

        response = await _book(client, approved_event, auth_headers)
        assert response.status_code == 409
        assert response.json()['code'] == 'conflict'
        assert await _ticket_count(db_session, approved_event) == 1
        assert await _attendees(db_session, approved_event) == 1

    async def test_storage_failure_writes_nothing(
        self, client: AsyncClient, db_session, approved_event: Event, auth_headers, monkeypatch
    ):
        async def failing_commit():
            raise OperationalError('INSERT INTO tickets', {}, Exception('disk I/O error'))
        monkeypatch.setattr(db_session, 'commit', failing_commit)

        response = await _book(client, approved_event, auth_headers)
        monkeypatch.undo()

        assert response.status_code == 500
        assert response.json() == {
            'success': False,
            'error': 'Failed to book ticket',
            'code': 'internal',
        }
        assert await _ticket_count(db_session, approved_event) == 0
        assert await _attendees(db_session, approved_event) == 0
