import logging
import re

from flask import current_app

from meetbook.errors import ConflictError, NotFoundError, StoreError, ValidationError
from meetbook.models import Booking
from meetbook.services.meeting_service import load_meetings

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def booking_from_record(item, key):
    try:
        return Booking.from_dict(item)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise StoreError(f"Corrupt booking record in {key}: {e}")


def load_bookings(store, key):
    doc = store.load(key)
    return [booking_from_record(item, key) for item in doc.items]


class BookingService:

    def __init__(self, store, meetings_key='meetings.json', bookings_key='bookings.json', timezone='UTC'):
        self.store = store
        self.meetings_key = meetings_key
        self.bookings_key = bookings_key
        self.timezone = timezone

    @classmethod
    def from_app(cls, app=None):
        app = app or current_app
        return cls(
            app.extensions['document_store'],
            meetings_key=app.config['MEETINGS_KEY'],
            bookings_key=app.config['BOOKINGS_KEY'],
            timezone=app.config['MEETING_TIMEZONE'],
        )

    @staticmethod
    def is_valid_email(email) -> bool:
        return bool(email) and EMAIL_PATTERN.match(email) is not None

    def list_bookings(self):
        return load_bookings(self.store, self.bookings_key)

    def create_booking(self, email, meeting_id):
        """
        Main entry point to book a seat on a meeting.

        The admission checks (duplicate, time slot, capacity) run inside the
        conditional update of the bookings document. If another writer saves
        in between, the store replays them against the fresh collection, so
        a meeting is never admitted past its maxAttendees.
        Returns (booking, attendee count including this booking).
        """
        email = email.strip() if isinstance(email, str) else ''
        meeting_id = meeting_id.strip() if isinstance(meeting_id, str) else ''

        # 0. Input
        if not email or not meeting_id:
            raise ValidationError("email and meetingId are required")
        if not self.is_valid_email(email):
            raise ValidationError("invalid email format")

        meetings = {m.id: m for m in load_meetings(self.store, self.meetings_key, self.timezone)}
        meeting = meetings.get(meeting_id)
        if meeting is None:
            raise NotFoundError("meeting not found")

        def admit(items):
            bookings = [booking_from_record(item, self.bookings_key) for item in items]
            own = [b for b in bookings if b.email.lower() == email.lower()]

            # 1. Duplicate check
            if any(b.meeting_id == meeting_id for b in own):
                raise ConflictError("already booked")

            # 2. Time slot check against the attendee's other meetings
            for b in own:
                other = meetings.get(b.meeting_id)
                if other is not None and other.overlaps(meeting):
                    raise ConflictError(f"time slot conflict with '{other.title}'")

            # 3. Capacity check
            current = sum(1 for b in bookings if b.meeting_id == meeting_id)
            if meeting.max_attendees and current >= meeting.max_attendees:
                raise ConflictError("at capacity")

            booking = Booking(email=email, meeting_id=meeting_id, meeting_title=meeting.title)
            items.append(booking.to_dict())
            return booking, current + 1

        try:
            booking, count = self.store.update(self.bookings_key, admit)
        except ConflictError as e:
            logger.info(f"Booking rejected for meeting {meeting_id}: {e.message}")
            raise

        logger.info(f"Booking {booking.id} admitted for meeting {meeting_id} ({count} attendee(s))")
        return booking, count

    def delete_booking(self, booking_id):
        def remove(items):
            index = next((i for i, item in enumerate(items) if item.get('id') == booking_id), None)
            if index is None:
                raise NotFoundError("booking not found")
            return booking_from_record(items.pop(index), self.bookings_key)

        booking = self.store.update(self.bookings_key, remove)
        logger.info(f"Booking {booking_id} deleted")
        return booking
