"""
Read-only views joining bookings against meetings.

Bookings reference meetings by id only. A booking whose meeting has been
deleted is still reported, with "Unknown" in place of the meeting fields.
"""

import logging
from collections import Counter
from datetime import datetime

import pytz
from flask import current_app

from meetbook.errors import StoreError
from meetbook.services.booking_service import load_bookings
from meetbook.services.meeting_service import load_meetings

logger = logging.getLogger(__name__)

UNKNOWN = 'Unknown'
UNLIMITED = 'Unlimited'
NO_MINIMUM = 'None'

POPULAR_LIMIT = 5
RECENT_LIMIT = 10


def _booked_sort_key(booking):
    try:
        return booking.booked_datetime.astimezone(pytz.utc)
    except ValueError:
        return datetime.min.replace(tzinfo=pytz.utc)


class ReportService:

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

    def _meetings(self):
        return load_meetings(self.store, self.meetings_key, self.timezone)

    def _bookings(self):
        return load_bookings(self.store, self.bookings_key)

    def meetings_with_counts(self):
        """Every meeting with currentAttendees and spotsRemaining (None when unlimited).

        If the bookings cannot be read, counts fall back to zero instead of
        failing the listing.
        """
        meetings = self._meetings()
        try:
            counts = Counter(b.meeting_id for b in self._bookings())
        except StoreError as e:
            logger.warning(f"Attendee counts unavailable, reporting zero: {e.message}")
            counts = Counter()

        results = []
        for meeting in meetings:
            current = counts.get(meeting.id, 0)
            entry = meeting.to_dict()
            entry['currentAttendees'] = current
            entry['spotsRemaining'] = max(meeting.max_attendees - current, 0) if meeting.max_attendees else None
            results.append(entry)
        return results

    def booking_report(self):
        """One row per booking, newest first."""
        meetings = {m.id: m for m in self._meetings()}
        bookings = sorted(self._bookings(), key=_booked_sort_key, reverse=True)

        rows = []
        for booking in bookings:
            meeting = meetings.get(booking.meeting_id)
            if meeting is None:
                rows.append({
                    'Booking ID': booking.id,
                    'Email': booking.email,
                    'Meeting Title': booking.meeting_title or UNKNOWN,
                    'Meeting Date': UNKNOWN,
                    'Meeting Time': UNKNOWN,
                    'Meeting Duration (minutes)': UNKNOWN,
                    'Meeting Location': UNKNOWN,
                    'Booked At': booking.booked_at,
                    'Meeting Max Attendees': UNKNOWN,
                    'Meeting Min Attendees': UNKNOWN,
                })
                continue

            rows.append({
                'Booking ID': booking.id,
                'Email': booking.email,
                'Meeting Title': meeting.title,
                'Meeting Date': meeting.date,
                'Meeting Time': meeting.time,
                'Meeting Duration (minutes)': meeting.duration_minutes,
                'Meeting Location': meeting.location,
                'Booked At': booking.booked_at,
                'Meeting Max Attendees': meeting.max_attendees or UNLIMITED,
                'Meeting Min Attendees': meeting.min_attendees or NO_MINIMUM,
            })
        return rows

    def meetings_summary(self):
        """One row per meeting, in schedule order."""
        meetings = sorted(self._meetings(), key=lambda m: (m.date, m.time))
        counts = Counter(b.meeting_id for b in self._bookings())

        rows = []
        for meeting in meetings:
            current = counts.get(meeting.id, 0)
            rows.append({
                'Meeting ID': meeting.id,
                'Title': meeting.title,
                'Description': meeting.description,
                'Date': meeting.date,
                'Time': meeting.time,
                'Duration (minutes)': meeting.duration_minutes,
                'Location': meeting.location,
                'Current Attendees': current,
                'Max Attendees': meeting.max_attendees or UNLIMITED,
                'Min Attendees': meeting.min_attendees or NO_MINIMUM,
                'Spots Remaining': max(meeting.max_attendees - current, 0) if meeting.max_attendees else UNLIMITED,
                'Created At': meeting.created_at,
                'Updated At': meeting.updated_at or '',
            })
        return rows

    def admin_stats(self, now=None):
        now = now or datetime.now(pytz.utc)
        meetings = self._meetings()
        bookings = self._bookings()
        by_id = {m.id: m for m in meetings}
        counts = Counter(b.meeting_id for b in bookings)

        upcoming = sum(1 for m in meetings if m.start_at and m.start_datetime > now)

        # sorted() is stable, so equal counts keep meeting order
        popular = sorted(meetings, key=lambda m: counts.get(m.id, 0), reverse=True)[:POPULAR_LIMIT]
        recent = sorted(bookings, key=_booked_sort_key, reverse=True)[:RECENT_LIMIT]

        return {
            'overview': {
                'totalBookings': len(bookings),
                'totalMeetings': len(meetings),
                'uniqueAttendees': len({b.email.lower() for b in bookings}),
                'upcomingMeetings': upcoming,
                'pastMeetings': len(meetings) - upcoming,
            },
            'popularMeetings': [
                {
                    'id': m.id,
                    'title': m.title,
                    'date': m.date,
                    'time': m.time,
                    'bookingCount': counts.get(m.id, 0),
                }
                for m in popular
            ],
            'recentBookings': [
                {
                    'email': b.email,
                    'meetingTitle': by_id[b.meeting_id].title if b.meeting_id in by_id else b.meeting_title,
                    'bookedAt': b.booked_at,
                }
                for b in recent
            ],
            'lastUpdated': now.isoformat(),
        }
