import logging
from datetime import datetime

import pytz
from flask import current_app

from meetbook.errors import ConflictError, NotFoundError, StoreError, ValidationError
from meetbook.models import Meeting
from meetbook.models.meeting import parse_start, utcnow_iso

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('title', 'description', 'date', 'time', 'duration',
                    'durationMinutes', 'minAttendees', 'maxAttendees', 'location')


def to_positive_int(value):
    """Coerce an int or numeric string to a positive int, else ValueError."""
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        raise ValueError(f"not a number: {value!r}")
    if number <= 0:
        raise ValueError(f"not positive: {number}")
    return number


def to_attendee_limit(value):
    # Unset, empty and 0 all mean "no limit"
    if value in (None, '', 0, '0'):
        return None
    try:
        return to_positive_int(value)
    except ValueError:
        raise ValidationError("invalid attendee limits")


def to_text(value, field):
    """Strip a free-text field; None reads as empty, other non-strings are rejected."""
    if value is None:
        return ''
    if not isinstance(value, str):
        raise ValidationError(f"invalid {field}")
    return value.strip()


def normalize_schedule(date_str, time_str, tz_name):
    """Parse date/time, returning (date, time, startAt) in canonical form."""
    try:
        start = parse_start(date_str, time_str, tz_name)
    except (TypeError, ValueError):
        raise ValidationError("invalid date/time")
    time_fmt = "%H:%M:%S" if start.second else "%H:%M"
    return start.strftime("%Y-%m-%d"), start.strftime(time_fmt), start.isoformat()


def meeting_from_record(item, key):
    try:
        return Meeting.from_dict(item)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise StoreError(f"Corrupt meeting record in {key}: {e}")


def load_meetings(store, key, tz_name='UTC'):
    """Load every stored meeting as a Meeting, in stored order."""
    doc = store.load(key)
    meetings = []
    for item in doc.items:
        meeting = meeting_from_record(item, key)
        if meeting.start_at is None:
            # Records written before startAt existed
            try:
                meeting.start_at = parse_start(meeting.date, meeting.time, tz_name).isoformat()
            except ValueError:
                pass
        meetings.append(meeting)
    return meetings


class MeetingService:

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

    def list_meetings(self):
        return load_meetings(self.store, self.meetings_key, self.timezone)

    def create_meeting(self, data):
        """
        Validate input and append a new meeting.
        Rejects meetings whose start is already in the past.
        """
        title = to_text(data.get('title'), 'title')
        description = to_text(data.get('description'), 'description')
        location = to_text(data.get('location'), 'location')
        date_str = data.get('date')
        time_str = data.get('time')
        duration = data.get('durationMinutes', data.get('duration'))

        if not title or not date_str or not time_str or not duration:
            raise ValidationError("missing required fields")

        try:
            duration = to_positive_int(duration)
        except ValueError:
            raise ValidationError("invalid duration")

        min_attendees = to_attendee_limit(data.get('minAttendees'))
        max_attendees = to_attendee_limit(data.get('maxAttendees'))
        if min_attendees and max_attendees and min_attendees > max_attendees:
            raise ValidationError("min > max")

        date_str, time_str, start_at = normalize_schedule(date_str, time_str, self.timezone)
        if datetime.fromisoformat(start_at) < datetime.now(pytz.utc):
            raise ValidationError("meeting must be in the future")

        meeting = Meeting(
            title=title,
            description=description,
            date=date_str,
            time=time_str,
            start_at=start_at,
            duration_minutes=duration,
            location=location,
            min_attendees=min_attendees,
            max_attendees=max_attendees,
        )

        def append(items):
            items.append(meeting.to_dict())
            return meeting

        self.store.update(self.meetings_key, append)
        logger.info(f"Meeting {meeting.id} created: {meeting.title} on {meeting.date} {meeting.time}")
        return meeting

    def count_attendees(self, meeting_id):
        doc = self.store.load(self.bookings_key)
        return sum(1 for item in doc.items if isinstance(item, dict) and item.get('meetingId') == meeting_id)

    def update_meeting(self, meeting_id, data):
        """Apply the fields present in ``data``; anything absent is left as is."""
        if not any(name in data for name in UPDATABLE_FIELDS):
            raise ValidationError("no updatable fields supplied")

        def apply(items):
            index = next((i for i, item in enumerate(items) if item.get('id') == meeting_id), None)
            if index is None:
                raise NotFoundError("meeting not found")

            meeting = meeting_from_record(items[index], self.meetings_key)
            if 'title' in data:
                title = to_text(data['title'], 'title')
                if not title:
                    raise ValidationError("title cannot be empty")
                meeting.title = title
            if 'description' in data:
                meeting.description = to_text(data['description'], 'description')
            if 'location' in data:
                meeting.location = to_text(data['location'], 'location')
            if 'durationMinutes' in data or 'duration' in data:
                try:
                    meeting.duration_minutes = to_positive_int(data.get('durationMinutes', data.get('duration')))
                except ValueError:
                    raise ValidationError("invalid duration")
            if 'minAttendees' in data:
                meeting.min_attendees = to_attendee_limit(data['minAttendees'])
            if 'maxAttendees' in data:
                meeting.max_attendees = to_attendee_limit(data['maxAttendees'])
            if meeting.min_attendees and meeting.max_attendees and meeting.min_attendees > meeting.max_attendees:
                raise ValidationError("min > max")
            if 'maxAttendees' in data and meeting.max_attendees:
                current = self.count_attendees(meeting_id)
                if meeting.max_attendees < current:
                    raise ConflictError("capacity below current attendees")
            if 'date' in data:
                meeting.date = data['date']
            if 'time' in data:
                meeting.time = data['time']
            meeting.date, meeting.time, meeting.start_at = normalize_schedule(
                meeting.date, meeting.time, self.timezone)

            meeting.updated_at = utcnow_iso()
            items[index] = meeting.to_dict()
            return meeting

        meeting = self.store.update(self.meetings_key, apply)
        logger.info(f"Meeting {meeting_id} updated")
        return meeting

    def delete_meeting(self, meeting_id):
        """
        Remove a meeting and every booking that references it.

        The two collections are written one after the other. If the bookings
        write fails the meeting is already gone and its bookings stay behind;
        reports render them against an "Unknown" meeting.
        Returns (deleted meeting, number of bookings removed).
        """
        def remove_meeting(items):
            index = next((i for i, item in enumerate(items) if item.get('id') == meeting_id), None)
            if index is None:
                raise NotFoundError("meeting not found")
            return meeting_from_record(items.pop(index), self.meetings_key)

        def remove_bookings(items):
            before = len(items)
            items[:] = [item for item in items if item.get('meetingId') != meeting_id]
            return before - len(items)

        meeting = self.store.update(self.meetings_key, remove_meeting)
        try:
            removed = self.store.update(self.bookings_key, remove_bookings)
        except StoreError:
            logger.error(f"Meeting {meeting_id} deleted but its bookings could not be removed")
            raise

        logger.info(f"Meeting {meeting_id} deleted with {removed} booking(s)")
        return meeting, removed
