from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional
import uuid

import pytz


def utcnow_iso():
    return datetime.now(pytz.utc).isoformat()


def parse_start(date_str, time_str, tz_name='UTC'):
    """Combine a YYYY-MM-DD date and a HH:MM[:SS] time into an aware datetime.

    Raises ValueError when either part does not parse.
    """
    date_str = str(date_str).strip()
    time_str = str(time_str).strip()
    fmt = "%Y-%m-%dT%H:%M:%S" if time_str.count(':') == 2 else "%Y-%m-%dT%H:%M"
    naive = datetime.strptime(f"{date_str}T{time_str}", fmt)
    return pytz.timezone(tz_name).localize(naive)


@dataclass
class Meeting:
    title: str
    date: str
    time: str
    duration_minutes: int
    description: str = ''
    location: str = ''
    min_attendees: Optional[int] = None
    max_attendees: Optional[int] = None
    start_at: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=utcnow_iso)
    updated_at: Optional[str] = None

    @property
    def start_datetime(self):
        return datetime.fromisoformat(self.start_at) if self.start_at else None

    @property
    def end_datetime(self):
        start = self.start_datetime
        if start is None:
            return None
        return start + timedelta(minutes=self.duration_minutes)

    def overlaps(self, other):
        """True when both meetings have a start and their intervals intersect."""
        if self.start_at is None or other.start_at is None:
            return False
        # (StartA < EndB) and (EndA > StartB)
        return self.start_datetime < other.end_datetime and self.end_datetime > other.start_datetime

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'date': self.date,
            'time': self.time,
            'startAt': self.start_at,
            'durationMinutes': self.duration_minutes,
            'location': self.location,
            'minAttendees': self.min_attendees,
            'maxAttendees': self.max_attendees,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }

    @classmethod
    def from_dict(cls, data):
        # 'duration' is the key used by documents written before durationMinutes
        duration = data.get('durationMinutes', data.get('duration'))
        return cls(
            id=data['id'],
            title=data.get('title', ''),
            description=data.get('description') or '',
            date=data.get('date', ''),
            time=data.get('time', ''),
            start_at=data.get('startAt'),
            duration_minutes=int(duration) if duration is not None else 0,
            location=data.get('location') or '',
            min_attendees=data.get('minAttendees'),
            max_attendees=data.get('maxAttendees'),
            created_at=data.get('createdAt') or utcnow_iso(),
            updated_at=data.get('updatedAt'),
        )
