from dataclasses import dataclass, field
from datetime import datetime
import uuid

from meetbook.models.meeting import utcnow_iso


@dataclass
class Booking:
    email: str
    meeting_id: str
    meeting_title: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    booked_at: str = field(default_factory=utcnow_iso)

    @property
    def booked_datetime(self):
        return datetime.fromisoformat(self.booked_at.replace('Z', '+00:00'))

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'meetingId': self.meeting_id,
            'meetingTitle': self.meeting_title,
            'bookedAt': self.booked_at,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            email=data.get('email', ''),
            meeting_id=data.get('meetingId', ''),
            meeting_title=data.get('meetingTitle') or '',
            booked_at=data.get('bookedAt') or utcnow_iso(),
        )
