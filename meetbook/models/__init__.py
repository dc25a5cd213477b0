from meetbook.models.meeting import Meeting
from meetbook.models.booking import Booking
from meetbook.models.document import StoredDocument

__all__ = ['Meeting', 'Booking', 'StoredDocument']
