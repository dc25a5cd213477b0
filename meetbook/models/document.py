from meetbook.extensions import db
from datetime import datetime

class StoredDocument(db.Model):
    __tablename__ = 'documents'

    key = db.Column(db.String(255), primary_key=True)
    body = db.Column(db.Text, nullable=False)
    # Compared-and-swapped on every write
    revision = db.Column(db.Integer, nullable=False, default=1)

    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
