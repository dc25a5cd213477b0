"""
Whole-document JSON storage with optimistic concurrency.

Each collection (meetings, bookings) is one JSON document. Every write is a
compare-and-swap against the revision read by the caller, so a
read-modify-write that raced with another writer fails with
``RevisionConflict`` instead of silently overwriting it. ``update`` wraps the
whole read-modify-write and replays it on conflict.

Backends:
- ``SQLDocumentStore``: a ``documents`` table via Flask-SQLAlchemy.
- ``S3DocumentStore``: one S3 object per key, ETag conditional writes.
- ``MemoryDocumentStore``: process-local dict, for tests and local runs.
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app
from sqlalchemy import insert, select, update as sql_update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from meetbook.errors import RevisionConflict, StoreError
from meetbook.models.document import StoredDocument

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

S3_CONFLICT_CODES = ('PreconditionFailed', 'ConditionalRequestConflict', '412', '409')
S3_MISSING_CODES = ('NoSuchKey', '404', 'NotFound')


@dataclass
class Document:
    key: str
    items: List[dict] = field(default_factory=list)
    revision: Any = None
    exists: bool = False


def encode_items(items: List[dict]) -> bytes:
    envelope = {'schemaVersion': SCHEMA_VERSION, 'items': items}
    return json.dumps(envelope, indent=2).encode('utf-8')


def decode_items(key: str, raw: bytes) -> List[dict]:
    """Decode a stored document body into its list of records.

    A bare JSON list is the legacy (version 0) layout and is accepted as-is;
    it is rewritten in the versioned envelope on the next save.
    """
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise StoreError(f"Corrupt document {key}: {e}")

    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        version = payload.get('schemaVersion', 0)
        if version > SCHEMA_VERSION:
            raise StoreError(f"Unsupported schema version {version} for {key}")
        items = payload.get('items', [])
        if not isinstance(items, list):
            raise StoreError(f"Corrupt document {key}: items is not a list")
        return items
    raise StoreError(f"Corrupt document {key}: unexpected {type(payload).__name__}")


class DocumentStore:
    """Base class: subclasses implement ``_read`` and ``_write``."""

    def __init__(self, max_retries: int = 5):
        self.max_retries = max_retries

    def _read(self, key):
        """Return ``(raw_bytes, revision)`` or ``(None, None)`` when absent."""
        raise NotImplementedError

    def _write(self, key, body: bytes, expected_revision):
        """Write ``body`` if the stored revision still equals ``expected_revision``.

        ``expected_revision`` of None means the key must not exist yet.
        Returns the new revision, raises ``RevisionConflict`` otherwise.
        """
        raise NotImplementedError

    def load(self, key: str) -> Document:
        raw, revision = self._read(key)
        if raw is None:
            return Document(key=key)
        return Document(key=key, items=decode_items(key, raw), revision=revision, exists=True)

    def save(self, key: str, items: List[dict], expected_revision=None):
        return self._write(key, encode_items(items), expected_revision)

    def update(self, key: str, mutate: Callable[[List[dict]], Any]):
        """Run load -> mutate(items) -> conditional save, replaying on conflict.

        ``mutate`` edits the list in place and returns the caller's result.
        Exceptions raised by ``mutate`` abort the update without writing.
        """
        for attempt in range(1, self.max_retries + 1):
            doc = self.load(key)
            items = list(doc.items)
            result = mutate(items)
            try:
                self.save(key, items, doc.revision)
                return result
            except RevisionConflict:
                logger.warning(f"Concurrent write on {key}, retrying ({attempt}/{self.max_retries})")
        raise StoreError(f"Concurrent modification of {key}, gave up after {self.max_retries} attempts")


class MemoryDocumentStore(DocumentStore):

    def __init__(self, max_retries: int = 5):
        super().__init__(max_retries)
        self._documents = {}
        self._lock = threading.Lock()

    def _read(self, key):
        with self._lock:
            return self._documents.get(key, (None, None))

    def _write(self, key, body, expected_revision):
        with self._lock:
            _, current = self._documents.get(key, (None, None))
            if current != expected_revision:
                raise RevisionConflict(key, expected_revision)
            new_revision = (current or 0) + 1
            self._documents[key] = (body, new_revision)
            return new_revision


class SQLDocumentStore(DocumentStore):

    def __init__(self, session, max_retries: int = 5):
        super().__init__(max_retries)
        self.session = session

    def _read(self, key):
        try:
            row = self.session.execute(
                select(StoredDocument.body, StoredDocument.revision).where(StoredDocument.key == key)
            ).first()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Failed to read {key}: {e}")
        if row is None:
            return None, None
        return row.body.encode('utf-8'), row.revision

    def _write(self, key, body, expected_revision):
        text = body.decode('utf-8')
        try:
            if expected_revision is None:
                self.session.execute(
                    insert(StoredDocument).values(key=key, body=text, revision=1, updated_at=datetime.utcnow())
                )
                self.session.commit()
                return 1

            result = self.session.execute(
                sql_update(StoredDocument)
                .where(StoredDocument.key == key, StoredDocument.revision == expected_revision)
                .values(body=text, revision=expected_revision + 1, updated_at=datetime.utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self.session.rollback()
                raise RevisionConflict(key, expected_revision)
            self.session.commit()
            return expected_revision + 1
        except IntegrityError:
            # Someone else created the key first
            self.session.rollback()
            raise RevisionConflict(key, expected_revision)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Failed to write {key}: {e}")


class S3DocumentStore(DocumentStore):

    def __init__(self, client, bucket: str, max_retries: int = 5):
        super().__init__(max_retries)
        self.client = client
        self.bucket = bucket

    def _read(self, key):
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return response['Body'].read(), response['ETag']
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in S3_MISSING_CODES:
                return None, None
            raise StoreError(f"Failed to read s3://{self.bucket}/{key}: {e}")
        except BotoCoreError as e:
            raise StoreError(f"Failed to read s3://{self.bucket}/{key}: {e}")

    def _write(self, key, body, expected_revision):
        params = {
            'Bucket': self.bucket,
            'Key': key,
            'Body': body,
            'ContentType': 'application/json',
        }
        if expected_revision is None:
            params['IfNoneMatch'] = '*'
        else:
            params['IfMatch'] = expected_revision

        try:
            response = self.client.put_object(**params)
            return response['ETag']
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in S3_CONFLICT_CODES:
                raise RevisionConflict(key, expected_revision)
            raise StoreError(f"Failed to write s3://{self.bucket}/{key}: {e}")
        except BotoCoreError as e:
            raise StoreError(f"Failed to write s3://{self.bucket}/{key}: {e}")


def create_store(config, session=None) -> DocumentStore:
    """Build the store selected by ``DOCUMENT_STORE`` from an app config mapping."""
    backend = config.get('DOCUMENT_STORE', 'sql')
    retries = config.get('STORE_MAX_RETRIES', 5)

    if backend == 'memory':
        return MemoryDocumentStore(max_retries=retries)
    if backend == 's3':
        bucket = config.get('BUCKET_NAME')
        if not bucket:
            raise ValueError("BUCKET_NAME is required for the s3 document store")
        client = boto3.client('s3', region_name=config.get('AWS_REGION'))
        return S3DocumentStore(client, bucket, max_retries=retries)
    if backend == 'sql':
        if session is None:
            raise ValueError("A database session is required for the sql document store")
        return SQLDocumentStore(session, max_retries=retries)
    raise ValueError(f"Unknown DOCUMENT_STORE: {backend}")


def get_store() -> DocumentStore:
    return current_app.extensions['document_store']
