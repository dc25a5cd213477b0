import os
from dotenv import load_dotenv

load_dotenv(os.path.join(os.path.dirname(__file__), '.env'))

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-prod'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///meetbook.db'

    # Shared admin secret, compared verbatim
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', '')

    # Document store: sql | s3 | memory
    DOCUMENT_STORE = os.environ.get('DOCUMENT_STORE', 'sql')
    BUCKET_NAME = os.environ.get('BUCKET_NAME')
    AWS_REGION = os.environ.get('AWS_REGION', 'us-east-1')
    MEETINGS_KEY = 'meetings.json'
    BOOKINGS_KEY = 'bookings.json'
    STORE_MAX_RETRIES = int(os.environ.get('STORE_MAX_RETRIES', 5))

    # Business Rules Defaults
    MEETING_TIMEZONE = os.environ.get('MEETING_TIMEZONE', 'UTC')

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    CORS_ALLOW_ORIGIN = os.environ.get('CORS_ALLOW_ORIGIN', '*')

class DevelopmentConfig(Config):
    DEBUG = True

class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    ADMIN_PASSWORD = 'test-admin-secret'
    DOCUMENT_STORE = 'sql'
    LOG_LEVEL = 'DEBUG'

class ProductionConfig(Config):
    DEBUG = False
    # In prod, rely on env vars strictly
