import os
from datetime import timedelta


def _int_env(name, default):
    value = os.environ.get(name)
    return int(value) if value else default


class Config:
    """Flask application configuration."""

    # Security
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'postgresql://localhost/koopflow'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # Upload limits (decoded PDF size estimate, in bytes)
    UPLOAD_MIN_BYTES = _int_env('UPLOAD_MIN_BYTES', 100)
    UPLOAD_MAX_BYTES = _int_env('UPLOAD_MAX_BYTES', 40 * 1024 * 1024)  # 40MB
    # base64 inflates by a third, plus the JSON envelope
    MAX_CONTENT_LENGTH = 60 * 1024 * 1024

    # Best-effort storage ceiling for stored PDF payloads; unset disables the check
    STORAGE_CAPACITY_BYTES = _int_env('STORAGE_CAPACITY_BYTES', None)

    # Extraction service
    EXTRACTION_API_URL = os.environ.get('EXTRACTION_API_URL') or 'http://localhost:7071/api/extract'
    EXTRACTION_API_KEY = os.environ.get('EXTRACTION_API_KEY') or ''
    EXTRACTION_TIMEOUT = float(os.environ.get('EXTRACTION_TIMEOUT') or 30)

    # Work instructions (markdown files)
    INSTRUCTIONS_FOLDER = os.environ.get('INSTRUCTIONS_FOLDER') or os.path.join(
        os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
        'werkinstructies'
    )

    # Celery
    CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL') or 'redis://localhost:6379/0'
    CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND') or 'redis://localhost:6379/0'
    CELERY_TASK_SERIALIZER = 'json'
    CELERY_RESULT_SERIALIZER = 'json'
    CELERY_ACCEPT_CONTENT = ['json']
    CELERY_TIMEZONE = 'UTC'
    CELERY_ENABLE_UTC = True
    CELERY_TASK_ALWAYS_EAGER = False

    # Session
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = os.environ.get('SESSION_COOKIE_SECURE', 'False').lower() == 'true'
    PERMANENT_SESSION_LIFETIME = timedelta(hours=8)
