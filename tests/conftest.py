"""Pytest configuration and fixtures."""

import base64
import json
import tempfile

import httpx
import pytest
from flask import g

from koopflow import create_app
from koopflow.extensions import db as _db
from koopflow.extraction.gateway import ExtractionGateway
from koopflow.models.koopovereenkomst import Koopovereenkomst
from koopflow.models.organization import Organization
from koopflow.models.user import User, APPROVED, PENDING

EXTRACTION_URL = 'https://extraction.test/api/extract'
PASSWORD = 'password123'


class TestConfig:
    """Test configuration."""
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    UPLOAD_MIN_BYTES = 100
    UPLOAD_MAX_BYTES = 40 * 1024 * 1024
    MAX_CONTENT_LENGTH = 60 * 1024 * 1024
    STORAGE_CAPACITY_BYTES = None

    EXTRACTION_API_URL = EXTRACTION_URL
    EXTRACTION_API_KEY = 'test-api-key'
    EXTRACTION_TIMEOUT = 30.0

    INSTRUCTIONS_FOLDER = tempfile.mkdtemp()

    CELERY_BROKER_URL = 'memory://'
    CELERY_RESULT_BACKEND = 'cache+memory://'
    CELERY_TASK_SERIALIZER = 'json'
    CELERY_RESULT_SERIALIZER = 'json'
    CELERY_ACCEPT_CONTENT = ['json']
    CELERY_TIMEZONE = 'UTC'
    CELERY_ENABLE_UTC = True
    CELERY_TASK_ALWAYS_EAGER = False


def make_pdf_base64(size=2048):
    """Base64 payload of a fake PDF of roughly `size` bytes."""
    raw = b'%PDF-1.4\n' + b'0' * size + b'\n%%EOF'
    return base64.b64encode(raw).decode('ascii')


class FakeExtractionService:
    """Scripted extraction service behind an httpx.MockTransport."""

    def __init__(self):
        self.requests = []
        self._responses = []

    def respond(self, status_code=200, json_body=None, text=None):
        self._responses.append(('response', status_code, json_body, text))

    def fail(self, exc):
        self._responses.append(('raise', exc, None, None))

    def handler(self, request):
        self.requests.append({
            'headers': dict(request.headers),
            'body': json.loads(request.content),
        })
        if not self._responses:
            return httpx.Response(500, json={'error': 'no scripted response'})

        kind, first, json_body, text = self._responses.pop(0)
        if kind == 'raise':
            raise first
        if text is not None:
            return httpx.Response(first, text=text)
        return httpx.Response(first, json=json_body)


@pytest.fixture(scope='function')
def app():
    """Create and configure Flask app for testing."""
    app = create_app(TestConfig)

    # Requests share the fixture's app context, so the logged-in user cached
    # on g must not leak from one test client to the next.
    @app.before_request
    def _reset_login_cache():
        g.pop('_login_user', None)

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def db(app):
    """Provide database for tests."""
    return _db


@pytest.fixture(scope='function')
def client(app):
    """Provide test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def extraction_service(app):
    """Install a scripted extraction service on the app."""
    service = FakeExtractionService()
    app.extensions['extraction_gateway'] = ExtractionGateway(
        url=EXTRACTION_URL,
        api_key='test-api-key',
        timeout=30.0,
        transport=httpx.MockTransport(service.handler),
    )
    return service


def _organization(db, name, domain, enabled=True, billing_complete=True):
    org = Organization(name=name, domain=domain, has_document_workflow=enabled)
    if billing_complete:
        org.billing_name = f'{name} B.V.'
        org.billing_address = 'Hoofdstraat 1'
        org.billing_postal_code = '1234 AB'
        org.billing_city = 'Utrecht'
        org.billing_country = 'Nederland'
        org.billing_email = f'facturen@{domain}.nl'
    db.session.add(org)
    db.session.commit()
    return org


def _user(db, email, name, organization=None, is_admin=False, pending_for=None):
    user = User(
        email=email,
        name=name,
        is_admin=is_admin,
        organization_id=organization.id if organization else None,
        pending_organization_id=pending_for.id if pending_for else None,
        registration_status=PENDING if pending_for else APPROVED,
    )
    user.set_password(PASSWORD)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture(scope='function')
def org1(db):
    """Entitled organization: billing complete, feature enabled."""
    return _organization(db, 'Makelaardij Noord', 'noord')


@pytest.fixture(scope='function')
def org2(db):
    """Second entitled organization."""
    return _organization(db, 'Makelaardij Zuid', 'zuid')


@pytest.fixture(scope='function')
def admin1(db, org1):
    """Admin of organization 1."""
    return _user(db, 'admin@noord.nl', 'Anna Admin', org1, is_admin=True)


@pytest.fixture(scope='function')
def user1(db, org1, admin1):
    """Member of organization 1."""
    return _user(db, 'jan@noord.nl', 'Jan Jansen', org1)


@pytest.fixture(scope='function')
def colleague1(db, org1, admin1):
    """Second member of organization 1."""
    return _user(db, 'vera@noord.nl', 'Vera Visser', org1)


@pytest.fixture(scope='function')
def user2(db, org2):
    """Admin and member of organization 2."""
    return _user(db, 'wim@zuid.nl', 'Wim de Wit', org2, is_admin=True)


@pytest.fixture(scope='function')
def pending_user(db, org1, admin1):
    """User waiting for approval by organization 1."""
    return _user(db, 'piet@noord.nl', 'Piet Pending', pending_for=org1)


def login(app, email, password=PASSWORD):
    """Return a fresh test client logged in as `email`."""
    client = app.test_client()
    response = client.post('/auth/login', json={'email': email, 'password': password})
    assert response.status_code == 200, response.get_json()
    return client


@pytest.fixture(scope='function')
def authenticated_client1(app, user1):
    """Provide authenticated client for user1."""
    return login(app, user1.email)


@pytest.fixture(scope='function')
def colleague_client1(app, colleague1):
    return login(app, colleague1.email)


@pytest.fixture(scope='function')
def admin_client1(app, admin1):
    return login(app, admin1.email)


@pytest.fixture(scope='function')
def authenticated_client2(app, user2):
    """Provide authenticated client for user2."""
    return login(app, user2.email)


@pytest.fixture(scope='function')
def koopovereenkomst1(db, user1):
    """Uploaded koopovereenkomst authored by user1."""
    record = Koopovereenkomst(
        naam='contract.pdf',
        pdf_base64=make_pdf_base64(),
        json_data={},
        user_id=user1.id,
    )
    db.session.add(record)
    db.session.commit()
    return record


@pytest.fixture(scope='function')
def koopovereenkomst2(db, user2):
    """Uploaded koopovereenkomst authored by user2 (organization 2)."""
    record = Koopovereenkomst(
        naam='zuid.pdf',
        pdf_base64=make_pdf_base64(),
        json_data={},
        user_id=user2.id,
    )
    db.session.add(record)
    db.session.commit()
    return record
