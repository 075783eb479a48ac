"""Authentication and registration routes."""

from flask import Blueprint, request, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from koopflow.errors import Forbidden, Unauthenticated, ValidationError
from koopflow.extensions import db
from koopflow.models.organization import Organization
from koopflow.models.user import User, APPROVED, PENDING

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')

REGISTRATION_FIELDS = ('name', 'email', 'password', 'organizationName', 'organizationDomain')


@auth_bp.route('/register', methods=['POST'])
def register():
    """
    Register a user.

    The first user of a new domain creates the organization and becomes its
    admin. Users registering for an existing domain wait for an admin of that
    organization to approve them.

    Request Body:
        {
            "name": "Jan Jansen",
            "email": "jan@example.nl",
            "password": "password123",
            "organizationName": "Example Makelaars",
            "organizationDomain": "example"
        }

    Returns:
        201: Registered (approved admin or pending member)
        400: Missing fields or email already registered
    """
    data = request.get_json(silent=True) or {}

    if any(not isinstance(data.get(field), str) or not data[field].strip()
           for field in REGISTRATION_FIELDS):
        raise ValidationError('Missing required fields')

    email = data['email'].strip().lower()
    domain = data['organizationDomain'].strip().lower()

    if User.query.filter_by(email=email).first():
        raise ValidationError('User with this email already exists')

    user = User(email=email, name=data['name'].strip())
    user.set_password(data['password'])

    organization = Organization.query.filter_by(domain=domain).first()
    if organization:
        user.registration_status = PENDING
        user.pending_organization_id = organization.id
        message = 'Registration successful. Your account is pending approval.'
    else:
        organization = Organization(name=data['organizationName'].strip(), domain=domain)
        db.session.add(organization)
        db.session.flush()
        user.registration_status = APPROVED
        user.is_admin = True
        user.organization_id = organization.id
        message = 'Registration successful. You are now an admin of your organization.'

    db.session.add(user)
    db.session.commit()
    current_app.logger.info(f"User {user.id} registered for domain {domain} ({user.registration_status})")

    return jsonify({
        'message': message,
        'userId': user.id,
        'registrationStatus': user.registration_status,
    }), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Authenticate user and create session.

    Request Body:
        {
            "email": "user@example.com",
            "password": "password123"
        }

    Returns:
        200: Login successful with user info
        400: Missing credentials
        401: Invalid credentials
        403: Registration pending or rejected
    """
    data = request.get_json(silent=True)

    if not data or not data.get('email') or not data.get('password'):
        raise ValidationError('Email and password required')

    user = User.query.filter_by(email=str(data['email']).strip().lower()).first()

    if not user or not user.check_password(data['password']):
        raise Unauthenticated('Invalid credentials')

    if not user.is_approved:
        raise Forbidden('Your account has not been approved by an organization admin')

    login_user(user)

    return jsonify({
        'message': 'Login successful',
        'user': user.to_dict()
    }), 200


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """End user session."""
    logout_user()
    return jsonify({'message': 'Logout successful'}), 200


@auth_bp.route('/me', methods=['GET'])
@login_required
def get_current_user():
    """
    Get current authenticated user information.

    Returns:
        200: Current user info
    """
    return jsonify(current_user.to_dict()), 200
