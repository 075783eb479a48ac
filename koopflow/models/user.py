"""User model with Flask-Login integration."""

from datetime import datetime
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from koopflow.extensions import db

PENDING = 'PENDING'
APPROVED = 'APPROVED'
REJECTED = 'REJECTED'


class User(db.Model, UserMixin):
    """
    User model representing application users.

    Membership is exactly one of:
    - organization_id set: approved member
    - pending_organization_id set: waiting for an admin of that organization
    - neither: rejected, or removed from a pending request
    """

    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    registration_status = db.Column(db.String(20), nullable=False, default=PENDING)

    organization_id = db.Column(
        db.Integer,
        db.ForeignKey('organizations.id'),
        nullable=True,
        index=True
    )
    pending_organization_id = db.Column(
        db.Integer,
        db.ForeignKey('organizations.id'),
        nullable=True,
        index=True
    )

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    organization = db.relationship(
        'Organization',
        back_populates='users',
        foreign_keys=[organization_id]
    )
    pending_organization = db.relationship(
        'Organization',
        back_populates='pending_users',
        foreign_keys=[pending_organization_id]
    )
    koopovereenkomsten = db.relationship(
        'Koopovereenkomst',
        back_populates='user',
        lazy='dynamic'
    )

    @property
    def is_approved(self):
        return self.registration_status == APPROVED

    def set_password(self, password):
        """Hash and store password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Verify password against hash."""
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        return f'<User {self.email}>'

    def summary(self):
        """Author summary embedded in document responses."""
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
        }

    def to_dict(self):
        """Convert to dictionary representation."""
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'isAdmin': self.is_admin,
            'registrationStatus': self.registration_status,
            'organizationId': self.organization_id,
            'pendingOrganizationId': self.pending_organization_id,
            'createdAt': self.created_at.isoformat(),
        }
