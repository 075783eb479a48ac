"""Organization model for multi-tenant support."""

from datetime import datetime
from koopflow.extensions import db

# Billing fields that must all be filled before the document workflow can be enabled.
# The VAT number is optional.
REQUIRED_BILLING_FIELDS = (
    'billing_name',
    'billing_address',
    'billing_postal_code',
    'billing_city',
    'billing_country',
    'billing_email',
)

BILLING_FIELDS = REQUIRED_BILLING_FIELDS + ('billing_vat_number',)


class Organization(db.Model):
    """
    Organization model representing tenants in multi-tenant architecture.

    Users belong to one organization and can only access koopovereenkomsten
    authored by members of that organization. The domain is the tenant key
    used at registration and sent to the extraction service.
    """

    __tablename__ = 'organizations'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    domain = db.Column(db.String(255), nullable=False, unique=True, index=True)

    billing_name = db.Column(db.String(255), nullable=True)
    billing_address = db.Column(db.String(255), nullable=True)
    billing_postal_code = db.Column(db.String(32), nullable=True)
    billing_city = db.Column(db.String(255), nullable=True)
    billing_country = db.Column(db.String(255), nullable=True)
    billing_vat_number = db.Column(db.String(64), nullable=True)
    billing_email = db.Column(db.String(255), nullable=True)

    has_document_workflow = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    users = db.relationship(
        'User',
        back_populates='organization',
        foreign_keys='User.organization_id',
        lazy='dynamic'
    )
    pending_users = db.relationship(
        'User',
        back_populates='pending_organization',
        foreign_keys='User.pending_organization_id',
        lazy='dynamic'
    )

    @property
    def billing_complete(self):
        return all(
            isinstance(getattr(self, field), str) and getattr(self, field).strip()
            for field in REQUIRED_BILLING_FIELDS
        )

    @property
    def has_document_workflow_access(self):
        return bool(self.has_document_workflow) and self.billing_complete

    def __repr__(self):
        return f'<Organization {self.domain}>'

    def to_dict(self):
        """Convert to the summary visible to every member."""
        return {
            'id': self.id,
            'name': self.name,
            'domain': self.domain,
            'hasDocumentWorkflowAccess': self.has_document_workflow_access,
        }

    def settings_dict(self):
        """Convert to the admin settings representation."""
        return {
            'id': self.id,
            'name': self.name,
            'domain': self.domain,
            'billingName': self.billing_name,
            'billingAddress': self.billing_address,
            'billingPostalCode': self.billing_postal_code,
            'billingCity': self.billing_city,
            'billingCountry': self.billing_country,
            'billingVatNumber': self.billing_vat_number,
            'billingEmail': self.billing_email,
            'documentWorkflowEnabled': bool(self.has_document_workflow),
            'billingComplete': self.billing_complete,
        }
