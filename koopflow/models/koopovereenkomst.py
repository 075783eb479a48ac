"""Koopovereenkomst (purchase agreement) document model."""

import uuid
from datetime import datetime
from koopflow.extensions import db
from koopflow.models.base import AuthorScopedMixin

UPLOADED = 'uploaded'
EXTRACTED = 'extracted'
EXTRACTION_FAILED = 'extraction_failed'
REVIEWED = 'reviewed'

STATUSES = (UPLOADED, EXTRACTED, EXTRACTION_FAILED, REVIEWED)

# States extraction may (re)start from. Re-extracting an extracted record
# overwrites its data; reviewed records are final.
EXTRACTABLE_STATUSES = (UPLOADED, EXTRACTION_FAILED, EXTRACTED)


def _new_id():
    return uuid.uuid4().hex


class Koopovereenkomst(db.Model, AuthorScopedMixin):
    """
    Uploaded purchase agreement and its review state.

    The record has no organization column. It belongs to the organization of
    its author (user_id), and every tenant-scoped query joins through users.
    """

    __tablename__ = 'koopovereenkomsten'

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    naam = db.Column(db.String(255), nullable=False)
    pdf_base64 = db.Column(db.Text, nullable=False)

    status = db.Column(
        db.String(32),
        nullable=False,
        default=UPLOADED,
        index=True
    )
    json_data = db.Column(db.JSON, nullable=False, default=dict)
    error_message = db.Column(db.Text, nullable=True)  # set only when extraction failed

    user_id = db.Column(
        db.Integer,
        db.ForeignKey('users.id'),
        nullable=False,
        index=True
    )

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )

    # Relationships
    user = db.relationship('User', back_populates='koopovereenkomsten')

    @property
    def organization_id(self):
        return self.user.organization_id if self.user else None

    def __repr__(self):
        return f'<Koopovereenkomst {self.naam} ({self.status})>'

    def to_dict(self, include_pdf=False):
        """Public projection. The PDF payload is only included for single-record views."""
        data = {
            'id': self.id,
            'naam': self.naam,
            'status': self.status,
            'jsonData': self.json_data,
            'userId': self.user_id,
            'createdAt': self.created_at.isoformat(),
            'updatedAt': self.updated_at.isoformat(),
            'user': self.user.summary() if self.user else None,
        }
        if self.error_message:
            data['errorMessage'] = self.error_message
        if include_pdf:
            data['pdfBase64'] = self.pdf_base64
        return data
