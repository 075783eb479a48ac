"""Koopovereenkomst lifecycle: upload, extract, review, delete.

States::

    uploaded ──extract──> extracted ──review──> reviewed
       │  ^                  │ ^
       │  └──extract──┐      └─┘ re-extract
       └──extract──> extraction_failed

Every operation checks, in order, that the acting user's organization has the
document workflow (AccessDenied) and that the record is authored by a member
of that organization (Forbidden). No record is touched before both pass.

Extraction failures never raise to the caller. They are written to the record
as ``extraction_failed`` plus a diagnostic so the workflow can retry.
Concurrent calls on one record are not serialized: the last write wins.
"""

import json
import logging

from flask import current_app

from koopflow.documents.store import KoopovereenkomstStore
from koopflow.documents.validation import validate_upload
from koopflow.errors import CapacityExceeded, Forbidden, NotFound, ValidationError
from koopflow.extraction.gateway import get_extraction_gateway
from koopflow.models.koopovereenkomst import (
    EXTRACTABLE_STATUSES,
    EXTRACTED,
    EXTRACTION_FAILED,
    REVIEWED,
    STATUSES,
)
from koopflow.organization.directory import require_document_workflow_access

logger = logging.getLogger(__name__)

# Statuses a record can be finalized from
REVIEWABLE_FROM = (EXTRACTED, REVIEWED)


class KoopovereenkomstLifecycle:
    """Operations the API layer calls on koopovereenkomst records."""

    def __init__(self, store=None, gateway=None, config=None):
        self.store = store or KoopovereenkomstStore
        self._gateway = gateway
        self.config = config if config is not None else current_app.config

    @property
    def gateway(self):
        if self._gateway is None:
            self._gateway = get_extraction_gateway()
        return self._gateway

    def _load_scoped(self, record_id, acting_user):
        """Fetch a record the acting user's organization may see."""
        organization = require_document_workflow_access(acting_user)

        record = self.store.get_by_id(record_id) if record_id else None
        if record is None:
            raise NotFound('Koopovereenkomst not found')

        if record.organization_id != organization.id:
            logger.warning(
                f"SECURITY: user {acting_user.id} (org {organization.id}) denied access "
                f"to koopovereenkomst {record_id} of org {record.organization_id}"
            )
            raise Forbidden('No access to this koopovereenkomst')

        return organization, record

    def upload(self, naam, pdf_base64, acting_user, auto_extract=False):
        """
        Validate and store a new koopovereenkomst in status ``uploaded``.

        Raises:
            AccessDenied: Organization not entitled
            ValidationError: Bad name, encoding or size
            CapacityExceeded: Storage ceiling reached
        """
        organization = require_document_workflow_access(acting_user)

        validate_upload(
            naam,
            pdf_base64,
            min_bytes=self.config.get('UPLOAD_MIN_BYTES', 100),
            max_bytes=self.config.get('UPLOAD_MAX_BYTES', 40 * 1024 * 1024),
        )

        capacity = self.config.get('STORAGE_CAPACITY_BYTES')
        if not self.store.has_capacity_for(len(pdf_base64), capacity):
            logger.warning(f"Upload of {naam} refused: storage capacity reached")
            raise CapacityExceeded(
                'Storage capacity reached. Delete old koopovereenkomsten or contact support.'
            )

        record = self.store.create(naam.strip(), pdf_base64, acting_user.id)
        logger.info(
            f"Koopovereenkomst {record.id} uploaded by user {acting_user.id} "
            f"for org {organization.id}"
        )

        if auto_extract:
            from koopflow.tasks.extraction import extract_koopovereenkomst_task
            extract_koopovereenkomst_task.delay(
                koopovereenkomst_id=record.id,
                user_id=acting_user.id,
                organization_id=organization.id
            )

        return record

    def extract(self, record_id, acting_user):
        """
        Run the extraction service on a record and store the outcome.

        Returns the refreshed record whether extraction succeeded or not.
        """
        organization, record = self._load_scoped(record_id, acting_user)

        if record.status not in EXTRACTABLE_STATUSES:
            raise ValidationError(
                f'Cannot extract a koopovereenkomst with status {record.status}'
            )

        naam = record.naam
        try:
            extracted = self.gateway.extract(
                file=record.pdf_base64,
                filename=naam,
                tenant=organization.domain,
            )
        except Exception as e:
            diagnostic = getattr(e, 'diagnostic', None) or str(e) or e.__class__.__name__
            logger.error(f"Extraction failed for koopovereenkomst {record_id}: {e}", exc_info=True)
            updated = self.store.update(
                record_id,
                status=EXTRACTION_FAILED,
                error_message=json.dumps({'error': diagnostic}, default=str),
            )
        else:
            logger.info(f"Extraction succeeded for koopovereenkomst {record_id}")
            updated = self.store.update(
                record_id,
                status=EXTRACTED,
                json_data=extracted,
                error_message=None,
            )

        if updated is None:
            # Deleted while the extraction service was working
            raise NotFound('Koopovereenkomst not found')
        return updated

    def get(self, record_id, acting_user):
        _, record = self._load_scoped(record_id, acting_user)
        return record

    def list(self, acting_user):
        organization = require_document_workflow_access(acting_user)
        return self.store.list_by_organization(organization.id)

    def update_fields(self, record_id, acting_user, changes):
        """
        Partially update jsonData and/or status.

        jsonData is stored as given; its shape is not validated. status may
        only move to ``reviewed`` from ``extracted`` (or stay as it is).
        """
        _, record = self._load_scoped(record_id, acting_user)

        fields = {}
        if 'jsonData' in changes:
            fields['json_data'] = changes['jsonData']

        if 'status' in changes:
            status = changes['status']
            if status not in STATUSES:
                raise ValidationError(
                    f'Invalid status. Expected one of: {", ".join(STATUSES)}'
                )
            if status != record.status:
                if status != REVIEWED or record.status not in REVIEWABLE_FROM:
                    raise ValidationError(
                        f'Cannot change status from {record.status} to {status}'
                    )
                fields['status'] = status

        if not fields:
            return record

        updated = self.store.update(record_id, **fields)
        if updated is None:
            raise NotFound('Koopovereenkomst not found')
        if fields.get('status') == REVIEWED:
            logger.info(f"Koopovereenkomst {record_id} reviewed by user {acting_user.id}")
        return updated

    def delete(self, record_id, acting_user):
        self._load_scoped(record_id, acting_user)
        self.store.delete(record_id)
        logger.info(f"Koopovereenkomst {record_id} deleted by user {acting_user.id}")
