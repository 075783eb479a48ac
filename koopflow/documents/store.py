"""Persistence boundary for koopovereenkomst records."""

import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from koopflow.extensions import db
from koopflow.models.koopovereenkomst import Koopovereenkomst

logger = logging.getLogger(__name__)


class KoopovereenkomstStore:
    """
    Create, read, update and delete koopovereenkomst rows.

    Organization listings join through the author; the record itself has no
    organization column. Every mutation is a single commit so a record is never
    left half-written.
    """

    @staticmethod
    def create(naam, pdf_base64, user_id):
        record = Koopovereenkomst(
            naam=naam,
            pdf_base64=pdf_base64,
            json_data={},
            user_id=user_id,
        )
        db.session.add(record)
        db.session.commit()
        return record

    @staticmethod
    def get_by_id(record_id):
        return db.session.get(Koopovereenkomst, record_id)

    @staticmethod
    def list_by_organization(organization_id):
        """Records authored by members of an organization, newest first, without PDF payloads."""
        return Koopovereenkomst.listing_for_organization(
            organization_id,
            deferred=(Koopovereenkomst.pdf_base64,)
        )

    @staticmethod
    def update(record_id, **fields):
        """
        Partial update: only the given columns are written.

        Returns:
            The refreshed record, or None if it no longer exists
        """
        record = db.session.get(Koopovereenkomst, record_id)
        if record is None:
            return None
        for column, value in fields.items():
            setattr(record, column, value)
        db.session.commit()
        return record

    @staticmethod
    def delete(record_id):
        record = db.session.get(Koopovereenkomst, record_id)
        if record is not None:
            db.session.delete(record)
            db.session.commit()

    @staticmethod
    def stored_payload_bytes():
        """Total size of stored base64 payloads."""
        total = db.session.query(
            func.coalesce(func.sum(func.length(Koopovereenkomst.pdf_base64)), 0)
        ).scalar()
        return int(total or 0)

    @staticmethod
    def has_capacity_for(incoming_bytes, capacity_bytes):
        """
        Best-effort capacity check.

        Returns True when no capacity is configured or the check itself fails;
        only a successful measurement over the ceiling returns False.
        """
        if capacity_bytes is None:
            return True
        try:
            used = KoopovereenkomstStore.stored_payload_bytes()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning(f"Capacity check failed, continuing upload: {e}")
            return True
        return used + incoming_bytes <= capacity_bytes
