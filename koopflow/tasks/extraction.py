"""Background extraction Celery task with authorization re-validation."""

import logging

from koopflow.errors import AccessDenied, Forbidden, KoopflowError
from koopflow.extensions import celery, db
from koopflow.models.koopovereenkomst import Koopovereenkomst
from koopflow.models.user import User

logger = logging.getLogger(__name__)


class AuthorizationError(Exception):
    """Raised when background job authorization fails."""
    pass


@celery.task(bind=True)
def extract_koopovereenkomst_task(self, koopovereenkomst_id, user_id, organization_id):
    """
    Extract a freshly uploaded koopovereenkomst in the background.

    Nothing from the original request is trusted: the record must still be
    authored inside the claimed organization and the user must still be an
    approved member of it. Extraction failures are recorded on the document by
    the lifecycle engine, so the task is not retried.

    Args:
        koopovereenkomst_id: Record ID
        user_id: User who uploaded and requested extraction
        organization_id: Tenant ID for authorization

    Returns:
        dict: Resulting record status

    Raises:
        AuthorizationError: If any authorization check fails
    """
    from koopflow.documents.lifecycle import KoopovereenkomstLifecycle

    logger.info(f"Extracting koopovereenkomst {koopovereenkomst_id} for org {organization_id}")

    record = Koopovereenkomst.get_for_organization(koopovereenkomst_id, organization_id)
    if record is None:
        if db.session.get(Koopovereenkomst, koopovereenkomst_id) is not None:
            logger.error(
                f"SECURITY: Tenant mismatch for koopovereenkomst {koopovereenkomst_id}, "
                f"job claimed org {organization_id}"
            )
            raise AuthorizationError("Tenant mismatch in background job")
        logger.warning(f"Koopovereenkomst {koopovereenkomst_id} no longer exists")
        return {'status': 'error', 'message': 'Koopovereenkomst not found'}

    user = db.session.get(User, user_id)
    if user is None:
        logger.error(f"SECURITY: User {user_id} no longer exists")
        raise AuthorizationError("Requesting user no longer exists")

    if user.organization_id != organization_id:
        logger.error(
            f"SECURITY: User {user_id} no longer in org {organization_id}. "
            f"Now in org {user.organization_id}"
        )
        raise AuthorizationError("User organization changed")

    if not user.is_approved:
        logger.error(f"SECURITY: User {user_id} is not approved")
        raise AuthorizationError("User account not approved")

    try:
        updated = KoopovereenkomstLifecycle().extract(koopovereenkomst_id, user)
    except (Forbidden, AccessDenied) as e:
        logger.error(f"SECURITY: Extraction of {koopovereenkomst_id} refused: {e}")
        raise AuthorizationError(str(e))
    except KoopflowError as e:
        logger.warning(f"Extraction of {koopovereenkomst_id} skipped: {e}")
        return {'status': 'error', 'message': e.message}

    return {
        'status': updated.status,
        'koopovereenkomst_id': updated.id,
    }
