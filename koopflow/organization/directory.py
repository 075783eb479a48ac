"""Tenancy directory: organization membership, feature entitlement and user administration.

Admin actions run their guards in a fixed order:

1. target exists (NotFound)
2. target belongs to, or is pending for, the admin's organization (Forbidden)
3. action precondition (ValidationError)
4. the organization keeps at least one admin (LastAdminProtected)
5. the admin is not targeting their own account (SelfActionDenied)

Nothing is written until every guard has passed.
"""

import logging

from koopflow.errors import (
    AccessDenied,
    Forbidden,
    LastAdminProtected,
    NotFound,
    SelfActionDenied,
    ValidationError,
)
from koopflow.extensions import db
from koopflow.models.koopovereenkomst import Koopovereenkomst
from koopflow.models.organization import BILLING_FIELDS
from koopflow.models.user import User, APPROVED, REJECTED

logger = logging.getLogger(__name__)

ADMIN_ACTIONS = ('approve', 'reject', 'toggleAdmin', 'delete')

# Wire name -> column name for the admin settings form
SETTINGS_FIELDS = {
    'billingName': 'billing_name',
    'billingAddress': 'billing_address',
    'billingPostalCode': 'billing_postal_code',
    'billingCity': 'billing_city',
    'billingCountry': 'billing_country',
    'billingVatNumber': 'billing_vat_number',
    'billingEmail': 'billing_email',
}


def resolve_principal(user):
    """Resolve organization and role for an authenticated user."""
    return {
        'organizationId': user.organization_id,
        'isAdmin': bool(user.is_admin),
        'role': 'admin' if user.is_admin else 'member',
    }


def require_organization(user):
    """Return the user's organization, or raise Forbidden if they have none."""
    if user.organization_id is None or user.organization is None:
        raise Forbidden('You are not a member of an organization')
    return user.organization


def require_document_workflow_access(user):
    """Return the user's organization if it is entitled to the document workflow."""
    organization = require_organization(user)
    if not organization.has_document_workflow_access:
        raise AccessDenied(
            'Your organization does not have access to koopovereenkomsten. '
            'An admin must complete the billing details and enable the feature.'
        )
    return organization


def require_admin(user):
    """Return the user's organization if the user is one of its admins."""
    organization = require_organization(user)
    if not user.is_admin:
        raise Forbidden('Admin rights required')
    return organization


def count_admins(organization_id):
    return User.query.filter_by(organization_id=organization_id, is_admin=True).count()


def list_organization_users(admin):
    """Approved members plus users waiting for approval."""
    organization = require_admin(admin)
    users = User.query.filter(
        db.or_(
            User.organization_id == organization.id,
            User.pending_organization_id == organization.id,
        )
    ).order_by(User.created_at.asc()).all()
    return users


def _load_target(organization, user_id):
    target = db.session.get(User, user_id) if user_id is not None else None
    if target is None:
        raise NotFound('User not found')

    belongs = (
        target.organization_id == organization.id
        or target.pending_organization_id == organization.id
    )
    if not belongs:
        logger.warning(
            f"Admin action on user {user_id} outside organization {organization.id} refused"
        )
        raise Forbidden('You can only manage users from your own organization')
    return target


def _guard_last_admin(organization, target):
    if target.is_admin and target.organization_id == organization.id:
        if count_admins(organization.id) <= 1:
            raise LastAdminProtected(
                'Cannot remove the last admin of your organization'
            )


def _guard_self(admin, target, message):
    if target.id == admin.id:
        raise SelfActionDenied(message)


def approve_user(admin, user_id):
    organization = require_admin(admin)
    target = _load_target(organization, user_id)

    if target.pending_organization_id != organization.id:
        raise ValidationError('User has no pending request for your organization')

    target.organization_id = organization.id
    target.pending_organization_id = None
    target.registration_status = APPROVED
    db.session.commit()
    logger.info(f"User {target.id} approved for organization {organization.id}")
    return target


def reject_user(admin, user_id):
    organization = require_admin(admin)
    target = _load_target(organization, user_id)

    if target.pending_organization_id != organization.id:
        raise ValidationError('User has no pending request for your organization')

    target.pending_organization_id = None
    target.registration_status = REJECTED
    db.session.commit()
    logger.info(f"User {target.id} rejected for organization {organization.id}")
    return target


def toggle_admin(admin, user_id, is_admin):
    organization = require_admin(admin)
    target = _load_target(organization, user_id)

    if not isinstance(is_admin, bool):
        raise ValidationError('isAdmin must be true or false')
    if target.organization_id != organization.id:
        raise ValidationError('Only approved members can be made admin')

    if not is_admin:
        _guard_last_admin(organization, target)
    _guard_self(admin, target, 'Cannot change your own admin status')

    target.is_admin = is_admin
    db.session.commit()
    logger.info(
        f"Admin flag of user {target.id} set to {is_admin} in organization {organization.id}"
    )
    return target


def delete_user(admin, user_id):
    organization = require_admin(admin)
    target = _load_target(organization, user_id)

    _guard_last_admin(organization, target)
    _guard_self(admin, target, 'Cannot delete your own account')

    # Documents belong to the organization; the deleting admin becomes their author
    reassigned = Koopovereenkomst.query.filter_by(user_id=target.id).update(
        {Koopovereenkomst.user_id: admin.id}, synchronize_session='fetch'
    )
    db.session.delete(target)
    db.session.commit()
    logger.info(
        f"User {user_id} deleted from organization {organization.id}, "
        f"{reassigned} koopovereenkomsten reassigned to user {admin.id}"
    )


def apply_admin_action(admin, action, user_id, is_admin=None):
    """Dispatch an admin action by name."""
    if action == 'approve':
        return approve_user(admin, user_id)
    if action == 'reject':
        return reject_user(admin, user_id)
    if action == 'toggleAdmin':
        return toggle_admin(admin, user_id, is_admin)
    if action == 'delete':
        return delete_user(admin, user_id)
    raise ValidationError(f'Invalid action. Expected one of: {", ".join(ADMIN_ACTIONS)}')


def update_organization_settings(admin, data):
    """
    Partially update billing details and the document workflow flag.

    Enabling the document workflow requires a complete billing profile after
    this update is applied. On any validation failure nothing is changed.
    """
    organization = require_admin(admin)

    changes = {}
    for wire_name, column in SETTINGS_FIELDS.items():
        if wire_name not in data:
            continue
        value = data[wire_name]
        if value is not None and not isinstance(value, str):
            raise ValidationError(f'{wire_name} must be a string')
        value = value.strip() if value else None
        changes[column] = value or None

    enable = data.get('documentWorkflowEnabled')
    if enable is not None and not isinstance(enable, bool):
        raise ValidationError('documentWorkflowEnabled must be true or false')

    if enable:
        resulting = {
            column: changes.get(column, getattr(organization, column))
            for column in BILLING_FIELDS
        }
        missing = [
            wire_name for wire_name, column in SETTINGS_FIELDS.items()
            if column != 'billing_vat_number' and not resulting[column]
        ]
        if missing:
            raise ValidationError(
                'Complete the billing details before enabling koopovereenkomsten. '
                f'Missing: {", ".join(missing)}'
            )

    for column, value in changes.items():
        setattr(organization, column, value)
    if enable is not None:
        organization.has_document_workflow = enable

    db.session.commit()
    logger.info(f"Settings updated for organization {organization.id}")
    return organization
