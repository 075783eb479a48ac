"""Organization administration routes (admins only)."""

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
from koopflow.errors import ValidationError
from koopflow.organization import directory

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


@admin_bp.route('/users', methods=['GET'])
@login_required
def list_users():
    """
    Members of the admin's organization and users waiting for approval.

    Returns:
        200: {"users": [...]}
        403: Not an admin
    """
    users = directory.list_organization_users(current_user)
    return jsonify({'users': [u.to_dict() for u in users]}), 200


@admin_bp.route('/users', methods=['POST'])
@login_required
def user_action():
    """
    Approve, reject, promote/demote or delete a user.

    Request Body:
        {
            "action": "approve" | "reject" | "toggleAdmin" | "delete",
            "userId": 12,
            "isAdmin": false        (toggleAdmin only)
        }

    Returns:
        200: Action applied
        400: Bad request, or admin targeting their own account
        403: Not an admin, or target in another organization
        404: User not found
        409: Would remove the organization's last admin
    """
    data = request.get_json(silent=True) or {}

    action = data.get('action')
    user_id = data.get('userId')
    if not action or user_id is None:
        raise ValidationError('Missing required parameters')

    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise ValidationError('userId must be an integer')

    target = directory.apply_admin_action(
        current_user,
        action,
        user_id,
        is_admin=data.get('isAdmin'),
    )

    response = {'success': True, 'action': action}
    if target is not None:
        response['user'] = target.to_dict()
    return jsonify(response), 200


@admin_bp.route('/organization-settings', methods=['GET'])
@login_required
def get_organization_settings():
    organization = directory.require_admin(current_user)
    return jsonify(organization.settings_dict()), 200


@admin_bp.route('/organization-settings', methods=['POST'])
@login_required
def update_organization_settings():
    """
    Update billing details and the koopovereenkomsten feature flag.

    Returns:
        200: Updated settings
        400: Enabling the feature with incomplete billing details
        403: Not an admin
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('JSON body required')

    organization = directory.update_organization_settings(current_user, data)
    return jsonify(organization.settings_dict()), 200
