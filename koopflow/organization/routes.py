"""Organization summary for members."""

from flask import Blueprint, jsonify
from flask_login import login_required, current_user
from koopflow.organization.directory import require_organization, resolve_principal

organization_bp = Blueprint('organization', __name__, url_prefix='/organization')


@organization_bp.route('', methods=['GET'])
@login_required
def get_organization():
    """
    Organization of the current user and whether it can use koopovereenkomsten.

    Returns:
        200: {id, name, domain, hasDocumentWorkflowAccess, principal}
        403: User has no organization
    """
    organization = require_organization(current_user)
    data = organization.to_dict()
    data['principal'] = resolve_principal(current_user)
    return jsonify(data), 200
