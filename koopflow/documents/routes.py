"""Koopovereenkomst routes with organization-scoped access."""

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
from koopflow.documents.lifecycle import KoopovereenkomstLifecycle
from koopflow.errors import ValidationError

documents_bp = Blueprint('documents', __name__, url_prefix='/koopovereenkomsten')


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('JSON body required')
    return data


@documents_bp.route('', methods=['POST'])
@login_required
def upload_koopovereenkomst():
    """
    Upload a koopovereenkomst PDF.

    The record is owned by current_user; its organization follows from the
    author and is never read from the request body.

    Request Body:
        {
            "naam": "contract.pdf",
            "pdfBase64": "JVBERi0xLjQK...",
            "autoExtract": false
        }

    Returns:
        201: Created record (without the PDF payload)
        400: Invalid name, encoding or size
        403: Organization has no access to koopovereenkomsten
        507: Storage capacity reached
    """
    data = _json_body()

    record = KoopovereenkomstLifecycle().upload(
        data.get('naam'),
        data.get('pdfBase64'),
        current_user,
        auto_extract=bool(data.get('autoExtract')),
    )

    return jsonify(record.to_dict()), 201


@documents_bp.route('', methods=['GET'])
@login_required
def list_koopovereenkomsten():
    """
    List koopovereenkomsten of the current user's organization, newest first.

    PDF payloads are left out; errorMessage is included when present.
    """
    records = KoopovereenkomstLifecycle().list(current_user)
    return jsonify({
        'koopovereenkomsten': [r.to_dict() for r in records]
    }), 200


@documents_bp.route('/extract', methods=['POST'])
@login_required
def extract_koopovereenkomst():
    """
    Send a koopovereenkomst to the extraction service.

    Extraction failures are not HTTP errors: the returned record carries
    status extraction_failed and an errorMessage.

    Request Body:
        {"koopovereenkomstId": "..."}

    Returns:
        200: Refreshed record
        400: Missing id, or record already reviewed
        403: Record of another organization, or feature not enabled
        404: Record not found
    """
    data = _json_body()
    record_id = data.get('koopovereenkomstId')
    if not record_id:
        raise ValidationError('koopovereenkomstId is required')

    record = KoopovereenkomstLifecycle().extract(str(record_id), current_user)
    return jsonify(record.to_dict()), 200


@documents_bp.route('/<string:koopovereenkomst_id>', methods=['GET'])
@login_required
def get_koopovereenkomst(koopovereenkomst_id):
    """Full record including pdfBase64, for viewing."""
    record = KoopovereenkomstLifecycle().get(koopovereenkomst_id, current_user)
    return jsonify(record.to_dict(include_pdf=True)), 200


@documents_bp.route('/<string:koopovereenkomst_id>', methods=['PATCH'])
@login_required
def update_koopovereenkomst(koopovereenkomst_id):
    """
    Partially update a koopovereenkomst.

    Request Body (both optional):
        {"jsonData": {...}, "status": "reviewed"}
    """
    data = _json_body()
    record = KoopovereenkomstLifecycle().update_fields(koopovereenkomst_id, current_user, data)
    return jsonify(record.to_dict()), 200


@documents_bp.route('/<string:koopovereenkomst_id>', methods=['DELETE'])
@login_required
def delete_koopovereenkomst(koopovereenkomst_id):
    KoopovereenkomstLifecycle().delete(koopovereenkomst_id, current_user)
    return jsonify({'success': True}), 200
