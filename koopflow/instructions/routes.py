"""Work instruction routes serving markdown files as-is."""

import os
import re
from flask import Blueprint, jsonify, current_app
from flask_login import login_required
from koopflow.errors import NotFound

instructions_bp = Blueprint('instructions', __name__, url_prefix='/werkinstructies')

SLUG_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9_-]*$')


def title_from_slug(slug):
    """'koopovereenkomst-controleren' -> 'Koopovereenkomst Controleren'"""
    return ' '.join(word[:1].upper() + word[1:] for word in slug.split('-'))


def _instructions_dir():
    return current_app.config['INSTRUCTIONS_FOLDER']


@instructions_bp.route('', methods=['GET'])
@login_required
def list_instructions():
    directory = _instructions_dir()
    if not os.path.isdir(directory):
        current_app.logger.warning(f"Instructions folder missing: {directory}")
        return jsonify({'instructions': []}), 200

    slugs = sorted(
        name[:-len('.md')] for name in os.listdir(directory)
        if name.endswith('.md')
    )
    return jsonify({
        'instructions': [{'id': slug, 'title': title_from_slug(slug)} for slug in slugs]
    }), 200


@instructions_bp.route('/<string:slug>', methods=['GET'])
@login_required
def get_instruction(slug):
    """
    Raw markdown of one instruction.

    Returns:
        200: {id, title, content}
        404: Unknown slug
    """
    if not SLUG_PATTERN.match(slug):
        raise NotFound('Work instruction not found')

    path = os.path.join(_instructions_dir(), f'{slug}.md')
    if not os.path.isfile(path):
        raise NotFound('Work instruction not found')

    with open(path, 'r', encoding='utf-8') as f:
        content = f.read()

    return jsonify({
        'id': slug,
        'title': title_from_slug(slug),
        'content': content
    }), 200
