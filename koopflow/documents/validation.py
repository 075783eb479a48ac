"""Upload payload validation for koopovereenkomst PDFs."""

import re

from koopflow.errors import ValidationError

DEFAULT_MIN_BYTES = 100
DEFAULT_MAX_BYTES = 40 * 1024 * 1024  # 40MB

# Only the head and tail of the payload are matched, so validation cost does
# not grow with the size of the upload.
BASE64_SAMPLE_CHARS = 4096
BASE64_PATTERN = re.compile(r'^[A-Za-z0-9+/=\s]+$')

# base64 encodes 3 bytes in 4 characters
BASE64_INFLATION = 1.33


def is_pdf_filename(naam):
    return isinstance(naam, str) and naam.strip().lower().endswith('.pdf')


def looks_like_base64(payload):
    """Check a bounded sample of the payload against the base64 alphabet."""
    head = payload[:BASE64_SAMPLE_CHARS]
    tail = payload[-BASE64_SAMPLE_CHARS:]
    return bool(BASE64_PATTERN.match(head)) and bool(BASE64_PATTERN.match(tail))


def estimated_size(payload):
    """Estimated decoded size in bytes."""
    return len(payload) / BASE64_INFLATION


def validate_upload(naam, pdf_base64, min_bytes=DEFAULT_MIN_BYTES, max_bytes=DEFAULT_MAX_BYTES):
    """
    Validate an uploaded PDF before it is stored.

    Args:
        naam: Original filename, must end in .pdf (any case)
        pdf_base64: Base64 encoded PDF content
        min_bytes: Smallest accepted decoded size estimate
        max_bytes: Largest accepted decoded size estimate (inclusive)

    Raises:
        ValidationError: On a bad name, encoding or size
    """
    if not naam or not isinstance(naam, str):
        raise ValidationError('Name and PDF are required')
    if not pdf_base64 or not isinstance(pdf_base64, str):
        raise ValidationError('Name and PDF are required')

    if not is_pdf_filename(naam):
        raise ValidationError('Only PDF files are allowed')

    if not looks_like_base64(pdf_base64):
        raise ValidationError('Invalid PDF file: content is not base64 encoded')

    size = estimated_size(pdf_base64)
    if size < min_bytes:
        raise ValidationError('Invalid PDF file: content is too small')
    if size > max_bytes:
        raise ValidationError(
            f'PDF file too large. Maximum size: {max_bytes / 1024 / 1024:g}MB'
        )
