"""Error taxonomy shared by services and routes.

Every error carries a stable ``kind`` that clients can check and the HTTP
status the JSON error handler responds with.
"""


class KoopflowError(Exception):
    """Base class for errors surfaced to API callers."""

    kind = 'InternalError'
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.message, 'kind': self.kind}


class ValidationError(KoopflowError):
    kind = 'ValidationError'
    status_code = 400
    default_message = 'Invalid request'


class Unauthenticated(KoopflowError):
    kind = 'Unauthenticated'
    status_code = 401
    default_message = 'Not logged in'


class Forbidden(KoopflowError):
    kind = 'Forbidden'
    status_code = 403
    default_message = 'Forbidden'


class AccessDenied(KoopflowError):
    """Authenticated and in the right tenant, but the feature is not enabled."""

    kind = 'AccessDenied'
    status_code = 403
    default_message = 'Your organization does not have access to this feature'


class NotFound(KoopflowError):
    kind = 'NotFound'
    status_code = 404
    default_message = 'Not found'


class LastAdminProtected(KoopflowError):
    kind = 'LastAdminProtected'
    status_code = 409
    default_message = 'An organization must keep at least one admin'


class SelfActionDenied(KoopflowError):
    kind = 'SelfActionDenied'
    status_code = 400
    default_message = 'You cannot perform this action on your own account'


class CapacityExceeded(KoopflowError):
    kind = 'CapacityExceeded'
    status_code = 507
    default_message = 'Storage capacity exceeded'


class GatewayFailure(KoopflowError):
    """Extraction service call failed.

    Absorbed into the document record by the lifecycle engine; never returned
    from the extract endpoint as an HTTP error.
    """

    kind = 'GatewayFailure'
    status_code = 502
    default_message = 'Extraction service failed'

    def __init__(self, message=None, diagnostic=None):
        super().__init__(message)
        self.diagnostic = diagnostic if diagnostic is not None else self.message


class ExtractionTimeout(GatewayFailure):
    kind = 'Timeout'
    status_code = 504
    default_message = 'Extraction service timed out'
