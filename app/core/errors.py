"""
Domain errors raised by the services and rendered by the API.

Each error carries the HTTP status it maps to and a stable ``code`` the client
can switch on. The groups follow how a caller should react: validation errors
are fixed by the user, conflicts are explained, transient errors may be
retried by the user.
"""


class GratitudeBeeError(Exception):
    status_code = 400
    code = "ERROR"
    default_detail = "Request failed"
    retryable = False

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


# Validation

class ValidationFailure(GratitudeBeeError):
    pass


class InvalidCodeFormat(ValidationFailure):
    code = "INVALID_CODE_FORMAT"
    default_detail = "Invite code is malformed"


class InvalidContent(ValidationFailure):
    status_code = 422
    code = "INVALID_CONTENT"
    default_detail = "Event content is invalid"


# Conflicts

class ConflictError(GratitudeBeeError):
    status_code = 409


class AlreadyPaired(ConflictError):
    code = "ALREADY_PAIRED"
    default_detail = "Already paired with a partner"


class SelfPairingRejected(ConflictError):
    status_code = 400
    code = "SELF_PAIRING_REJECTED"
    default_detail = "Cannot pair with yourself"


class AlreadyResponded(ConflictError):
    code = "ALREADY_RESPONDED"
    default_detail = "This event already has a response"


class NotPaired(ConflictError):
    code = "NOT_PAIRED"
    default_detail = "Users are not paired with each other"


# Lookups

class NotFoundError(GratitudeBeeError):
    status_code = 404


class NotFound(NotFoundError):
    code = "NOT_FOUND"
    default_detail = "Not found"


class CodeNotFound(NotFoundError):
    code = "CODE_NOT_FOUND"
    default_detail = "Invalid invite code"


class Forbidden(GratitudeBeeError):
    status_code = 403
    code = "FORBIDDEN"
    default_detail = "Not allowed"


# Transient

class TransientError(GratitudeBeeError):
    retryable = True


class PairingConflict(TransientError):
    status_code = 409
    code = "PAIRING_CONFLICT"
    default_detail = "Pairing could not be applied, please try again"


class CodeGenerationExhausted(TransientError):
    status_code = 503
    code = "CODE_GENERATION_EXHAUSTED"
    default_detail = "Could not allocate an invite code"
