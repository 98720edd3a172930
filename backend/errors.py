"""Error taxonomy shared by the store, the services and the HTTP layer.

Every error carries the status code it maps to, so the exception handlers
in ``server.py`` translate them without a lookup table.
"""


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class AuthError(AppError):
    status_code = 401
    default_message = "Authentication failed"
    # Tells the client to purge its stored credential
    clear_token = False


class MissingCredential(AuthError):
    default_message = "No token provided"


class InvalidCredential(AuthError):
    default_message = "Invalid token"
    clear_token = True


class ExpiredCredential(AuthError):
    default_message = "Token expired"
    clear_token = True


class PrincipalNotFound(AuthError):
    default_message = "User not found"
    clear_token = True


class AuthzError(AppError):
    status_code = 403
    default_message = "Unauthorized"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Conflict"


class DuplicateInteraction(Conflict):
    default_message = "Already clapped"


class Fatal(AppError):
    status_code = 500
    default_message = "Server misconfigured"
