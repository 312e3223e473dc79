"""
Domain error taxonomy.

Services and repositories raise these; the application translates them
into HTTP responses in one place (see taskhub.main).
"""

from __future__ import annotations


class TaskHubError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "An error occurred while processing your request."

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        self.message = message or self.default_message
        if code:
            self.code = code
        super().__init__(self.message)


# 401

class UnauthenticatedError(TaskHubError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Not authenticated."


class InvalidCredentialsError(UnauthenticatedError):
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid email or password."


class AccountInactiveError(UnauthenticatedError):
    code = "ACCOUNT_INACTIVE"
    default_message = "Account is deactivated."


class InvalidTokenError(UnauthenticatedError):
    """
    Credential lifecycle failure.

    Subclasses record *why* verification failed for server-side logging;
    callers always see the same response.
    """

    code = "INVALID_TOKEN"
    default_message = "Could not validate credentials."


class TokenExpiredError(InvalidTokenError):
    code = "TOKEN_EXPIRED"
    reason = "expired"


class BadSignatureError(InvalidTokenError):
    code = "BAD_SIGNATURE"
    reason = "bad_signature"


class MalformedClaimsError(InvalidTokenError):
    code = "MALFORMED_CLAIMS"
    reason = "malformed_claims"


# 403

class ForbiddenError(TaskHubError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Forbidden."


class CannotModifySystemRoleError(ForbiddenError):
    code = "CANNOT_MODIFY_SYSTEM_ROLE"
    default_message = "System roles cannot be modified."


class TenantMismatchError(ForbiddenError):
    code = "TENANT_MISMATCH"
    default_message = "Cannot write records belonging to another tenant."


class ImmutableRecordError(ForbiddenError):
    code = "IMMUTABLE_RECORD"
    default_message = "Record is append-only."


class CannotDeleteSelfError(ForbiddenError):
    code = "CANNOT_DELETE_SELF"
    default_message = "Cannot delete your own account."


# 404

class NotFoundError(TaskHubError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found."


# 409

class ConflictError(TaskHubError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Conflict."


class NameConflictError(ConflictError):
    code = "NAME_EXISTS"
    default_message = "Name already exists."


class EmailExistsError(ConflictError):
    code = "EMAIL_EXISTS"
    default_message = "Email already registered."


class RoleInUseError(ConflictError):
    code = "ROLE_IN_USE"
    default_message = "Cannot delete role with assigned users."


class ConcurrencyConflictError(ConflictError):
    code = "CONCURRENCY_ERROR"
    default_message = "The record was modified by another request. Please reload and try again."


# 400

class ValidationError(TaskHubError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Validation failed."


class PermissionNotFoundError(ValidationError):
    code = "PERMISSION_NOT_FOUND"
    default_message = "Permission not found."


class RoleNotFoundError(ValidationError):
    code = "ROLE_NOT_FOUND"
    default_message = "Role not found."
