from typing import Any, ClassVar


class CustomBaseError(Exception):
    """
    Root of every expected error.

    ``Logger.io`` logs these without a traceback; the HTTP layer answers with
    ``status_code`` and ``{'detail': message, 'code': code, **context()}``.
    """

    status_code: ClassVar[int] = 500
    code: ClassVar[str] = 'internal_error'

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def context(self) -> dict[str, Any]:
        """Extra JSON-safe fields a client can act on"""
        return {}


class DomainError(CustomBaseError):
    status_code = 400
    code = 'domain_rule_violated'


class ValidationError(CustomBaseError):
    status_code = 400
    code = 'invalid_request'


class AuthenticationError(CustomBaseError):
    """Caller identity missing, or a webhook / job token does not verify"""

    status_code = 401
    code = 'unauthenticated'


class UnauthorizedError(CustomBaseError):
    """Acting user is known but not allowed to touch the resource"""

    status_code = 403
    code = 'forbidden'


class NotFoundError(CustomBaseError):
    status_code = 404
    code = 'not_found'


class ConflictError(CustomBaseError):
    status_code = 409
    code = 'conflict'


class UpstreamServiceError(CustomBaseError):
    status_code = 502
    code = 'upstream_unavailable'
