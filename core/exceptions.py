"""Typed exceptions for domain failures outside authentication.

Each maps to exactly one HTTP status in api.errors. Messages are safe to
show to the client; upstream detail is logged where the error is raised.
"""


class ServiceError(Exception):
    """Base class for domain errors."""


class InvalidRequestError(ServiceError):
    """Missing or malformed request fields."""


class ForbiddenError(ServiceError):
    """Authenticated, but the account's tier does not allow this."""


class NotFoundError(ServiceError):
    """Referenced account or resource does not exist."""


class UpstreamError(ServiceError):
    """A third-party API (completion, search, mail, payment) failed."""


class SignatureError(ServiceError):
    """Payment signature did not match. The payment must not be trusted."""
