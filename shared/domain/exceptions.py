"""
Domain Exceptions

Business errors raised by the availability resolver and the rental
command handlers. The HTTP layer maps them to status codes; nothing
in this hierarchy is ever cached or retried.
"""

from typing import Iterable


class DomainError(Exception):
    """Base class for all business-rule errors"""


class ValidationError(DomainError):
    """
    Malformed or out-of-policy input

    Carries every violated rule so the caller can present all
    problems at once.
    """

    def __init__(self, errors: Iterable[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid request")


class NotFoundError(DomainError):
    """Referenced reservation, customer or vehicle does not exist"""


class ConflictError(DomainError):
    """Business rule violated at mutation time (overlap, invalid state)"""
