"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class StorageError(DomainException):
    """Persistence layer failed while reading or writing budget data"""

    pass


class NotFoundError(DomainException):
    """Requested record does not exist for this user"""

    pass


class DuplicateSubscriptionError(DomainException):
    """Merchant key is already confirmed as a subscription for this user"""

    pass
