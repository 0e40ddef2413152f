"""
Exception definitions for kv-user-store package
"""


class KvUserStoreException(Exception):
    """
    Base class for all exceptions raised by the service.
    """

    def __init__(self,
                 message: str = None,
                 status_code: int = 500,
                 ):
        super().__init__(message)

        self.message = message
        self.status_code = status_code


class ConfigurationParsingException(KvUserStoreException):
    """
    Exception raised when there is an error parsing the configuration.
    """
    def __init__(self,
                 message: str = 'Error parsing configuration.',
                 status_code: int = 400,
                 ):
        super().__init__(message, status_code)


class StoreNotOpenException(KvUserStoreException):
    """
    Exception raised when a key-value store is used before open() or after close().
    """
    def __init__(self,
                 message: str = 'Key-value store is not open.',
                 status_code: int = 500,
                 ):
        super().__init__(message, status_code)


class InvalidCursorException(KvUserStoreException):
    """
    Exception raised when a scan cursor cannot be decoded.
    """
    def __init__(self,
                 message: str = 'Invalid scan cursor.',
                 status_code: int = 400,
                 ):
        super().__init__(message, status_code)


class UserNotFoundException(KvUserStoreException):
    """
    Exception raised when a user is not found.
    """
    def __init__(self,
                 message: str = 'User not found.',
                 status_code: int = 404,
                 ):
        super().__init__(message, status_code)


class AddressNotFoundException(KvUserStoreException):
    """
    Exception raised when a user has no address.
    """
    def __init__(self,
                 message: str = 'Address not found.',
                 status_code: int = 404,
                 ):
        super().__init__(message, status_code)


class EmailAlreadyInUseException(KvUserStoreException):
    """
    Exception raised when an email is already indexed for a different user.
    """
    def __init__(self,
                 message: str = 'Email is already in use by another user.',
                 status_code: int = 409,
                 ):
        super().__init__(message, status_code)


class CommitRejectedException(KvUserStoreException):
    """
    Exception raised when an atomic commit is rejected by a concurrent change.
    """
    def __init__(self,
                 message: str = 'Concurrent modification detected, commit rejected.',
                 status_code: int = 409,
                 ):
        super().__init__(message, status_code)
