from enum import Enum


class KeySpace(Enum):
    """
    First key part of every record written by the user repository
    """
    USER = 'user'
    USER_BY_EMAIL = 'user_by_email'
    USER_ADDRESS = 'user_address'


class StoreDriver(Enum):
    """
    Supported key-value store drivers
    """
    MEMORY = 'memory'
    REDIS = 'redis'


class MutationType(Enum):
    """
    Kinds of mutation an atomic operation can carry
    """
    SET = 'set'
    DELETE = 'delete'
