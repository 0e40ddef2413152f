from .user import User, Address
from .user_repository import UserRepository
