from .user import user_blueprint
