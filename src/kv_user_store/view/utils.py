from functools import wraps
from quart import current_app, jsonify
from werkzeug.exceptions import HTTPException

from kv_user_store.etc.consts import LOGGER
from kv_user_store.etc.errors import KvUserStoreException
from kv_user_store.model import UserRepository


REPOSITORY_CONFIG_KEY = 'USER_REPOSITORY'


def get_repository() -> UserRepository:
    """
    Return the user repository bound to the running application.
    :return: UserRepository instance.
    """
    return current_app.config[REPOSITORY_CONFIG_KEY]


def exception_handler(f):
    @wraps(f)
    async def wrapper(*args, **kwargs):
        try:
            return await f(*args, **kwargs)
        except KvUserStoreException as e:
            response = jsonify({'error': e.message})
            response.status_code = e.status_code

            if e.status_code >= 500:
                LOGGER.exception('KV User Store Exception: %s', e.message)
            else:
                LOGGER.warning('KV User Store Exception: %s', e.message)

            return response
        except HTTPException as e:
            response = jsonify({'error': e.description})
            response.status_code = e.code

            LOGGER.warning('HTTP Exception: %s', e.description)

            return response
        except Exception as e:
            response = jsonify({'error': str(e)})
            response.status_code = 500

            LOGGER.exception('Internal Server Error')

            return response

    return wrapper
