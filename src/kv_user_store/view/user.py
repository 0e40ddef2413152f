from quart import Blueprint, request, abort

from kv_user_store.etc.consts import LOGGER
from kv_user_store.etc.errors import AddressNotFoundException, CommitRejectedException, \
    UserNotFoundException
from kv_user_store.model import User, Address
from .utils import exception_handler, get_repository

user_blueprint = Blueprint('users', __name__)


def _parse_user(user_id: str, data: dict) -> User:
    if not isinstance(data, dict):
        abort(400, 'User must be a JSON object')

    if data.get('id', user_id) != user_id:
        abort(400, f'User ID in body does not match {user_id}')

    try:
        user = User.from_dict({**data, 'id': user_id})
    except KeyError as e:
        abort(400, f'Missing user field: {e.args[0]}')

    # Email is part of a store key
    if not isinstance(user.email, str):
        abort(400, 'User email must be a string')

    return user


def _parse_address(data: dict) -> Address:
    try:
        return Address.from_dict(data)
    except KeyError as e:
        abort(400, f'Missing address field: {e.args[0]}')


@user_blueprint.route('', methods=['GET'])
@exception_handler
async def list_users():
    """
    Retrieve every user.
    :return: A JSON list of users.
    """
    users = await get_repository().get_all_users()

    return [user.to_dict(include_password=False) for user in users]


@user_blueprint.route('/<user_id>', methods=['GET'])
@exception_handler
async def get_user(user_id: str):
    user = await get_repository().get_user_by_id(user_id)

    if user is None:
        raise UserNotFoundException(f'User with ID {user_id} does not exist.')

    return user.to_dict(include_password=False)


@user_blueprint.route('/by-email/<email>', methods=['GET'])
@exception_handler
async def get_user_by_email(email: str):
    user = await get_repository().get_user_by_email(email)

    if user is None:
        raise UserNotFoundException(f'User with email {email} does not exist.')

    return user.to_dict(include_password=False)


@user_blueprint.route('/<user_id>', methods=['PUT'])
@exception_handler
async def put_user(user_id: str):
    """
    Create or replace a user.
    :return: The stored user, or 409 if a concurrent write won.
    """
    data = await request.get_json()
    if not data:
        abort(400, 'No data provided')

    user = _parse_user(user_id, data)
    result = await get_repository().upsert_user(user)

    if not result:
        raise CommitRejectedException(f'User {user_id} was modified concurrently.')

    LOGGER.info('Stored user %s', user_id)

    return user.to_dict(include_password=False)


@user_blueprint.route('/<user_id>/address', methods=['GET'])
@exception_handler
async def get_address(user_id: str):
    address = await get_repository().get_address_by_user_id(user_id)

    if address is None:
        raise AddressNotFoundException(f'User {user_id} has no address.')

    return address.to_dict()


@user_blueprint.route('/<user_id>/address', methods=['PUT'])
@exception_handler
async def put_user_and_address(user_id: str):
    """
    Write a user and its address together.
    Expects a body of the form {"user": {...}, "address": {...}}.
    :return: The stored user and address, or 409 if a concurrent write won.
    """
    data = await request.get_json()
    if not isinstance(data, dict) or not isinstance(data.get('address'), dict):
        abort(400, 'Both user and address are required')

    user = _parse_user(user_id, data.get('user'))
    address = _parse_address(data['address'])
    result = await get_repository().update_user_and_address(user, address)

    if not result:
        raise CommitRejectedException(f'User {user_id} was modified concurrently.')

    LOGGER.info('Stored user %s with address', user_id)

    return {
        'user': user.to_dict(include_password=False),
        'address': address.to_dict(),
    }


@user_blueprint.route('/<user_id>', methods=['DELETE'])
@exception_handler
async def delete_user(user_id: str):
    result = await get_repository().delete_user_by_id(user_id)

    if not result:
        raise CommitRejectedException(f'User {user_id} was modified concurrently.')

    return '', 204
