import asyncio
from quart import Quart

from kv_user_store.etc.consts import LOGGER, SERVICE_CONFIG
from kv_user_store.model import UserRepository
from kv_user_store.store import KvStore, create_store
from kv_user_store.view import user_blueprint
from kv_user_store.view.utils import REPOSITORY_CONFIG_KEY


def create_app(store: KvStore | None = None) -> Quart:
    """
    Create and configure the Quart application.

    The store is opened when the application starts serving and closed
    when it stops.

    :param store: Key-value store to serve from, built from configuration if omitted
    :return: Configured Quart application instance
    """
    app = Quart(__name__)

    if store is None:
        store = create_store()

    app.config[REPOSITORY_CONFIG_KEY] = UserRepository(store)

    # Register blueprints
    app.register_blueprint(user_blueprint, url_prefix='/users')

    @app.before_serving
    async def startup():
        await store.open()
        LOGGER.info('%s started with %s', SERVICE_CONFIG.application_name, store.__class__.__name__)

    @app.after_serving
    async def shutdown():
        await store.close()
        LOGGER.info('%s stopped', SERVICE_CONFIG.application_name)

    return app


if __name__ == '__main__':
    from hypercorn.config import Config
    from hypercorn.asyncio import serve

    config = Config.from_mapping(
        bind=[SERVICE_CONFIG.bind_address],
        use_reloader=False,
    )
    asgi_app = create_app()

    asyncio.run(serve(asgi_app, config))
